"""Natural-language calendar availability service."""

__version__ = "1.0.0"
