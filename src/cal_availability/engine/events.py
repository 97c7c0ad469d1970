"""
Structured event sinks for engine instrumentation.

Timings and outcomes are emitted as named events to the sink the engine was
given, so callers decide where they end up. Module loggers carry the rest.
"""

import json
import logging
from typing import Any


class EventSink:
    """Receives structured engine events. The base sink discards them."""

    def emit(self, event: str, level: int = logging.INFO, **fields: Any) -> None:
        pass


class LoggingEventSink(EventSink):
    """Writes each event as a single JSON object to a logger."""

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger("cal_availability.engine")

    def emit(self, event: str, level: int = logging.INFO, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(level, json.dumps({"event": event, **fields}, default=str))
