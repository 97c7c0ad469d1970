"""
Application Constants
"""


class APP_SETTINGS:
    """FastAPI application metadata"""
    APP_NAME = "Cal.com Availability Checker API"
    VERSION = "1.0.0"
    DESCRIPTION = "Check calendar availability using natural language queries"


class REQUEST_LIMITS:
    """Inbound request validation bounds"""
    MAX_QUERY_LENGTH = 500
    MAX_SYSTEM_PROMPT_LENGTH = 2000
    MAX_REJECTED_TIMES = 50
    MIN_FLEXIBILITY_HOURS = 0
    MAX_FLEXIBILITY_HOURS = 24
    MIN_DURATION_MINUTES = 15
    MAX_DURATION_MINUTES = 180


# US Timezones
US_TIMEZONES = (
    "America/New_York",
    "America/Chicago",
    "America/Denver",
    "America/Los_Angeles",
    "America/Phoenix",
    "America/Anchorage",
    "Pacific/Honolulu",
)
