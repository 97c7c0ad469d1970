"""
Availability Engine Constants
"""

from datetime import time, timedelta

from cal_availability.config import get_intent_llm_api_key, settings


class INTENT_LLM_SETTINGS:
    """LLM configuration for the primary intent parser"""
    API_KEY: str = get_intent_llm_api_key()
    PROVIDER: str = settings.INTENT_LLM_PROVIDER or "anthropic"
    MODEL: str = settings.INTENT_LLM_MODEL
    TEMPERATURE: float = 0.3  # Low temperature for consistent date parsing
    MAX_TOKENS: int = 300
    TIMEOUT_SECONDS: float = 10.0
    MIN_CONFIDENCE: float = 0.5


class FALLBACK_SETTINGS:
    """Heuristic and default parser settings"""
    HEURISTIC_CONFIDENCE: float = 0.6
    DEFAULT_CONFIDENCE: float = 0.3
    DEFAULT_START: time = time(10, 0)
    DEFAULT_SPAN: timedelta = timedelta(hours=1)
    REJECTION_RADIUS: timedelta = timedelta(minutes=30)
    REJECTION_SHIFT: timedelta = timedelta(hours=1)


# Day-part phrases in priority order: (keyword, start, end)
DAY_PARTS = (
    ("lunch", time(11, 30), time(13, 30)),
    ("morning", time(9, 0), time(12, 0)),
    ("afternoon", time(13, 0), time(17, 0)),
    ("evening", time(17, 0), time(20, 0)),
)

SAME_TIME_PHRASE = "same time"

# Date grammar candidate filtering
WEEKDAY_NAMES = {
    "monday": 0, "mon": 0,
    "tuesday": 1, "tue": 1, "tues": 1,
    "wednesday": 2, "wed": 2,
    "thursday": 3, "thu": 3, "thur": 3, "thurs": 3,
    "friday": 4, "fri": 4,
    "saturday": 5, "sat": 5,
    "sunday": 6, "sun": 6,
}

MONTH_NAMES = frozenset({
    "january", "february", "march", "april", "may", "june", "july", "august",
    "september", "october", "november", "december",
    "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept", "oct", "nov", "dec",
})

# Words the grammar reads as dates that are usually just English
WEAK_DATE_WORDS = frozenset({
    "we", "may", "on", "at", "in", "a", "an", "i", "to", "by", "for", "of",
    "sat", "sun", "mon", "second", "march",
})

RELATIVE_DATE_WORDS = frozenset({
    "today", "tomorrow", "tonight", "yesterday", "next", "this", "coming",
    "day", "days", "week", "weeks", "month", "months", "noon", "midnight",
})


class SEARCH_SETTINGS:
    """Expanding search settings"""
    SLOT_SOURCE_TIMEOUT_SECONDS: float = 5.0
    WIDE_MARGIN: timedelta = timedelta(hours=24)
    WEEK_MARGIN: timedelta = timedelta(days=7)
    LOOKAHEAD: timedelta = timedelta(days=30)
    MAX_PROPOSED: int = 10


class SEARCH_LABELS:
    REQUESTED_RANGE = "requested_range"
    PLUS_24H = "plus_24h"
    PLUS_7D = "plus_7d"
    NEXT_30D = "next_30d"
