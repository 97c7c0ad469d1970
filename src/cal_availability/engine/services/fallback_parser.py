"""
Heuristic Fallback Parser

Deterministic text-to-window parser used when the LLM is unavailable or unsure:
- Generic date grammar (dateparser) anchored at "now" in the caller's zone
- Filler-word and bare-number grammar matches ("we", "may", "at 4") ignored
- Day-part heuristics (lunch, morning, afternoon, evening)
- 10:00 default when the grammar found a date but no hour
- "same time" reuses the current wall-clock hour/minute
- Rejected-time avoidance (single +1h shift)

No external calls; always terminates.
"""

import logging
import re
from dataclasses import replace
from datetime import datetime, time
from typing import Iterable, List, NamedTuple, Optional, Tuple

from dateparser.date import DateDataParser
from dateparser.search import search_dates

from cal_availability.engine.constants import (
    DAY_PARTS,
    FALLBACK_SETTINGS,
    MONTH_NAMES,
    RELATIVE_DATE_WORDS,
    SAME_TIME_PHRASE,
    WEAK_DATE_WORDS,
    WEEKDAY_NAMES,
)
from cal_availability.engine.dto import Intent, ParsingMethod
from cal_availability.engine.utils.datetime_utils import (
    at_local_time,
    get_timezone,
    localize_naive,
    parse_rejected_times,
    shift,
)

logger = logging.getLogger(__name__)

# dateparser periods that carry an explicit time of day
_TIMED_PERIODS = {"time"}

_TOKEN_RE = re.compile(r"[a-z0-9]+")
_MERIDIEM_RE = re.compile(r"\d\s*(?:am|pm)\b")
_DATE_SEPARATOR_RE = re.compile(r"\d[/:.\-]\d")


class GrammarMatch(NamedTuple):
    """Date/time candidate chosen from the grammar's matches."""
    text: str
    start: datetime
    hour_certain: bool
    weekday: Optional[int] = None


def _tokens(text: str) -> List[str]:
    return _TOKEN_RE.findall(text.lower())


def _named_weekday(text: str) -> Optional[int]:
    for token in _tokens(text):
        if token in WEEKDAY_NAMES:
            return WEEKDAY_NAMES[token]
    return None


def _is_weak(text: str) -> bool:
    """
    Matches made only of filler words and bare numbers ("we", "may", "at 4").
    The grammar reads these as weekday or month names, or a number as a month.
    """
    lowered = text.lower()
    if _DATE_SEPARATOR_RE.search(lowered) or _MERIDIEM_RE.search(lowered):
        return False
    tokens = _tokens(lowered)
    if any(token in MONTH_NAMES for token in tokens) and any(token.isdigit() for token in tokens):
        return False
    return all(token in WEAK_DATE_WORDS or token.isdigit() for token in tokens)


def _is_strong(text: str) -> bool:
    """Weekday, relative keyword, clock time with meridiem, or month with a day."""
    lowered = text.lower()
    tokens = _tokens(lowered)
    if _named_weekday(lowered) is not None or _MERIDIEM_RE.search(lowered):
        return True
    if any(token in RELATIVE_DATE_WORDS for token in tokens):
        return True
    return any(token in MONTH_NAMES for token in tokens) and any(
        token.rstrip("stndrh").isdigit() for token in tokens
    )


def _agrees_with_weekday(text: str, value: datetime) -> bool:
    weekday = _named_weekday(text)
    return weekday is None or value.weekday() == weekday


def choose_candidate(found: List[Tuple[str, datetime]]) -> Optional[Tuple[str, datetime]]:
    """
    Pick the grammar match the user most likely meant.

    Weak matches are dropped, as are matches whose date falls on a different
    weekday than the one they name. Strong matches win over the rest; ties
    go to the earliest in the text.
    """
    usable = [
        (text, value) for text, value in found or []
        if not _is_weak(text) and _agrees_with_weekday(text, value)
    ]
    for text, value in usable:
        if _is_strong(text):
            return text, value
    return usable[0] if usable else None


def _weekday_word(user_query: str) -> Optional[str]:
    for token in _tokens(user_query):
        if token in WEEKDAY_NAMES and token not in WEAK_DATE_WORDS:
            return token
    return None


def _grammar_settings(now_local: datetime) -> dict:
    return {
        "PREFER_DATES_FROM": "future",
        "RELATIVE_BASE": now_local.replace(tzinfo=None),
        "RETURN_AS_TIMEZONE_AWARE": False,
    }


def _to_local(value: datetime, timezone: str) -> datetime:
    if value.tzinfo is None:
        return localize_naive(value, timezone)
    return value.astimezone(get_timezone(timezone))


def find_first_date(user_query: str, now_local: datetime, timezone: str) -> Optional[GrammarMatch]:
    """
    Run the generic date grammar over the query.

    Returns:
        The most plausible candidate in the text, or None when the grammar
        finds nothing usable
    """
    settings = _grammar_settings(now_local)
    try:
        found = search_dates(user_query, languages=["en"], settings=settings)
    except Exception as e:
        logger.warning(f"Date grammar failed on {user_query!r}: {e}")
        found = None

    period_parser = DateDataParser(
        languages=["en"], settings={**settings, "RETURN_TIME_AS_PERIOD": True}
    )

    chosen = choose_candidate(found)
    if chosen is None:
        # "friday at 4" can come back as April; resolve the weekday on its own
        weekday_word = _weekday_word(user_query)
        if weekday_word is None:
            return None
        date_data = period_parser.get_date_data(weekday_word)
        if date_data.date_obj is None:
            return None
        logger.info(f"Date grammar matches unusable, resolved weekday {weekday_word!r}")
        return GrammarMatch(
            weekday_word, _to_local(date_data.date_obj, timezone), False, WEEKDAY_NAMES[weekday_word]
        )

    matched_text, start = chosen

    # Resolve the matched phrase again to learn whether it named an hour
    date_data = period_parser.get_date_data(matched_text)
    hour_certain = date_data.date_obj is not None and date_data.period in _TIMED_PERIODS

    return GrammarMatch(
        matched_text, _to_local(start, timezone), hour_certain, _named_weekday(matched_text)
    )


def _same_weekday_window(start: datetime, end: datetime, now_local: datetime, timezone: str):
    """
    A weekday named on that same weekday means today while the window is
    still ahead of now, otherwise the same day next week.
    """
    tz = get_timezone(timezone)
    start_local, end_local = start.astimezone(tz), end.astimezone(tz)
    offset = (start_local.date() - now_local.date()).days
    if offset not in (0, 7):
        return start, end

    today_start = at_local_time(start_local, start_local.time(), timezone, days=-offset)
    target = 0 if today_start >= now_local else 7
    moved = target - offset
    if moved == 0:
        return start, end
    return (
        at_local_time(start_local, start_local.time(), timezone, days=moved),
        at_local_time(end_local, end_local.time(), timezone, days=moved),
    )


def _match_day_part(text: str):
    for keyword, start, end in DAY_PARTS:
        if keyword in text:
            return keyword, start, end
    return None


def heuristic_parse(user_query: str, now: datetime, timezone: str) -> Optional[Intent]:
    """
    Resolve the query with the date grammar plus day-part heuristics.

    Args:
        user_query: Free text from the user
        now: Reference instant (any zone)
        timezone: Caller's IANA zone; all overrides use its wall clock

    Returns:
        Intent tagged fallback-heuristic, or None when nothing date-like was found
    """
    now_local = now.astimezone(get_timezone(timezone))
    text = user_query.lower()
    day_part = _match_day_part(text)
    match = find_first_date(user_query, now_local, timezone)

    if match is None:
        if day_part is None:
            return None
        # A bare day-part means the next such window that has not started yet
        _, part_start, _ = day_part
        base = now_local
        if at_local_time(now_local, part_start, timezone) <= now_local:
            base = at_local_time(now_local, part_start, timezone, days=1)
        hour_certain = False
    else:
        base = match.start
        hour_certain = match.hour_certain

    start = base
    end = shift(start, FALLBACK_SETTINGS.DEFAULT_SPAN, timezone)

    if day_part is not None:
        _, part_start, part_end = day_part
        start = at_local_time(base, part_start, timezone)
        end = at_local_time(base, part_end, timezone)
    elif not hour_certain:
        start = at_local_time(base, FALLBACK_SETTINGS.DEFAULT_START, timezone)
        end = shift(start, FALLBACK_SETTINGS.DEFAULT_SPAN, timezone)

    if SAME_TIME_PHRASE in text:
        start = at_local_time(base, time(now_local.hour, now_local.minute), timezone)
        end = shift(start, FALLBACK_SETTINGS.DEFAULT_SPAN, timezone)

    if match is not None and match.weekday == now_local.weekday():
        start, end = _same_weekday_window(start, end, now_local, timezone)

    return Intent(
        start_time=start,
        end_time=end,
        interpretation=f'Fallback parsing: "{user_query}"',
        confidence=FALLBACK_SETTINGS.HEURISTIC_CONFIDENCE,
        method=ParsingMethod.FALLBACK_HEURISTIC,
    )


def default_intent(now: datetime, timezone: str, reason: str = "fallback_no_parse") -> Intent:
    """Tomorrow at 10:00 local for one hour."""
    now_local = now.astimezone(get_timezone(timezone))
    start = at_local_time(now_local, FALLBACK_SETTINGS.DEFAULT_START, timezone, days=1)

    return Intent(
        start_time=start,
        end_time=shift(start, FALLBACK_SETTINGS.DEFAULT_SPAN, timezone),
        interpretation=f"No specific time detected, defaulting to tomorrow morning ({reason})",
        confidence=FALLBACK_SETTINGS.DEFAULT_CONFIDENCE,
        method=ParsingMethod.FALLBACK_DEFAULT,
    )


def avoid_rejected_times(
    intent: Intent,
    rejected_times: Optional[Iterable[str]],
    timezone: str,
) -> Intent:
    """
    Shift the window forward one hour if its start is within 30 minutes of a
    rejected time. Only one shift is applied; the result is not re-checked.
    """
    for rejected in parse_rejected_times(rejected_times):
        if abs(intent.start_time - rejected) < FALLBACK_SETTINGS.REJECTION_RADIUS:
            return replace(
                intent,
                start_time=shift(intent.start_time, FALLBACK_SETTINGS.REJECTION_SHIFT, timezone),
                end_time=shift(intent.end_time, FALLBACK_SETTINGS.REJECTION_SHIFT, timezone),
            )
    return intent
