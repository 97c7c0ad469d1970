"""
Expanding Search Orchestrator

Queries the slot source with progressively wider windows around the intent
and stops at the first window that yields at least one non-rejected slot.
"""

import logging
import time
from datetime import timedelta
from typing import List, Optional

from cal_availability.clients.cal_client import SlotSource
from cal_availability.engine.constants import SEARCH_LABELS, SEARCH_SETTINGS
from cal_availability.engine.dto import Intent, SearchResult, SearchWindow
from cal_availability.engine.events import EventSink
from cal_availability.exceptions import NoAvailabilityError, SlotSourceError

logger = logging.getLogger(__name__)


def requested_range(intent: Intent, flexibility_hours: float) -> SearchWindow:
    """Intent window widened by the caller's flexibility on both sides."""
    margin = timedelta(hours=flexibility_hours)
    return SearchWindow(
        label=SEARCH_LABELS.REQUESTED_RANGE,
        start=intent.start_time - margin,
        end=intent.end_time + margin,
    )


def build_search_windows(intent: Intent, flexibility_hours: float) -> List[SearchWindow]:
    """The four escalating windows, in the order they are tried."""
    start, end = intent.start_time, intent.end_time
    return [
        requested_range(intent, flexibility_hours),
        SearchWindow(
            label=SEARCH_LABELS.PLUS_24H,
            start=start - SEARCH_SETTINGS.WIDE_MARGIN,
            end=end + SEARCH_SETTINGS.WIDE_MARGIN,
        ),
        SearchWindow(
            label=SEARCH_LABELS.PLUS_7D,
            start=start - SEARCH_SETTINGS.WEEK_MARGIN,
            end=end + SEARCH_SETTINGS.WEEK_MARGIN,
        ),
        SearchWindow(
            label=SEARCH_LABELS.NEXT_30D,
            start=start,
            end=start + SEARCH_SETTINGS.LOOKAHEAD,
        ),
    ]


class ExpandingSearch:
    """Sequential expanding search over a slot source."""

    def __init__(self, slot_source: SlotSource, events: Optional[EventSink] = None):
        self.slot_source = slot_source
        self.events = events or EventSink()

    def find_slots(
        self,
        intent: Intent,
        flexibility_hours: float,
        duration: int,
        timezone: str,
        calendar_id: str,
        rejected_times: Optional[List[str]] = None,
    ) -> SearchResult:
        """
        Find slots for the intent, widening the window until something turns up.

        Slots whose start text exactly equals a rejected time are dropped.

        Raises:
            NoAvailabilityError: every window came back empty or failed; a
                failed attempt counts as zero results
        """
        rejected = set(rejected_times or [])
        windows = build_search_windows(intent, flexibility_hours)
        last_error = None
        answered = False
        started = time.time()

        for attempt_number, window in enumerate(windows, start=1):
            logger.info(f"Attempt {attempt_number}: Searching {window.label}")
            try:
                slots = self.slot_source.get_slots(
                    date_from=window.start,
                    date_to=window.end,
                    event_type_id=calendar_id,
                    duration=duration,
                    time_zone=timezone,
                )
            except SlotSourceError as e:
                # One failed window is not fatal; move on to the next
                logger.error(f"Attempt {attempt_number} failed: {str(e)}")
                self.events.emit(
                    "search_attempt", level=logging.WARNING,
                    attempt=attempt_number, label=window.label, error=str(e),
                )
                last_error = e
                continue

            answered = True
            filtered = [slot for slot in slots if slot.start not in rejected]
            self.events.emit(
                "search_attempt",
                attempt=attempt_number,
                label=window.label,
                returned=len(slots),
                kept=len(filtered),
            )

            if filtered:
                cal_api_ms = (time.time() - started) * 1000
                logger.info(f"Found {len(filtered)} slots in {window.label}")
                self.events.emit("slots_found", label=window.label, count=len(filtered))
                return SearchResult(
                    slots=filtered,
                    attempt_label=window.label,
                    window=window,
                    cal_api_ms=cal_api_ms,
                )

        self.events.emit(
            "search_exhausted", level=logging.WARNING,
            attempts=len(windows),
            transport_failures_only=not answered,
            last_error=str(last_error) if last_error is not None else None,
        )
        raise NoAvailabilityError()
