"""
Slot Categorizer

Splits found slots into those inside the requested window ("available") and
ranked alternatives outside it ("proposed").
"""

import math
from datetime import timedelta
from typing import List

from cal_availability.engine.constants import SEARCH_SETTINGS
from cal_availability.engine.dto import CategorizedSlots, Intent, ProposedSlot, Slot

# Ordered guards over the signed hour difference; first match wins
_REASON_RULES = (
    (lambda d: abs(d) < 3, lambda d: "very close to requested time"),
    (lambda d: 0 < d < 24, lambda d: "same day, later time"),
    (lambda d: -24 < d < 0, lambda d: "same day, earlier time"),
    (lambda d: d >= 24, lambda d: f"{math.floor(d / 24)} days later"),
    (lambda d: d <= -24, lambda d: f"{math.floor(abs(d) / 24)} days earlier"),
)


def proximity_reason(delta: timedelta) -> str:
    """Human-readable reason for a slot that is delta away from the requested start."""
    hours = delta.total_seconds() / 3600
    for matches, describe in _REASON_RULES:
        if matches(hours):
            return describe(hours)
    return "very close to requested time"


def categorize(all_slots: List[Slot], intent: Intent, max_proposed: int = SEARCH_SETTINGS.MAX_PROPOSED) -> CategorizedSlots:
    """
    Partition slots relative to the intent window.

    Args:
        all_slots: Slots from the successful search attempt
        intent: Resolved intent; its window bounds are inclusive
        max_proposed: Cap on the number of alternatives

    Returns:
        CategorizedSlots with proposed sorted by distance (closest first)
    """
    available = [
        slot for slot in all_slots
        if intent.start_time <= slot.start_datetime <= intent.end_time
    ]
    available_starts = {slot.start for slot in available}

    proposed = []
    for slot in all_slots:
        if slot.start in available_starts:
            continue
        delta = slot.start_datetime - intent.start_time
        proposed.append(ProposedSlot(
            start=slot.start,
            end=slot.end,
            distance_minutes=abs(delta.total_seconds()) / 60,
            reason=proximity_reason(delta),
        ))

    proposed.sort(key=lambda slot: slot.distance_minutes)
    return CategorizedSlots(available=available, proposed=proposed[:max_proposed])
