from datetime import datetime, timedelta

import pytest

from cal_availability.engine.dto import Intent, ParsingMethod
from cal_availability.engine.services.slot_search import ExpandingSearch, build_search_windows
from cal_availability.exceptions import NoAvailabilityError, SlotSourceError, SlotSourceTimeout

from conftest import CHICAGO, TIMEZONE, FakeSlotSource, slot


@pytest.fixture
def intent():
    start = CHICAGO.localize(datetime(2025, 10, 29, 11, 30))
    return Intent(
        start_time=start,
        end_time=start + timedelta(hours=2),
        interpretation="User asked for tomorrow around lunch",
        confidence=0.9,
        method=ParsingMethod.PRIMARY,
    )


def search(source, intent, events=None, rejected_times=None):
    return ExpandingSearch(source, events=events).find_slots(
        intent,
        flexibility_hours=2,
        duration=30,
        timezone=TIMEZONE,
        calendar_id="12345",
        rejected_times=rejected_times,
    )


# --- Windows ---

def test_windows_widen_in_order(intent):
    windows = build_search_windows(intent, 2)

    assert [w.label for w in windows] == [
        "requested_range", "plus_24h", "plus_7d", "next_30d",
    ]
    assert windows[0].start == intent.start_time - timedelta(hours=2)
    assert windows[0].end == intent.end_time + timedelta(hours=2)
    assert windows[1].start == intent.start_time - timedelta(hours=24)
    assert windows[1].end == intent.end_time + timedelta(hours=24)
    assert windows[2].start == intent.start_time - timedelta(days=7)
    assert windows[2].end == intent.end_time + timedelta(days=7)
    assert windows[3].start == intent.start_time
    assert windows[3].end == intent.start_time + timedelta(days=30)


def test_zero_flexibility_requests_exact_window(intent):
    first = build_search_windows(intent, 0)[0]

    assert (first.start, first.end) == (intent.start_time, intent.end_time)


# --- Search ---

def test_first_window_with_slots_wins(intent, events):
    found = [slot("2025-10-29T12:00:00-05:00")]
    source = FakeSlotSource([found, [slot("2025-10-30T12:00:00-05:00")]])

    result = search(source, intent, events)

    assert result.slots == found
    assert result.attempt_label == "requested_range"
    assert len(source.calls) == 1
    assert source.calls[0]["event_type_id"] == "12345"
    assert source.calls[0]["duration"] == 30
    assert source.calls[0]["time_zone"] == TIMEZONE
    assert events.names() == ["search_attempt", "slots_found"]


def test_empty_windows_expand_until_slots_found(intent):
    found = [slot("2025-11-03T10:00:00-06:00")]
    source = FakeSlotSource([[], [], found])

    result = search(source, intent)

    assert result.attempt_label == "plus_7d"
    assert len(source.calls) == 3

    # Each attempt's window contains the previous one
    for previous, current in zip(source.calls, source.calls[1:]):
        assert current["date_from"] <= previous["date_from"]
        assert current["date_to"] >= previous["date_to"]


def test_failed_attempt_continues_to_next_window(intent, events):
    found = [slot("2025-10-30T12:00:00-05:00")]
    source = FakeSlotSource([SlotSourceTimeout("Cal.com request timed out"), found])

    result = search(source, intent, events)

    assert result.attempt_label == "plus_24h"
    assert result.slots == found
    assert "error" in events.events[0][1]


def test_all_empty_raises_no_availability(intent, events):
    source = FakeSlotSource([[], [], [], []])

    with pytest.raises(NoAvailabilityError):
        search(source, intent, events)

    assert len(source.calls) == 4
    assert events.names()[-1] == "search_exhausted"


def test_mixed_failures_and_empty_raise_no_availability(intent):
    source = FakeSlotSource([SlotSourceError("boom", status_code=500), [], SlotSourceError("boom"), []])

    with pytest.raises(NoAvailabilityError):
        search(source, intent)


def test_all_transport_failures_count_as_no_availability(intent, events):
    source = FakeSlotSource([SlotSourceError("down", status_code=502)] * 4)

    with pytest.raises(NoAvailabilityError):
        search(source, intent, events)

    assert len(source.calls) == 4
    name, fields = events.events[-1]
    assert name == "search_exhausted"
    assert fields["transport_failures_only"] is True
    assert fields["last_error"] == "down"


def test_unexpected_errors_are_not_swallowed(intent):
    source = FakeSlotSource([RuntimeError("bug")])

    with pytest.raises(RuntimeError):
        search(source, intent)


# --- Rejected times ---

def test_rejected_slots_are_dropped_by_exact_start(intent):
    kept = slot("2025-10-29T12:30:00-05:00")
    source = FakeSlotSource([[slot("2025-10-29T12:00:00-05:00"), kept]])

    result = search(source, intent, rejected_times=["2025-10-29T12:00:00-05:00"])

    assert result.slots == [kept]


def test_window_with_only_rejected_slots_keeps_expanding(intent):
    source = FakeSlotSource([
        [slot("2025-10-29T12:00:00-05:00")],
        [slot("2025-10-30T12:00:00-05:00")],
    ])

    result = search(source, intent, rejected_times=["2025-10-29T12:00:00-05:00"])

    assert result.attempt_label == "plus_24h"


def test_rejection_compares_text_not_instants(intent):
    # Same instant written in UTC is a different string and is kept
    utc_slot = slot("2025-10-29T17:00:00+00:00")
    source = FakeSlotSource([[utc_slot]])

    result = search(source, intent, rejected_times=["2025-10-29T12:00:00-05:00"])

    assert result.slots == [utc_slot]
