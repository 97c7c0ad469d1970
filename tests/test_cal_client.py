from datetime import datetime
from unittest.mock import MagicMock

import pytest
import requests

from cal_availability.clients.cal_client import CalComClient, SlotSource, slots_from_response
from cal_availability.engine.dto import Slot
from cal_availability.exceptions import SlotSourceError, SlotSourceTimeout

from conftest import CHICAGO, TIMEZONE


# --- Mocks ---

def mock_response(payload=None, status_code=200, reason="OK", text=""):
    response = MagicMock()
    response.ok = 200 <= status_code < 400
    response.status_code = status_code
    response.reason = reason
    response.text = text
    response.json.return_value = payload
    return response


# --- Fixtures ---

@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return CalComClient(api_key="cal_test_key", base_url="https://cal.example/v2/", session=session)


def get_slots(client):
    return client.get_slots(
        date_from=CHICAGO.localize(datetime(2025, 10, 29, 9, 30)),
        date_to=CHICAGO.localize(datetime(2025, 10, 29, 15, 30)),
        event_type_id="12345",
        duration=30,
        time_zone=TIMEZONE,
    )


# --- Tests ---

def test_get_slots_sends_expected_request(client, session):
    session.get.return_value = mock_response({"data": {"slots": {}}})

    get_slots(client)

    args, kwargs = session.get.call_args
    assert args[0] == "https://cal.example/v2/slots/available"
    assert kwargs["params"] == {
        "startTime": "2025-10-29T09:30:00-05:00",
        "endTime": "2025-10-29T15:30:00-05:00",
        "eventTypeId": "12345",
        "duration": "30",
        "timeZone": TIMEZONE,
    }
    assert kwargs["headers"]["Authorization"] == "Bearer cal_test_key"
    assert kwargs["timeout"] == 5


def test_get_slots_flattens_dates_and_adds_duration(client, session):
    session.get.return_value = mock_response({
        "status": "success",
        "data": {
            "slots": {
                "2025-10-29": [
                    {"time": "2025-10-29T11:30:00-05:00"},
                    {"time": "2025-10-29T12:00:00-05:00"},
                ],
                "2025-10-30": [{"time": "2025-10-30T16:00:00.000Z"}],
            }
        },
    })

    slots = get_slots(client)

    assert slots == [
        Slot("2025-10-29T11:30:00-05:00", "2025-10-29T12:00:00-05:00"),
        Slot("2025-10-29T12:00:00-05:00", "2025-10-29T12:30:00-05:00"),
        Slot("2025-10-30T16:00:00.000Z", "2025-10-30T16:30:00+00:00"),
    ]


def test_missing_slots_key_means_no_slots():
    assert slots_from_response({"data": {}}, 30, TIMEZONE) == []
    assert slots_from_response({}, 30, TIMEZONE) == []


def test_start_without_offset_is_read_in_request_zone():
    payload = {"data": {"slots": {"2025-10-29": [{"time": "2025-10-29T12:00:00"}]}}}

    slots = slots_from_response(payload, 30, TIMEZONE)

    assert slots == [Slot("2025-10-29T12:00:00-05:00", "2025-10-29T12:30:00-05:00")]
    assert slots[0].start_datetime == CHICAGO.localize(datetime(2025, 10, 29, 12, 0))


def test_get_slots_localizes_starts_without_offset(client, session):
    session.get.return_value = mock_response({
        "data": {"slots": {"2025-11-03": [{"time": "2025-11-03T09:00:00"}]}},
    })

    slots = get_slots(client)

    # Standard time after the November change
    assert slots == [Slot("2025-11-03T09:00:00-06:00", "2025-11-03T09:30:00-06:00")]
    assert slots[0].start_datetime.tzinfo is not None


def test_slot_source_requires_get_slots():
    class Incomplete(SlotSource):
        pass

    with pytest.raises(TypeError):
        Incomplete()


def test_http_error_raises_with_status(client, session):
    session.get.return_value = mock_response(status_code=401, reason="Unauthorized", text="bad key")

    with pytest.raises(SlotSourceError) as exc_info:
        get_slots(client)

    assert exc_info.value.status_code == 401
    assert "401" in str(exc_info.value)


def test_timeout_raises_slot_source_timeout(client, session):
    session.get.side_effect = requests.Timeout("read timed out")

    with pytest.raises(SlotSourceTimeout):
        get_slots(client)


def test_connection_error_raises_slot_source_error(client, session):
    session.get.side_effect = requests.ConnectionError("refused")

    with pytest.raises(SlotSourceError) as exc_info:
        get_slots(client)

    assert not isinstance(exc_info.value, SlotSourceTimeout)


def test_invalid_json_raises_slot_source_error(client, session):
    response = mock_response()
    response.json.side_effect = ValueError("Expecting value")
    session.get.return_value = response

    with pytest.raises(SlotSourceError):
        get_slots(client)


def test_unexpected_payload_raises_slot_source_error(client, session):
    session.get.return_value = mock_response({"data": {"slots": {"2025-10-29": [{"time": "not a time"}]}}})

    with pytest.raises(SlotSourceError):
        get_slots(client)


def test_get_event_types_flattens_groups(client, session):
    session.get.return_value = mock_response({
        "data": {
            "eventTypeGroups": [
                {"eventTypes": [{"id": 1, "title": "Intro", "slug": "intro", "length": 30}]},
                {"eventTypes": [{"id": 2, "title": "Deep dive", "slug": "deep", "length": 60, "hidden": True}]},
            ]
        }
    })

    event_types = client.get_event_types()

    assert session.get.call_args[0][0] == "https://cal.example/v2/event-types"
    assert [e["id"] for e in event_types] == [1, 2]
    assert event_types[1] == {"id": 2, "title": "Deep dive", "slug": "deep", "length": 60, "hidden": True}


def test_get_event_types_accepts_flat_list(client, session):
    session.get.return_value = mock_response({
        "data": [{"id": 7, "title": "Call", "slug": "call", "lengthInMinutes": 15}]
    })

    assert client.get_event_types() == [
        {"id": 7, "title": "Call", "slug": "call", "length": 15, "hidden": False}
    ]
