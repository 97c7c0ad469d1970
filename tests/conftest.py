import json
from datetime import datetime, timedelta
from typing import List

import pytest
import pytz
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage

from cal_availability.clients.cal_client import SlotSource
from cal_availability.config import settings
from cal_availability.engine.dto import Slot
from cal_availability.engine.events import EventSink
from cal_availability.engine.services.intent_workflow import IntentResolver
from cal_availability.engine.services.llm_parser import LLMDateParser

TIMEZONE = "America/Chicago"
CHICAGO = pytz.timezone(TIMEZONE)


# --- Mocks ---

class RecordingEventSink(EventSink):
    def __init__(self):
        self.events = []

    def emit(self, event, level=None, **fields):
        self.events.append((event, fields))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


class FakeSlotSource(SlotSource):
    """Returns one scripted outcome per call: a list of slots or an exception."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def get_slots(self, date_from, date_to, event_type_id, duration, time_zone):
        self.calls.append({
            "date_from": date_from,
            "date_to": date_to,
            "event_type_id": event_type_id,
            "duration": duration,
            "time_zone": time_zone,
        })
        outcome = self.outcomes.pop(0) if self.outcomes else []
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TimeoutChatModel:
    def invoke(self, messages):
        raise TimeoutError("LLM call timed out")


class RecordingChatModel:
    def __init__(self, reply: str):
        self.reply = reply
        self.prompts = []

    def invoke(self, messages):
        self.prompts.append(messages[-1].content)
        return AIMessage(content=self.reply)


def llm_reply(start: str, end: str, confidence: float = 0.9,
              interpretation: str = "User asked for tomorrow around lunch") -> str:
    return json.dumps({
        "startTime": start,
        "endTime": end,
        "interpretation": interpretation,
        "confidence": confidence,
    })


def slot(start: str, minutes: int = 30) -> Slot:
    start_dt = datetime.fromisoformat(start)
    return Slot(start=start, end=(start_dt + timedelta(minutes=minutes)).isoformat())


def resolver_with_reply(reply: str, events: EventSink = None) -> IntentResolver:
    return IntentResolver(
        llm_parser=LLMDateParser(model=FakeListChatModel(responses=[reply])),
        events=events,
    )


def failing_resolver(events: EventSink = None) -> IntentResolver:
    return IntentResolver(llm_parser=LLMDateParser(model=TimeoutChatModel()), events=events)


# --- Fixtures ---

@pytest.fixture
def now():
    # Tuesday 2025-10-28 09:15 CDT (-05:00)
    return CHICAGO.localize(datetime(2025, 10, 28, 9, 15))


@pytest.fixture
def events():
    return RecordingEventSink()


@pytest.fixture(autouse=True)
def anthropic_intent_llm(monkeypatch):
    # Keep a developer's .env from switching the intent provider under test
    monkeypatch.setattr(settings, "INTENT_LLM_PROVIDER", "anthropic")
    monkeypatch.setattr(settings, "INTENT_LLM_API_KEY", "")
