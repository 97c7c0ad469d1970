"""
Availability Engine Data Transfer Objects (DTOs)

This module contains all data models used by the engine components:
- Resolved intents and the LLM output contract
- Search windows and search results
- Slots, proposed slots and categorized results
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any

from pydantic import AwareDatetime, BaseModel, Field


class ParsingMethod(str, Enum):
    """Which stage of the parsing chain produced an intent."""
    PRIMARY = "primary"
    FALLBACK_HEURISTIC = "fallback-heuristic"
    FALLBACK_DEFAULT = "fallback-default"


class LLMDateParseResponse(BaseModel):
    """Output contract the language-understanding service must satisfy."""
    startTime: AwareDatetime
    endTime: AwareDatetime
    interpretation: str = Field(min_length=10, max_length=200)
    confidence: float = Field(ge=0, le=1)


@dataclass(frozen=True)
class Intent:
    """Resolved desired time window with confidence/method metadata."""
    start_time: datetime
    end_time: datetime
    interpretation: str
    confidence: float
    method: ParsingMethod

    def __post_init__(self):
        if self.start_time.tzinfo is None or self.end_time.tzinfo is None:
            raise ValueError("Intent times must be timezone-aware")
        if not self.end_time > self.start_time:
            raise ValueError("Intent end_time must be after start_time")


@dataclass(frozen=True)
class SearchWindow:
    """One escalating date range tried against the slot source."""
    label: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class Slot:
    """Bookable start/end pair; start is kept as the source reported it, plus an offset if it had none."""
    start: str
    end: str

    @property
    def start_datetime(self) -> datetime:
        return datetime.fromisoformat(self.start.replace("Z", "+00:00"))

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class ProposedSlot(Slot):
    """Slot outside the requested window, ranked by proximity."""
    distance_minutes: float = 0.0
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "distanceMinutes": self.distance_minutes,
            "reason": self.reason,
        }


@dataclass
class SearchResult:
    """Outcome of the expanding search."""
    slots: List[Slot]
    attempt_label: str
    window: SearchWindow
    cal_api_ms: float


@dataclass
class CategorizedSlots:
    available: List[Slot] = field(default_factory=list)
    proposed: List[ProposedSlot] = field(default_factory=list)


@dataclass
class AvailabilityRequest:
    """Engine input, already validated by the HTTP layer."""
    timezone: str
    user_query: str
    calendar_id: str
    flexibility_hours: float = 2
    duration: int = 30
    rejected_times: Optional[List[str]] = None
    system_prompt: Optional[str] = None


@dataclass
class AvailabilityResult:
    """Engine output: categorized slots plus parsing/search metadata."""
    intent: Intent
    categorized: CategorizedSlots
    search_range: SearchWindow
    search_attempt: str
    cal_api_ms: float
    total_ms: float
    llm_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the outbound JSON shape."""
        timings = {"calApiMs": self.cal_api_ms, "totalMs": self.total_ms}
        if self.llm_ms is not None:
            timings = {"llmMs": self.llm_ms, **timings}

        return {
            "success": True,
            "available": [slot.to_dict() for slot in self.categorized.available],
            "proposed": [slot.to_dict() for slot in self.categorized.proposed],
            "metadata": {
                "parsedIntent": {
                    "requestedStart": self.intent.start_time.isoformat(),
                    "requestedEnd": self.intent.end_time.isoformat(),
                    "interpretation": self.intent.interpretation,
                    "confidence": self.intent.confidence,
                    "parsingMethod": self.intent.method.value,
                },
                "searchRange": {
                    "start": self.search_range.start.isoformat(),
                    "end": self.search_range.end.isoformat(),
                },
                "searchAttempt": self.search_attempt,
                "timings": timings,
            },
        }
