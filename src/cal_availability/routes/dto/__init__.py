"""
Routes Data Transfer Objects (DTOs)

This module contains all Pydantic models used by API routes:
- Request model for the check-availability endpoint
- Response models for slots, metadata and errors
- Health check response models
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any

from cal_availability.config import settings
from cal_availability.constants import REQUEST_LIMITS, US_TIMEZONES
from cal_availability.engine.dto import AvailabilityRequest
from cal_availability.engine.utils.datetime_utils import parse_iso_datetime


class AvailabilityRequestBody(BaseModel):
    """Request model for the check-availability endpoint."""
    timezone: str
    userQuery: str = Field(min_length=1, max_length=REQUEST_LIMITS.MAX_QUERY_LENGTH)
    calendarId: str = Field(min_length=1)
    flexibilityHours: float = Field(
        default_factory=lambda: settings.DEFAULT_FLEXIBILITY_HOURS,
        ge=REQUEST_LIMITS.MIN_FLEXIBILITY_HOURS,
        le=REQUEST_LIMITS.MAX_FLEXIBILITY_HOURS,
    )
    duration: int = Field(
        default_factory=lambda: settings.DEFAULT_DURATION_MINUTES,
        ge=REQUEST_LIMITS.MIN_DURATION_MINUTES,
        le=REQUEST_LIMITS.MAX_DURATION_MINUTES,
    )
    rejectedTimes: Optional[List[str]] = Field(default=None, max_length=REQUEST_LIMITS.MAX_REJECTED_TIMES)
    systemPrompt: Optional[str] = Field(default=None, max_length=REQUEST_LIMITS.MAX_SYSTEM_PROMPT_LENGTH)

    @field_validator("timezone")
    @classmethod
    def _supported_timezone(cls, value: str) -> str:
        if value not in US_TIMEZONES:
            raise ValueError(f"timezone must be one of: {', '.join(US_TIMEZONES)}")
        return value

    @field_validator("rejectedTimes")
    @classmethod
    def _rejected_times_have_offsets(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        for item in value or []:
            if parse_iso_datetime(item) is None:
                raise ValueError(f"rejectedTimes entry is not an ISO 8601 datetime with offset: {item!r}")
        return value

    def to_engine_request(self) -> AvailabilityRequest:
        return AvailabilityRequest(
            timezone=self.timezone,
            user_query=self.userQuery,
            calendar_id=self.calendarId,
            flexibility_hours=self.flexibilityHours,
            duration=self.duration,
            rejected_times=self.rejectedTimes,
            system_prompt=self.systemPrompt,
        )


class SlotModel(BaseModel):
    start: str
    end: str


class ProposedSlotModel(SlotModel):
    distanceMinutes: float
    reason: str


class ParsedIntentModel(BaseModel):
    requestedStart: str
    requestedEnd: str
    interpretation: str
    confidence: float
    parsingMethod: str


class SearchRangeModel(BaseModel):
    start: str
    end: str


class TimingsModel(BaseModel):
    llmMs: Optional[float] = None
    calApiMs: float
    totalMs: float


class AvailabilityMetadata(BaseModel):
    parsedIntent: ParsedIntentModel
    searchRange: SearchRangeModel
    searchAttempt: str
    timings: TimingsModel


class AvailabilityResponse(BaseModel):
    """Response model for the check-availability endpoint."""
    success: bool = True
    available: List[SlotModel]
    proposed: List[ProposedSlotModel]
    metadata: AvailabilityMetadata


class ErrorResponse(BaseModel):
    """Error envelope shared by every endpoint."""
    success: bool = False
    error: str
    code: str
    details: Optional[Any] = None
    timestamp: str


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    service: Optional[str] = None
    components: Optional[Dict[str, str]] = None
