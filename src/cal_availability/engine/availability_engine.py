"""
Availability Resolution Engine - Complete Integration Module

This module provides the main interface for resolving a natural-language
scheduling request into bookable slots:
- Intent resolution (LLM → heuristic → default)
- Expanding search over the slot source
- Categorization into available and proposed slots
- Timing metadata
"""

import logging
import time
from datetime import datetime
from typing import Optional

from cal_availability.clients.cal_client import SlotSource
from cal_availability.engine.dto import AvailabilityRequest, AvailabilityResult, ParsingMethod
from cal_availability.engine.events import EventSink, LoggingEventSink
from cal_availability.engine.services.categorizer import categorize
from cal_availability.engine.services.intent_workflow import IntentResolver
from cal_availability.engine.services.slot_search import ExpandingSearch, requested_range
from cal_availability.engine.utils.datetime_utils import get_timezone, now_in_timezone

logger = logging.getLogger(__name__)


class AvailabilityEngine:
    """
    Request-scoped orchestration of parsing, searching and categorizing.

    Collaborators are injected so the engine can be exercised without
    network access; it keeps no state between calls.
    """

    def __init__(
        self,
        slot_source: SlotSource,
        intent_resolver: Optional[IntentResolver] = None,
        events: Optional[EventSink] = None,
    ):
        self.events = events or LoggingEventSink()
        self.intent_resolver = intent_resolver or IntentResolver(events=self.events)
        self.search = ExpandingSearch(slot_source, events=self.events)

    def check_availability(
        self,
        request: AvailabilityRequest,
        now: Optional[datetime] = None,
    ) -> AvailabilityResult:
        """
        Resolve the request into categorized slots.

        Args:
            request: Validated availability request
            now: Reference instant; read from the clock once when omitted

        Returns:
            AvailabilityResult with slots and metadata

        Raises:
            NoAvailabilityError: all expansion windows were empty or failed
        """
        total_start = time.time()
        now = (
            now.astimezone(get_timezone(request.timezone))
            if now is not None
            else now_in_timezone(request.timezone)
        )

        self.events.emit(
            "availability_request",
            timezone=request.timezone,
            query=request.user_query,
            calendarId=request.calendar_id,
            flexibilityHours=request.flexibility_hours,
        )

        # Step 1: Parse user query
        intent_state = self.intent_resolver.run(
            query=request.user_query,
            now=now,
            timezone=request.timezone,
            rejected_times=request.rejected_times,
            prompt_template=request.system_prompt,
        )
        intent = intent_state["intent"]

        # Step 2: Get slots with expanding search
        search_result = self.search.find_slots(
            intent,
            flexibility_hours=request.flexibility_hours,
            duration=request.duration,
            timezone=request.timezone,
            calendar_id=request.calendar_id,
            rejected_times=request.rejected_times,
        )

        # Step 3: Categorize relative to the resolved intent
        categorized = categorize(search_result.slots, intent)

        total_ms = (time.time() - total_start) * 1000
        llm_ms = intent_state.get("llm_ms") if intent.method == ParsingMethod.PRIMARY else None

        self.events.emit(
            "availability_success",
            total_ms=round(total_ms, 1),
            available_count=len(categorized.available),
            proposed_count=len(categorized.proposed),
            parsing_method=intent.method.value,
            search_attempt=search_result.attempt_label,
        )

        return AvailabilityResult(
            intent=intent,
            categorized=categorized,
            search_range=requested_range(intent, request.flexibility_hours),
            search_attempt=search_result.attempt_label,
            cal_api_ms=search_result.cal_api_ms,
            total_ms=total_ms,
            llm_ms=llm_ms,
        )
