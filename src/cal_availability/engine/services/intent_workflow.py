"""
Intent Resolution Workflow

LangGraph chain that turns free text into an Intent. Each node is a fallible
step; conditional edges route on whether the step produced an Intent:

    primary ──(intent)──────────────────────────────► END
       └─(none)─► heuristic ──(intent)─► avoid_rejected ─► END
                      └─(none)─► default ──┘

The chain never fails; the default step always yields an Intent.
"""

import logging
import time
from datetime import datetime
from typing import List, Optional

from langgraph.graph import END, START, StateGraph
from typing_extensions import TypedDict

from cal_availability.engine.dto import Intent, ParsingMethod
from cal_availability.engine.events import EventSink
from cal_availability.engine.services.fallback_parser import (
    avoid_rejected_times,
    default_intent,
    heuristic_parse,
)
from cal_availability.engine.services.llm_parser import LLMDateParser

logger = logging.getLogger(__name__)


class IntentState(TypedDict, total=False):
    query: str
    now: datetime
    timezone: str
    rejected_times: Optional[List[str]]
    prompt_template: Optional[str]
    intent: Optional[Intent]
    llm_ms: Optional[float]


class IntentResolver:
    """Primary → heuristic → default parsing chain."""

    def __init__(self, llm_parser: Optional[LLMDateParser] = None, events: Optional[EventSink] = None):
        self.events = events or EventSink()
        self.llm_parser = llm_parser or LLMDateParser(events=self.events)
        self.graph = self._build_graph()

    def _build_graph(self):
        builder = StateGraph(IntentState)

        # Nodes
        builder.add_node("primary", self.primary)
        builder.add_node("heuristic", self.heuristic)
        builder.add_node("default", self.default)
        builder.add_node("avoid_rejected", self.avoid_rejected)

        # Edges
        builder.add_edge(START, "primary")
        builder.add_conditional_edges("primary", self._after_primary)
        builder.add_conditional_edges("heuristic", self._after_heuristic)
        builder.add_edge("default", "avoid_rejected")
        builder.add_edge("avoid_rejected", END)

        return builder.compile()

    @staticmethod
    def _after_primary(state: IntentState):
        return END if state.get("intent") else "heuristic"

    @staticmethod
    def _after_heuristic(state: IntentState):
        return "avoid_rejected" if state.get("intent") else "default"

    def primary(self, state: IntentState) -> IntentState:
        started = time.time()
        parsed = self.llm_parser.parse(
            current_time=state["now"].isoformat(),
            timezone=state["timezone"],
            user_query=state["query"],
            rejected_times=state.get("rejected_times"),
            prompt_template=state.get("prompt_template"),
        )
        llm_ms = (time.time() - started) * 1000

        if parsed is None:
            logger.info("LLM parsing failed or low confidence, using heuristic fallback")
            return {"intent": None, "llm_ms": llm_ms}

        intent = Intent(
            start_time=parsed.startTime,
            end_time=parsed.endTime,
            interpretation=parsed.interpretation,
            confidence=parsed.confidence,
            method=ParsingMethod.PRIMARY,
        )
        return {"intent": intent, "llm_ms": llm_ms}

    def heuristic(self, state: IntentState) -> IntentState:
        intent = heuristic_parse(state["query"], state["now"], state["timezone"])
        if intent is None:
            logger.info("Date grammar found no candidates, using default slot")
        return {"intent": intent}

    def default(self, state: IntentState) -> IntentState:
        return {"intent": default_intent(state["now"], state["timezone"])}

    def avoid_rejected(self, state: IntentState) -> IntentState:
        return {
            "intent": avoid_rejected_times(
                state["intent"], state.get("rejected_times"), state["timezone"]
            )
        }

    def run(
        self,
        query: str,
        now: datetime,
        timezone: str,
        rejected_times: Optional[List[str]] = None,
        prompt_template: Optional[str] = None,
    ) -> IntentState:
        """Run the chain and return its final state (intent plus llm_ms)."""
        final_state = self.graph.invoke({
            "query": query,
            "now": now,
            "timezone": timezone,
            "rejected_times": rejected_times,
            "prompt_template": prompt_template,
            "intent": None,
            "llm_ms": None,
        })

        intent = final_state["intent"]
        self.events.emit(
            "intent_resolved",
            method=intent.method.value,
            confidence=intent.confidence,
            start=intent.start_time.isoformat(),
            end=intent.end_time.isoformat(),
        )
        return final_state

    def resolve_intent(
        self,
        query: str,
        now: datetime,
        timezone: str,
        rejected_times: Optional[List[str]] = None,
        prompt_template: Optional[str] = None,
    ) -> Intent:
        """
        Resolve free text into an Intent.

        Args:
            query: User's natural language request
            now: Reference instant, read once by the caller
            timezone: Caller's IANA zone
            rejected_times: ISO timestamps the user already declined
            prompt_template: Optional replacement for the built-in LLM prompt

        Returns:
            Intent; never raises for parsing problems
        """
        return self.run(query, now, timezone, rejected_times, prompt_template)["intent"]
