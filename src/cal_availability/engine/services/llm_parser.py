"""
Primary Intent Parser

Delegates free text to a chat model with a strict JSON output contract:
- Bounded wait (client timeout, no client retries)
- JSON object extracted from the reply, validated against LLMDateParseResponse
- end after start, explicit offsets, confidence threshold

Any violation returns None so the caller moves on to the heuristic parser.
"""

import json
import logging
import re
import time
from typing import Iterable, Optional

from langchain.chat_models import init_chat_model
from langchain_core.messages import HumanMessage
from pydantic import ValidationError

from cal_availability.engine.constants import INTENT_LLM_SETTINGS
from cal_availability.engine.dto import LLMDateParseResponse
from cal_availability.engine.events import EventSink
from cal_availability.engine.prompts import build_date_parsing_prompt

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.S)


def create_intent_model():
    """Create the chat model used for date parsing."""
    return init_chat_model(
        model=INTENT_LLM_SETTINGS.MODEL,
        model_provider=INTENT_LLM_SETTINGS.PROVIDER,
        api_key=INTENT_LLM_SETTINGS.API_KEY,
        temperature=INTENT_LLM_SETTINGS.TEMPERATURE,
        max_tokens=INTENT_LLM_SETTINGS.MAX_TOKENS,
        timeout=INTENT_LLM_SETTINGS.TIMEOUT_SECONDS,
        max_retries=0,
    )


def extract_json(text: str) -> str:
    """
    Best effort to extract a single JSON object from LLM text.
    Falls back to raw text if no braces found.
    """
    match = _JSON_OBJECT_RE.search(text)
    return match.group(0) if match else text


def _message_text(content) -> str:
    """Text of a chat model reply; content may be a string or a list of blocks."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class LLMDateParser:
    """
    Date parser backed by a LangChain chat model.

    The model is created lazily so that a missing provider package or key
    degrades to the fallback parser instead of failing the request.
    """

    def __init__(
        self,
        model=None,
        min_confidence: float = INTENT_LLM_SETTINGS.MIN_CONFIDENCE,
        events: Optional[EventSink] = None,
    ):
        self._model = model
        self.min_confidence = min_confidence
        self.events = events or EventSink()

    @property
    def model(self):
        if self._model is None:
            self._model = create_intent_model()
        return self._model

    def parse(
        self,
        current_time: str,
        timezone: str,
        user_query: str,
        rejected_times: Optional[Iterable[str]] = None,
        prompt_template: Optional[str] = None,
    ) -> Optional[LLMDateParseResponse]:
        """
        Parse a natural language date query.

        Returns:
            Validated response, or None if parsing fails or confidence is too low
        """
        start_time = time.time()
        prompt = build_date_parsing_prompt(
            current_time, timezone, user_query, rejected_times, prompt_template
        )

        try:
            response = self.model.invoke([HumanMessage(content=prompt)])
        except TimeoutError:
            logger.error("LLM call timed out")
            return None
        except Exception as e:
            # Provider SDKs raise their own timeout/transport types
            logger.error(f"LLM API error: {str(e)}")
            return None

        text = _message_text(getattr(response, "content", None))
        if not text.strip():
            logger.error("No text content in LLM response")
            return None

        try:
            raw = json.loads(extract_json(text))
        except json.JSONDecodeError:
            logger.error(f"Failed to parse LLM JSON: {text}")
            return None

        validated = self.validate(raw)
        if validated is None:
            return None

        latency_ms = (time.time() - start_time) * 1000
        usage = getattr(response, "usage_metadata", None) or {}
        self.events.emit(
            "llm_parse_success",
            latency_ms=round(latency_ms, 1),
            confidence=validated.confidence,
            query=user_query,
            input_tokens=usage.get("input_tokens"),
            output_tokens=usage.get("output_tokens"),
        )
        return validated

    def validate(self, raw) -> Optional[LLMDateParseResponse]:
        """Apply the output contract to a decoded JSON value."""
        if not isinstance(raw, dict):
            logger.error("LLM response is not a JSON object")
            return None

        # Timestamps must arrive as ISO strings, not epoch numbers
        if not isinstance(raw.get("startTime"), str) or not isinstance(raw.get("endTime"), str):
            logger.error("LLM response timestamps are not strings")
            return None

        try:
            validated = LLMDateParseResponse.model_validate(raw)
        except ValidationError as e:
            logger.error(f"LLM response validation failed: {e}")
            return None

        if validated.confidence < self.min_confidence:
            logger.warning(
                f"LLM confidence too low: {validated.confidence}, using fallback"
            )
            return None

        if validated.endTime <= validated.startTime:
            logger.error("End time before start time")
            return None

        return validated
