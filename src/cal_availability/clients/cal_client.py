"""
Cal.com Slot Source Client
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Dict, List

import requests

from cal_availability.config import settings
from cal_availability.engine.constants import SEARCH_SETTINGS
from cal_availability.engine.dto import Slot
from cal_availability.engine.utils.datetime_utils import localize_naive
from cal_availability.exceptions import SlotSourceError, SlotSourceTimeout

# Set up logging
logger = logging.getLogger(__name__)


class SlotSource(ABC):
    """
    Interface for anything that can report bookable slots.

    Implementations raise SlotSourceError for transport problems.
    """

    @abstractmethod
    def get_slots(
        self,
        date_from: datetime,
        date_to: datetime,
        event_type_id: str,
        duration: int,
        time_zone: str,
    ) -> List[Slot]:
        ...


def slots_from_response(payload: Dict[str, Any], duration: int, time_zone: str) -> List[Slot]:
    """
    Transform the Cal.com slots payload into Slot objects.

    The payload maps calendar dates to lists of {"time": iso}; each entry only
    carries a start, so the end is start + duration. Starts without an offset
    are read as wall-clock times in time_zone.
    """
    slots = []
    by_date = (payload.get("data") or {}).get("slots") or {}
    for _date, time_slots in by_date.items():
        for entry in time_slots:
            start = entry.get("time")
            if not start:
                continue
            start_dt = datetime.fromisoformat(start.replace("Z", "+00:00"))
            if start_dt.tzinfo is None:
                start_dt = localize_naive(start_dt, time_zone)
                start = start_dt.isoformat()
            end = (start_dt + timedelta(minutes=duration)).isoformat()
            slots.append(Slot(start=start, end=end))
    return slots


class CalComClient(SlotSource):
    """
    Cal.com v2 implementation of the SlotSource interface.

    Every request carries its own timeout; nothing is retried here.
    """

    def __init__(
        self,
        api_key: str = None,
        base_url: str = None,
        timeout: float = SEARCH_SETTINGS.SLOT_SOURCE_TIMEOUT_SECONDS,
        session: requests.Session = None,
    ):
        """
        Initialize the Cal.com client.

        Args:
            api_key: Cal.com API key (defaults to settings.CAL_API_KEY)
            base_url: API root (defaults to settings.CAL_API_URL)
            timeout: Per-request timeout in seconds
            session: Optional requests session to reuse connections
        """
        self.api_key = api_key if api_key is not None else settings.CAL_API_KEY
        self.base_url = (base_url or settings.CAL_API_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _get(self, path: str, params: Dict[str, Any] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(
                url, params=params, headers=self._headers(), timeout=self.timeout
            )
        except requests.Timeout as e:
            logger.error("Cal.com API timeout")
            raise SlotSourceTimeout("Cal.com API timeout") from e
        except requests.RequestException as e:
            logger.error(f"Cal.com API request failed: {str(e)}")
            raise SlotSourceError(f"Cal.com API request failed: {str(e)}") from e

        if not response.ok:
            logger.error(json.dumps({
                "event": "cal_api_error",
                "status": response.status_code,
                "statusText": response.reason,
                "error": response.text,
            }))
            raise SlotSourceError(
                f"Cal.com API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise SlotSourceError("Cal.com API returned invalid JSON") from e

    def get_slots(
        self,
        date_from: datetime,
        date_to: datetime,
        event_type_id: str,
        duration: int,
        time_zone: str,
    ) -> List[Slot]:
        """
        Query available slots between two instants.

        Args:
            date_from: Range start (timezone-aware)
            date_to: Range end (timezone-aware)
            event_type_id: Cal.com event type id (the request's calendarId)
            duration: Meeting length in minutes
            time_zone: IANA zone the slots should be reported in

        Returns:
            List of Slot objects, in the order Cal.com reported them
        """
        params = {
            "startTime": date_from.isoformat(),
            "endTime": date_to.isoformat(),
            "eventTypeId": event_type_id,
            "duration": str(duration),
            "timeZone": time_zone,
        }

        logger.info(json.dumps({
            "event": "cal_api_request",
            "params": {
                "dateFrom": params["startTime"],
                "dateTo": params["endTime"],
                "eventTypeId": event_type_id,
            },
        }))

        payload = self._get("/slots/available", params=params)

        try:
            slots = slots_from_response(payload, duration, time_zone)
        except (AttributeError, TypeError, ValueError) as e:
            raise SlotSourceError(f"Cal.com API returned an unexpected payload: {str(e)}") from e

        logger.info(json.dumps({"event": "cal_api_success", "slots_count": len(slots)}))
        return slots

    def get_event_types(self) -> List[Dict[str, Any]]:
        """
        List event types so operators can find the id to use as calendarId.

        Returns:
            Flat list of {"id", "title", "slug", "length", "hidden"} dicts
        """
        payload = self._get("/event-types")
        data = payload.get("data") or {}

        event_types = []
        if isinstance(data, dict) and data.get("eventTypeGroups"):
            for group in data["eventTypeGroups"]:
                event_types.extend(group.get("eventTypes") or [])
        elif isinstance(data, list):
            event_types = data

        return [
            {
                "id": event_type.get("id"),
                "title": event_type.get("title", ""),
                "slug": event_type.get("slug", ""),
                "length": event_type.get("length") or event_type.get("lengthInMinutes"),
                "hidden": bool(event_type.get("hidden", False)),
            }
            for event_type in event_types
        ]
