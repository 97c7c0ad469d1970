from fastapi import APIRouter, Depends
import logging
import time
import json

from cal_availability.clients.cal_client import CalComClient
from cal_availability.config import validate_required_keys
from cal_availability.engine.availability_engine import AvailabilityEngine
from cal_availability.exceptions import ConfigurationError, NoAvailabilityError, SlotSourceError
from cal_availability.routes.dto import AvailabilityRequestBody, AvailabilityResponse, ErrorResponse
from cal_availability.routes.errors import error_response

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter()


def get_engine() -> AvailabilityEngine:
    """Build a fresh engine per request; nothing is shared between requests."""
    return AvailabilityEngine(slot_source=CalComClient())


def _log_failure(level: int, request_start: float, error: Exception) -> None:
    logger.log(level, json.dumps({
        "event": "availability_error",
        "total_ms": round((time.time() - request_start) * 1000, 1),
        "error": str(error),
    }))


@router.post(
    "",
    response_model=AvailabilityResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
def check_availability(
    request: AvailabilityRequestBody,
    engine: AvailabilityEngine = Depends(get_engine),
):
    """
    Resolve a natural-language scheduling request into calendar slots.

    Flow:
    1. Parse the user query into a time window (LLM, then heuristics)
    2. Search the calendar with expanding windows until slots are found
    3. Return slots inside the window as available, the rest as proposed
    """
    request_start = time.time()

    try:
        validate_required_keys()
    except ConfigurationError as e:
        logger.error(str(e))
        return error_response("Service configuration error", "CONFIG_ERROR", 500)

    try:
        result = engine.check_availability(request.to_engine_request())
        return result.to_dict()

    except NoAvailabilityError as e:
        _log_failure(logging.WARNING, request_start, e)
        # 200 because it's a valid response, just no slots
        return error_response(
            str(e),
            "NO_AVAILABILITY",
            200,
            {"suggestion": "Try a different time range or contact directly"},
        )

    except SlotSourceError as e:
        _log_failure(logging.ERROR, request_start, e)
        return error_response("Failed to fetch calendar availability", "CAL_API_ERROR", 503, str(e))

    except Exception as e:
        _log_failure(logging.ERROR, request_start, e)
        logger.exception("Unhandled availability error")
        return error_response("Failed to check availability", "PROCESSING_ERROR", 500, str(e))
