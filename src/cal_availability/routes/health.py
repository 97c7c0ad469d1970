from fastapi import APIRouter

from cal_availability.config import get_intent_llm_api_key, settings
from cal_availability.routes.dto import HealthResponse

router = APIRouter()

@router.get("/", response_model=HealthResponse, response_model_exclude_none=True)
def health_check():
    return {"status": "ok"}

@router.get("/config", response_model=HealthResponse)
def config_health_check():
    """
    Report which API keys are configured, without exposing their values.
    """
    components = {
        "intent_llm": "configured" if get_intent_llm_api_key() else "missing",
        "cal_com": "configured" if settings.CAL_API_KEY else "missing",
    }
    status = "ok" if all(value == "configured" for value in components.values()) else "degraded"
    return {"status": status, "service": "availability", "components": components}
