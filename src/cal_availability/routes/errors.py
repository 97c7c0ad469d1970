from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from cal_availability.routes.dto import ErrorResponse


def error_response(error: str, code: str, status_code: int = 500, details: Any = None) -> JSONResponse:
    """Create the JSON error envelope."""
    body = ErrorResponse(
        error=error,
        code=code,
        details=details,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body, exclude_none=True))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report schema violations as 400 VALIDATION_ERROR instead of FastAPI's 422."""
    return error_response(
        "Request validation failed", "VALIDATION_ERROR", 400, jsonable_encoder(exc.errors())
    )
