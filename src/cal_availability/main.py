import logging
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from cal_availability.config import settings
from cal_availability.routes import health, availability
from cal_availability.routes.errors import validation_exception_handler
from cal_availability.constants import APP_SETTINGS

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)

logger = logging.getLogger(__name__)

def create_app() -> FastAPI:
    app = FastAPI(
        title=APP_SETTINGS.APP_NAME,
        version=APP_SETTINGS.VERSION,
        description=APP_SETTINGS.DESCRIPTION
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        max_age=86400,
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.on_event("startup")
    async def startup_event():
        """Validate configuration on startup"""
        from cal_availability.config import validate_required_keys
        try:
            validate_required_keys()
            logger.info("Configuration validation passed")
        except Exception as e:
            # Requests will answer CONFIG_ERROR until the keys are set
            logger.error(f"Configuration validation failed: {e}")

    @app.get("/")
    async def root():
        return {
            "service": APP_SETTINGS.APP_NAME,
            "version": APP_SETTINGS.VERSION,
            "endpoints": {
                "/check-availability": {
                    "method": "POST",
                    "description": APP_SETTINGS.DESCRIPTION,
                    "requiredFields": {
                        "timezone": "US timezone (America/New_York, etc.)",
                        "userQuery": "Natural language date/time query",
                        "calendarId": "Cal.com event type ID",
                    },
                    "optionalFields": {
                        "flexibilityHours": f"number (default: {settings.DEFAULT_FLEXIBILITY_HOURS:g})",
                        "systemPrompt": "Custom LLM prompt",
                        "rejectedTimes": "Array of ISO 8601 timestamps to avoid",
                        "duration": f"Meeting duration in minutes (default: {settings.DEFAULT_DURATION_MINUTES})",
                    },
                },
            },
        }

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(availability.router, prefix="/check-availability", tags=["Availability"])

    return app


app = create_app()

def main():
    import uvicorn

    uvicorn.run(
        "cal_availability.main:app",
        host="0.0.0.0",
        port=settings.APP_PORT,
        reload=settings.APP_ENV == "development"
    )

if __name__ == "__main__":
    main()
