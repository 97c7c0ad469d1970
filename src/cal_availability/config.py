from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

from cal_availability.exceptions import ConfigurationError


class Settings(BaseSettings):
    APP_ENV: str = "development"
    APP_PORT: int = 8005
    LOG_LEVEL: str = "INFO"

    # API Keys
    ANTHROPIC_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    CAL_API_KEY: str = ""

    # Cal.com
    CAL_API_URL: str = "https://api.cal.com/v2"
    CALENDAR_ID: str = ""  # Default event type id for scripts

    # Request defaults
    DEFAULT_FLEXIBILITY_HOURS: float = 2
    DEFAULT_DURATION_MINUTES: int = 30

    # Intent LLM Configuration (can be changed easily)
    INTENT_LLM_API_KEY: str = ""  # Overrides the provider key below when set
    INTENT_LLM_PROVIDER: str = "anthropic"  # anthropic or openai
    INTENT_LLM_MODEL: str = "claude-3-haiku-20240307"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Provider SDKs read their own keys from the environment
load_dotenv()

settings = Settings()

# Provider key used when INTENT_LLM_API_KEY is not set
PROVIDER_API_KEYS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def intent_llm_key_name() -> str:
    """Name of the setting that holds the intent LLM's API key."""
    if settings.INTENT_LLM_API_KEY:
        return "INTENT_LLM_API_KEY"
    return PROVIDER_API_KEYS.get(settings.INTENT_LLM_PROVIDER, "INTENT_LLM_API_KEY")


def get_intent_llm_api_key() -> str:
    return getattr(settings, intent_llm_key_name())


def validate_required_keys():
    """Validate that all required API keys are present"""
    required_keys = [
        (intent_llm_key_name(), get_intent_llm_api_key()),
        ("CAL_API_KEY", settings.CAL_API_KEY),
    ]

    missing_keys = []
    for key_name, key_value in required_keys:
        if not key_value or key_value.strip() == "":
            missing_keys.append(key_name)

    if missing_keys:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing_keys)}. "
            f"Please check your .env file."
        )
