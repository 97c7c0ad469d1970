import pytest

from cal_availability.config import (
    get_intent_llm_api_key,
    intent_llm_key_name,
    settings,
    validate_required_keys,
)
from cal_availability.exceptions import ConfigurationError


@pytest.fixture
def keys(monkeypatch):
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "sk-ant-test")
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    monkeypatch.setattr(settings, "CAL_API_KEY", "cal_test")
    return monkeypatch


def test_anthropic_provider_uses_anthropic_key(keys):
    assert intent_llm_key_name() == "ANTHROPIC_API_KEY"
    assert get_intent_llm_api_key() == "sk-ant-test"
    validate_required_keys()


def test_openai_provider_needs_openai_key(keys):
    keys.setattr(settings, "INTENT_LLM_PROVIDER", "openai")

    with pytest.raises(ConfigurationError) as exc_info:
        validate_required_keys()

    assert "OPENAI_API_KEY" in str(exc_info.value)
    assert "ANTHROPIC_API_KEY" not in str(exc_info.value)


def test_openai_provider_with_openai_key(keys):
    keys.setattr(settings, "INTENT_LLM_PROVIDER", "openai")
    keys.setattr(settings, "OPENAI_API_KEY", "sk-openai-test")

    assert get_intent_llm_api_key() == "sk-openai-test"
    validate_required_keys()


def test_explicit_intent_key_wins(keys):
    keys.setattr(settings, "INTENT_LLM_PROVIDER", "openai")
    keys.setattr(settings, "INTENT_LLM_API_KEY", "sk-intent")

    assert intent_llm_key_name() == "INTENT_LLM_API_KEY"
    assert get_intent_llm_api_key() == "sk-intent"
    validate_required_keys()


def test_unknown_provider_requires_intent_key(keys):
    keys.setattr(settings, "INTENT_LLM_PROVIDER", "google_genai")

    with pytest.raises(ConfigurationError) as exc_info:
        validate_required_keys()

    assert "INTENT_LLM_API_KEY" in str(exc_info.value)


def test_missing_cal_key(keys):
    keys.setattr(settings, "CAL_API_KEY", "  ")

    with pytest.raises(ConfigurationError) as exc_info:
        validate_required_keys()

    assert "CAL_API_KEY" in str(exc_info.value)
