from paperinsight.config import Settings
from paperinsight.config.config import LLMSettings
from paperinsight.llm import LLMConfig


def test_llm_settings_are_separate_from_adapter_config():
    settings = Settings(llm={"temperature": 0.2})

    assert isinstance(settings.llm, LLMSettings)
    assert settings.llm.temperature == 0.2
    assert LLMSettings is not LLMConfig


def test_nested_env_override(monkeypatch):
    monkeypatch.setenv("LLM__MAX_TOKENS", "123")
    monkeypatch.setenv("SCHEDULER__ENABLED", "false")

    settings = Settings()

    assert settings.llm.max_tokens == 123
    assert settings.scheduler.enabled is False
