"""
Config Evals -- environment parsing with tolerant fallbacks.
"""

import logging

from src.promptdesk.config import Settings, load_settings
from src.promptdesk.context import build_context


class TestLoadSettings:
    def test_defaults(self, monkeypatch):
        for name in ("TOKEN_LIMIT_BASIC", "PROMPTDESK_ENV", "ENV", "CORS_ORIGINS", "LLM_PROVIDER"):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.tokens.as_limits() == {"basic": 300, "intermediate": 600, "advanced": 900}
        assert settings.rate_limits.burst_max == 5
        assert settings.llm.provider is None
        assert settings.environment == "production"
        assert not settings.is_development

    def test_development_is_opt_in(self, monkeypatch):
        monkeypatch.delenv("PROMPTDESK_ENV", raising=False)
        monkeypatch.setenv("ENV", "development")
        assert load_settings().is_development
        assert not Settings().is_development

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("TOKEN_LIMIT_BASIC", "400")
        monkeypatch.setenv("RATE_LIMIT_BURST", "2")
        monkeypatch.setenv("LLM_PROVIDER", "anthropic")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.setenv("PROMPTDESK_ENV", "production")
        settings = load_settings()
        assert settings.tokens.basic == 400
        assert settings.rate_limits.burst_max == 2
        assert settings.llm.provider == "anthropic"
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert not settings.is_development

    def test_malformed_value_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("TOKEN_LIMIT_INTERMEDIATE", "six hundred")
        monkeypatch.setenv("LLM_TIMEOUT", "soon")
        with caplog.at_level(logging.WARNING):
            settings = load_settings()
        assert settings.tokens.intermediate == 600
        assert settings.llm.timeout == 60.0
        assert "TOKEN_LIMIT_INTERMEDIATE" in caplog.text


class TestContext:
    def test_limits_flow_into_collaborators(self, mock_llm, clock):
        settings = Settings(environment="test")
        settings.tokens.basic = 100
        settings.rate_limits.burst_max = 1
        context = build_context(settings, llm_client=mock_llm, clock=clock)
        assert context.governor.allowance("basic") == 80
        assert context.rate_limiter.policy("burst").max_requests == 1
        assert context.rate_limiter.policy("burst").skip_failed_requests

    def test_uptime_uses_clock(self, context, clock):
        clock.advance(12.5)
        assert context.uptime_seconds() == 12.5
