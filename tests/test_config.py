"""
test_config - 환경변수 기반 설정 테스트
"""

import logging

import pytest

from flow_relay.config import Settings, setup_logging
from flow_relay.constants import DEFAULT_TWEAKS


REQUIRED = {
    "BASE_URL": "https://engine.example",
    "APPLICATION_TOKEN": "tok",
    "FLOW_ID": "flow-1",
    "LANGFLOW_ID": "lf-1",
}


@pytest.fixture
def env(monkeypatch):
    for key in (
        "PORT", "HOST", "ENVIRONMENT", "FLOW_REQUEST_TIMEOUT", "FLOW_TWEAKS",
        "LOG_LEVEL", "LOG_FORMAT", "SERVICE_NAME", "SERVICE_VERSION",
    ):
        monkeypatch.delenv(key, raising=False)
    for key, value in REQUIRED.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


class TestSettingsFromEnv:
    def test_required_values(self, env):
        settings = Settings.from_env()
        assert settings.base_url == "https://engine.example"
        assert settings.application_token == "tok"
        assert settings.flow_id == "flow-1"
        assert settings.langflow_id == "lf-1"

    def test_defaults(self, env):
        settings = Settings.from_env()
        assert settings.port == 3000
        assert settings.request_timeout == 0.0
        assert settings.tweaks == DEFAULT_TWEAKS
        assert settings.is_development

    def test_missing_required_raises(self, env):
        env.delenv("APPLICATION_TOKEN")
        env.delenv("FLOW_ID")
        with pytest.raises(RuntimeError) as exc_info:
            Settings.from_env()
        assert "APPLICATION_TOKEN" in str(exc_info.value)
        assert "FLOW_ID" in str(exc_info.value)
        assert "BASE_URL" not in str(exc_info.value)

    def test_invalid_port_falls_back(self, env, caplog):
        env.setenv("PORT", "not-a-port")
        with caplog.at_level(logging.WARNING):
            settings = Settings.from_env()
        assert settings.port == 3000
        assert "Invalid PORT" in caplog.text

    def test_request_timeout(self, env):
        env.setenv("FLOW_REQUEST_TIMEOUT", "12.5")
        assert Settings.from_env().request_timeout == 12.5

    def test_negative_timeout_clamped(self, env):
        env.setenv("FLOW_REQUEST_TIMEOUT", "-1")
        assert Settings.from_env().request_timeout == 0.0


class TestTweaks:
    def test_custom_tweaks(self, env):
        env.setenv("FLOW_TWEAKS", '{"ChatInput-1": {"input_value": "x"}}')
        assert Settings.from_env().tweaks == {"ChatInput-1": {"input_value": "x"}}

    def test_invalid_json_uses_default(self, env):
        env.setenv("FLOW_TWEAKS", "{broken")
        assert Settings.from_env().tweaks == DEFAULT_TWEAKS

    def test_non_object_uses_default(self, env):
        env.setenv("FLOW_TWEAKS", "[1, 2]")
        assert Settings.from_env().tweaks == DEFAULT_TWEAKS

    def test_default_tweaks_not_shared(self, env):
        settings = Settings.from_env()
        settings.tweaks["Extra-1"] = {}
        assert "Extra-1" not in DEFAULT_TWEAKS


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
class TestSetupLogging:
    def test_text_format_in_development(self):
        settings = Settings(log_level="DEBUG", log_format="json", environment="development")
        logger = setup_logging(settings)

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert type(root.handlers[0].formatter) is logging.Formatter
        assert logger.name == "flow-relay"
        assert logger.level == logging.DEBUG

    def test_json_format_in_production(self):
        settings = Settings(log_format="json", environment="production")
        setup_logging(settings)

        formatter = logging.getLogger().handlers[0].formatter
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
        output = formatter.format(record)
        assert '"message": "hello"' in output
        assert '"service": "flow-relay"' in output
