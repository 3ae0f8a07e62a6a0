from __future__ import annotations

import pytest
from pydantic import ValidationError

from esl_gateway.app.config import Settings


def test_settings_defaults(monkeypatch) -> None:
    for name in ("ESL_LISTEN_HOST", "ESL_LISTEN_PORT", "SESSION_HANDLER", "INSTRUCTION_TIMEOUT_S"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.ESL_LISTEN_PORT == 8084
    assert settings.SESSION_HANDLER == "park"
    assert settings.ASYNC_API_KEYWORD == "bgapi"
    assert settings.INSTRUCTION_TIMEOUT_S == 0.0
    assert settings.listen_address == "0.0.0.0:8084"


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("ESL_LISTEN_PORT", "9090")
    monkeypatch.setenv("SESSION_HANDLER", "greeting")
    monkeypatch.setenv("VERBOSE_PROTOCOL_LOGGING", "true")

    settings = Settings(_env_file=None)

    assert settings.ESL_LISTEN_PORT == 9090
    assert settings.SESSION_HANDLER == "greeting"
    assert settings.VERBOSE_PROTOCOL_LOGGING is True


def test_settings_reject_out_of_range_values(monkeypatch) -> None:
    monkeypatch.setenv("MAX_HEADER_BYTES", "10")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
