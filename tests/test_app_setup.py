from __future__ import annotations

import logging

import pytest

import app
import client
from core.errors import NotConnectedError


def test_build_chat_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(client, "load_dotenv", lambda: None)
    monkeypatch.delenv("SE_USERNAME", raising=False)
    monkeypatch.delenv("SE_PASSWORD", raising=False)

    with pytest.raises(RuntimeError):
        client.build_chat()


def test_build_chat_is_not_connected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(client, "load_dotenv", lambda: None)
    monkeypatch.setenv("SE_USERNAME", "bot@example.com")
    monkeypatch.setenv("SE_PASSWORD", "hunter2")

    chat = client.build_chat()

    assert not chat.session.is_connected
    assert chat.user_id is None
    with pytest.raises(NotConnectedError):
        chat._require_connected("send message")


def test_state_config_substitutes_bot_name() -> None:
    config = client.build_state_config("statebot")

    assert config.url_prefix == "https://statebot.glitch.me/?_?"
    assert config.read_prefixes[0] == config.url_prefix
    assert "https://statebot.hyperdev.space/?_?" in config.read_prefixes
    assert config.keep_alive_max_age_ms == 4 * 60 * 60 * 1000


def test_redacting_formatter_masks_secrets() -> None:
    formatter = app._RedactingFormatter(["hunter2"], fmt="%(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "password=%s", ("hunter2",), None)

    assert formatter.format(record) == "password=***"


def test_collect_redaction_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SE_PASSWORD", "hunter2")
    monkeypatch.delenv("SE_USERNAME", raising=False)
    config = {"redact": {"enabled": True, "patterns": ["SE_USERNAME", "SE_PASSWORD"]}}

    assert app._collect_redaction_values(config) == ["hunter2"]
    assert app._collect_redaction_values({"redact": {"enabled": False}}) == []
