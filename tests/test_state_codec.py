from __future__ import annotations

import pytest

from core.errors import DecodeError
from core.state_codec import build_state_message, decode_state, encode_state, match_state_prefix

PREFIX = "https://bot.glitch.me/?_?"
LEGACY = "https://bot.hyperdev.space/?_?"


def test_encode_then_decode_keeps_application_fields() -> None:
    data = {"keepAlive": True, "topic": "a b/c?d&e", "count": 3, "t": 1000, "dt": 0}
    token = encode_state(data, PREFIX)

    assert token.startswith(PREFIX)
    assert " " not in token
    assert decode_state(token, [PREFIX]) == data


def test_encode_matches_uri_component_escaping() -> None:
    token = encode_state({"a": "it's (ok)!"}, PREFIX)
    assert token == PREFIX + "%7B%22a%22%3A%22it's%20(ok)!%22%7D"


def test_decode_accepts_legacy_prefix() -> None:
    token = LEGACY + "%7B%22x%22%3A1%7D"
    assert decode_state(token, [PREFIX, LEGACY]) == {"x": 1}


def test_match_prefix_is_first_match_wins() -> None:
    assert match_state_prefix(PREFIX + "%7B%7D", ["https://bot.glitch.me/", PREFIX]) == "https://bot.glitch.me/"
    assert match_state_prefix("https://example.com/cat.png", [PREFIX, LEGACY]) is None


def test_decode_rejects_invalid_json() -> None:
    with pytest.raises(DecodeError):
        decode_state(PREFIX + "%7Bnot-json", [PREFIX])


def test_decode_rejects_non_object_payload() -> None:
    with pytest.raises(DecodeError):
        decode_state(PREFIX + "%5B1%2C2%5D", [PREFIX])


def test_decode_rejects_unknown_prefix() -> None:
    with pytest.raises(DecodeError):
        decode_state("https://other.glitch.me/?_?%7B%7D", [PREFIX])


def test_state_message_reply_marker() -> None:
    assert build_state_message("TOKEN") == "!TOKEN"
    assert build_state_message("TOKEN", 1234) == ":1234 !TOKEN"
