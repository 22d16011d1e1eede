"""Encoding of room state into chat-postable tokens.

A token is ``<prefix><percent-encoded JSON>``. The prefix looks like a URL so
the chat renders the message as an image onebox, which is what makes state
messages findable by the "img" search during recovery.
"""

from __future__ import annotations

import json
from typing import Iterable, Optional
from urllib.parse import quote, unquote

from core.errors import DecodeError

# Characters encodeURIComponent leaves alone on top of quote()'s defaults.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_state(data: dict, prefix: str) -> str:
    """Serialize a snapshot into a state token."""

    payload = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    return f"{prefix}{quote(payload, safe=_URI_COMPONENT_SAFE)}"


def match_state_prefix(url: str, prefixes: Iterable[str]) -> Optional[str]:
    """Return the first recognized prefix ``url`` starts with."""

    for prefix in prefixes:
        if prefix and url.startswith(prefix):
            return prefix
    return None


def decode_state(url: str, prefixes: Iterable[str]) -> dict:
    """Decode a state token back into its snapshot dict.

    Raises DecodeError when the prefix is unknown, the suffix is not JSON,
    or the JSON is not an object.
    """

    prefix = match_state_prefix(url, prefixes)
    if prefix is None:
        raise DecodeError("unrecognized state prefix", operation="decode", target=url)

    raw = url[len(prefix):]
    try:
        data = json.loads(unquote(raw, errors="strict"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise DecodeError(f"invalid state payload ({exc})", operation="decode", target=url) from exc

    if not isinstance(data, dict):
        raise DecodeError("state payload is not an object", operation="decode", target=url)
    return data


def build_state_message(token: str, previous_message_id: Optional[int] = None) -> str:
    """Build the chat message body carrying a token.

    When the previous state message is known the body replies to it, so the
    chain of snapshots can be followed through reply links.
    """

    if previous_message_id:
        return f":{previous_message_id} !{token}"
    return f"!{token}"
