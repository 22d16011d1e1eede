"""Core domain models.

These dataclasses are shared across the core and adapters so that the state
protocol never depends on the scraping details of a particular chat site.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class MessageRecord:
    """One chat message as scraped from a rendered search or transcript page.

    Any field the page did not carry is left as ``None`` instead of failing
    the whole scrape.
    """

    room_id: Optional[int]
    message_id: Optional[int]
    parent_id: Optional[int]
    # Parsed markup of the message body, used for link extraction.
    rendered_content: Any = field(compare=False, repr=False)
    plain_text: str = ""
    author_id: Optional[int] = None
    author_name: Optional[str] = None


@dataclass(frozen=True)
class Ack:
    """Reply from the chat service after posting a message."""

    message_id: Optional[int]
    time: Optional[int]


@dataclass(frozen=True)
class RoomSnapshot:
    """Current state for one room.

    ``data`` is what gets serialized into the chat (application fields plus
    ``t`` and ``dt``). ``previous_state_message_id`` only lives in memory and
    points at the message that carried this snapshot.
    """

    data: dict
    previous_state_message_id: Optional[int] = None
