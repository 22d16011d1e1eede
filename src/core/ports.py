"""Ports (interfaces) used by the core state protocol.

The state keeper only needs a way to post and to search the bot's own
messages, so any chat backend that satisfies ``ChatPort`` can host it.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from core.models import Ack, MessageRecord


class ChatPort(Protocol):
    """Chat operations required by the state protocol."""

    @property
    def user_id(self) -> Optional[int]:
        ...

    async def wait_connected(self) -> None:
        ...

    async def send_message(self, room_id: int, body: str) -> Ack:
        ...

    async def search(
        self,
        text: str,
        room_id: Optional[int] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        page_size: int = 100,
        sort: str = "newest",
    ) -> List[MessageRecord]:
        ...

    def image_link(self, message: MessageRecord) -> Optional[str]:
        """Return the first embedded image link in a message body, if any."""
        ...
