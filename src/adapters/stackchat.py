"""Room-scoped chat operations on top of a connected ``ChatSession``.

Each operation is exactly one HTTP round trip. Nothing here re-authenticates
or retries: an auth failure surfaces to the caller, who decides whether to
build a new session.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from adapters.scraper import first_image_link, scrape_messages
from adapters.session import ChatSession
from core.errors import NotConnectedError, ParseError
from core.models import Ack, MessageRecord

LOGGER = logging.getLogger(__name__)


class StackChat:
    """Chat adapter satisfying the core ``ChatPort`` contract."""

    def __init__(self, session: ChatSession) -> None:
        self._session = session

    @property
    def session(self) -> ChatSession:
        return self._session

    @property
    def user_id(self) -> Optional[int]:
        return self._session.user_id

    async def wait_connected(self) -> None:
        await self._session.wait_connected()

    def _require_connected(self, operation: str) -> None:
        # Fail fast instead of waiting on the connected signal.
        if not self._session.is_connected:
            raise NotConnectedError(operation)
        if not self._session.csrf_token or not self._session.user_id:
            raise NotConnectedError(operation)

    async def send_message(self, room_id: int, body: str) -> Ack:
        """Post a message to a room with the current chat fkey."""

        self._require_connected("send message")
        url = f"{self._session.chat_url}/chats/{room_id}/messages/new"
        response = await self._session.request(
            "POST",
            url,
            data={"text": body, "fkey": self._session.csrf_token},
            operation="send message",
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ParseError("message post reply is not JSON", operation="send message", target=url) from exc
        if not isinstance(payload, dict):
            raise ParseError("unexpected message post reply", operation="send message", target=url)

        ack = Ack(message_id=payload.get("id"), time=payload.get("time"))
        LOGGER.info("Sent message %s to room %s", ack.message_id, room_id)
        return ack

    async def search(
        self,
        text: str,
        room_id: Optional[int] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        page_size: int = 100,
        sort: str = "newest",
    ) -> List[MessageRecord]:
        """Return one page of chat search results."""

        self._require_connected("search")
        params = {
            "q": text,
            "room": room_id or "",
            "user": user_id or "",
            "page": page or 1,
            "pagesize": page_size or 100,
            "sort": sort or "newest",
        }
        document = await self._session.fetch_document(
            "GET",
            f"{self._session.chat_url}/search",
            params=params,
            operation="search",
        )
        return scrape_messages(document)

    async def transcript(self, room_id: int) -> List[MessageRecord]:
        """Return the latest messages from a room's transcript."""

        self._require_connected("transcript")
        document = await self._session.fetch_document(
            "GET",
            f"{self._session.chat_url}/transcript/{room_id}",
            operation="transcript",
        )
        return scrape_messages(document, default_room_id=room_id)

    def image_link(self, message: MessageRecord) -> Optional[str]:
        return first_image_link(message)
