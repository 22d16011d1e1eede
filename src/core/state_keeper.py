"""Per-room state persisted as chat messages.

The chat transcript is the only storage: every snapshot is posted as a
message by the bot, and on start-up the newest such message per room is
found again through the site search. Nothing is written anywhere else.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

from core.config import StateConfig
from core.errors import DecodeError
from core.models import Ack, RoomSnapshot
from core.ports import ChatPort
from core.state_codec import build_state_message, decode_state, encode_state, match_state_prefix

LOGGER = logging.getLogger(__name__)

# Image oneboxes are what state messages render as.
STATE_SEARCH_TEXT = "img"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _stamp(data: dict) -> int:
    # Recovered snapshots are untrusted; a missing or odd "t" counts as 0.
    try:
        return int(data.get("t") or 0)
    except (TypeError, ValueError, OverflowError):
        return 0


class StateKeeper:
    """Recovers, refreshes and signs room snapshots over a ``ChatPort``.

    ``sign_state`` is not safe to run concurrently for the same room: the
    merge-then-store sequence is not atomic.
    """

    def __init__(
        self,
        chat: ChatPort,
        config: StateConfig,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._chat = chat
        self._config = config
        self._clock = clock or _now_ms
        self._rooms: Dict[int, RoomSnapshot] = {}

    @property
    def rooms(self) -> List[int]:
        return list(self._rooms)

    def get_state(self, room_id: int) -> Optional[dict]:
        """Return a copy of the room's current snapshot data."""

        snapshot = self._rooms.get(room_id)
        if snapshot is None:
            return None
        return dict(snapshot.data)

    def get_snapshot(self, room_id: int) -> Optional[RoomSnapshot]:
        return self._rooms.get(room_id)

    async def initialize(self) -> None:
        """Wait for the chat login, then recover and refresh state."""

        LOGGER.info("State keeper waiting for chat connection")
        await self._chat.wait_connected()
        LOGGER.info("Chat connected, loading state")
        await self.recover()
        await self.refresh()
        LOGGER.info("State keeper initialized with %s room(s)", len(self._rooms))

    async def recover(self) -> Dict[int, RoomSnapshot]:
        """Load the newest snapshot per room from the bot's own messages.

        Results come back newest first, so the first snapshot decoded for a
        room wins. A message whose token cannot be decoded is logged and
        skipped; an older message for the same room may still supply it.
        """

        messages = await self._chat.search(
            STATE_SEARCH_TEXT,
            room_id=None,
            user_id=self._chat.user_id,
            page=1,
            page_size=self._config.search_page_size,
            sort="newest",
        )
        LOGGER.info("State search returned %s messages", len(messages))

        prefixes = self._config.read_prefixes
        for message in messages:
            if message.room_id is None:
                LOGGER.debug("Skipping message %s without a room id", message.message_id)
                continue
            if message.room_id in self._rooms:
                continue

            image_url = self._chat.image_link(message) or ""
            if match_state_prefix(image_url, prefixes) is None:
                continue

            try:
                data = decode_state(image_url, prefixes)
            except DecodeError as exc:
                LOGGER.warning("Error parsing state from message %s: %s", message.message_id, exc)
                continue

            LOGGER.info("Found state for room %s in message %s", message.room_id, message.message_id)
            self._rooms[message.room_id] = RoomSnapshot(
                data=data,
                previous_state_message_id=message.message_id,
            )

        return dict(self._rooms)

    def needs_keep_alive(self, room_id: int) -> bool:
        """True when the room asks for keep-alive and its signature is too old."""

        snapshot = self._rooms.get(room_id)
        if snapshot is None or not snapshot.data.get("keepAlive"):
            return False
        age = self._clock() - _stamp(snapshot.data)
        return age > self._config.keep_alive_max_age_ms

    async def refresh(self) -> List[int]:
        """Run one keep-alive pass over every tracked room.

        Each room is evaluated exactly once. Stale rooms are re-signed
        concurrently; a failure in one room is logged and does not affect
        the others. Returns the rooms that were re-signed successfully.
        """

        stale: List[int] = []
        keep_alive_rooms = [room_id for room_id, snapshot in self._rooms.items() if snapshot.data.get("keepAlive")]
        for room_id in keep_alive_rooms:
            if self.needs_keep_alive(room_id):
                LOGGER.info(
                    "Triggering keep-alive for room %s (older than %s ms)",
                    room_id,
                    self._config.keep_alive_max_age_ms,
                )
                stale.append(room_id)
            else:
                LOGGER.debug("No keep-alive necessary in room %s", room_id)

        if not stale:
            return []

        results = await asyncio.gather(
            *(self.sign_state(room_id) for room_id in stale),
            return_exceptions=True,
        )
        refreshed: List[int] = []
        for room_id, result in zip(stale, results):
            if isinstance(result, Exception):
                LOGGER.error("Keep-alive failed for room %s: %s", room_id, result)
                continue
            refreshed.append(room_id)
        return refreshed

    async def sign_state(self, room_id: int, changes: Optional[dict] = None) -> Ack:
        """Store and post a fresh snapshot for ``room_id``.

        The new snapshot is the current one shallow-merged with ``changes``
        and stamped with ``t`` (now) and ``dt`` (time since the previous
        ``t``, or 0 when there was none).
        """

        previous = self._rooms.get(room_id)
        previous_data = previous.data if previous else {}
        previous_id = previous.previous_state_message_id if previous else None

        now = self._clock()
        previous_t = _stamp(previous_data)
        data = dict(previous_data)
        data.update(changes or {})
        data["t"] = now
        data["dt"] = now - previous_t if previous_t else 0

        # Until the post is acknowledged the last delivered state message is
        # still the one to reply to.
        self._rooms[room_id] = RoomSnapshot(data=data, previous_state_message_id=previous_id)

        token = encode_state(data, self._config.url_prefix)
        body = build_state_message(token, previous_id)
        LOGGER.info("Signing state for room %s", room_id)
        ack = await self._chat.send_message(room_id, body)

        if ack.message_id is not None:
            self._rooms[room_id] = RoomSnapshot(data=data, previous_state_message_id=ack.message_id)
        return ack
