"""HTML-to-record mapping for chat pages.

Search results and room transcripts share the same markup: messages are
grouped in ``.monologue`` blocks (consecutive messages by one author), each
with a signature and one or more ``.message`` elements. Extraction is best
effort: a field the page does not carry becomes ``None`` and the message is
still returned.
"""

from __future__ import annotations

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from adapters.session import path_segment, parse_int
from core.models import MessageRecord

_TRANSCRIPT_ROOM = re.compile(r"/transcript/(\d+)")


def _room_id_from_permalink(href: Optional[str]) -> Optional[int]:
    # Search results link to /transcript/<room>?m=<id>#<id>; transcript pages
    # link to /transcript/message/<id>#<id> and carry no room.
    if not href:
        return None
    match = _TRANSCRIPT_ROOM.search(href)
    return int(match.group(1)) if match else None


def _message_id(element: Tag) -> Optional[int]:
    element_id = element.get("id") or ""
    _, _, suffix = element_id.partition("-")
    return parse_int(suffix)


def _parent_id(element: Tag) -> Optional[int]:
    reply_info = element.select_one(".reply-info")
    if reply_info is None:
        return None
    href = reply_info.get("href") or ""
    _, _, fragment = href.partition("#")
    return parse_int(fragment)


def scrape_messages(document: BeautifulSoup, default_room_id: Optional[int] = None) -> List[MessageRecord]:
    """Return every message in a search or transcript document, in page order.

    ``default_room_id`` fills in the room for permalinks that do not name one.
    """

    messages: List[MessageRecord] = []
    for monologue in document.select(".monologue"):
        signature = monologue.select_one(".signature .username a")
        author_name = signature.get_text() if signature is not None else None
        author_id = parse_int(path_segment(signature.get("href") if signature is not None else None, 2))

        for element in monologue.select(".message"):
            permalink = element.select_one("a")
            room_id = _room_id_from_permalink(permalink.get("href") if permalink is not None else None)
            content = element.select_one(".content")
            messages.append(
                MessageRecord(
                    room_id=room_id if room_id is not None else default_room_id,
                    message_id=_message_id(element),
                    parent_id=_parent_id(element),
                    rendered_content=content,
                    plain_text=content.get_text().strip() if content is not None else "",
                    author_id=author_id,
                    author_name=author_name or None,
                )
            )
    return messages


def first_image_link(message: MessageRecord) -> Optional[str]:
    """Return the href of the first image onebox in a message body."""

    content = message.rendered_content
    if content is None:
        return None
    link = content.select_one(".ob-image a")
    if link is None:
        return None
    return link.get("href") or None
