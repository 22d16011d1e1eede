from __future__ import annotations

from bs4 import BeautifulSoup

from adapters.scraper import first_image_link, scrape_messages


def _doc(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def test_scrape_search_results_in_page_order(search_page: str) -> None:
    messages = scrape_messages(_doc(search_page))

    assert [m.message_id for m in messages] == [100, 90, 85]
    assert [m.room_id for m in messages] == [42, 42, 43]
    assert [m.author_id for m in messages] == [7, 7, 9]
    assert [m.author_name for m in messages] == ["statebot", "statebot", "someone"]


def test_scrape_reply_and_text(search_page: str) -> None:
    _, reply, _ = scrape_messages(_doc(search_page))

    assert reply.parent_id == 80
    assert reply.plain_text == "hello   world"


def test_first_image_link(search_page: str) -> None:
    state, plain, _ = scrape_messages(_doc(search_page))

    assert first_image_link(state) == "https://bot.glitch.me/?_?%7B%22keepAlive%22%3Atrue%2C%22t%22%3A2000%7D"
    assert first_image_link(plain) is None


def test_transcript_permalinks_use_default_room(transcript_page: str) -> None:
    messages = scrape_messages(_doc(transcript_page), default_room_id=42)

    assert messages[0].message_id == 200
    assert messages[0].room_id == 42
    assert messages[0].plain_text == "first"


def test_malformed_message_is_kept_with_missing_fields(transcript_page: str) -> None:
    messages = scrape_messages(_doc(transcript_page))

    assert len(messages) == 2
    broken = messages[1]
    assert broken.message_id is None
    assert broken.room_id is None
    assert broken.author_id is None
    assert broken.author_name is None
    assert broken.plain_text == "no id, no author"


def test_empty_document_has_no_messages() -> None:
    assert scrape_messages(_doc("<html><body><p>No results</p></body></html>")) == []
