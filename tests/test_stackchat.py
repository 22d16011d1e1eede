from __future__ import annotations

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from adapters.session import ChatSession
from adapters.stackchat import StackChat
from core.errors import NotConnectedError, ParseError
from test_session_login import FakeSite


class ChatSite(FakeSite):
    def __init__(self, search_page: str, transcript_page: str) -> None:
        super().__init__()
        self.search_page = search_page
        self.transcript_page = transcript_page
        self.posted: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.url.host == "chat.stackexchange.com":
            if path == "/chats/42/messages/new":
                self.requests.append(request)
                form = parse_qs(request.content.decode())
                self.posted.append({k: v[0] for k, v in form.items()})
                return httpx.Response(200, json={"id": 321, "time": 1700000000})
            if path == "/chats/13/messages/new":
                self.requests.append(request)
                return httpx.Response(200, html="<html><body>Oops</body></html>")
            if path == "/search":
                self.requests.append(request)
                return httpx.Response(200, html=self.search_page)
            if path == "/transcript/42":
                self.requests.append(request)
                return httpx.Response(200, html=self.transcript_page)
        return super().handler(request)


def _chat(site: ChatSite) -> StackChat:
    return StackChat(ChatSession("bot@example.com", "hunter2", transport=httpx.MockTransport(site.handler)))


def test_operations_fail_fast_before_login(search_page: str, transcript_page: str) -> None:
    site = ChatSite(search_page, transcript_page)

    async def scenario():
        chat = _chat(site)
        async with chat.session:
            with pytest.raises(NotConnectedError):
                await asyncio.wait_for(chat.send_message(42, "hi"), timeout=1)
            with pytest.raises(NotConnectedError):
                await chat.search("img")
            with pytest.raises(NotConnectedError):
                await chat.transcript(42)

    asyncio.run(scenario())
    assert site.requests == []


def test_send_message_posts_text_and_fkey(search_page: str, transcript_page: str) -> None:
    site = ChatSite(search_page, transcript_page)

    async def scenario():
        chat = _chat(site)
        async with chat.session:
            await chat.session.connect("statebot")
            return await chat.send_message(42, ":100 !https://bot.glitch.me/?_?%7B%7D")

    ack = asyncio.run(scenario())

    assert ack.message_id == 321
    assert site.posted == [{"text": ":100 !https://bot.glitch.me/?_?%7B%7D", "fkey": "chat-fkey"}]


def test_send_message_rejects_non_json_reply(search_page: str, transcript_page: str) -> None:
    site = ChatSite(search_page, transcript_page)

    async def scenario():
        chat = _chat(site)
        async with chat.session:
            await chat.session.connect("statebot")
            with pytest.raises(ParseError):
                await chat.send_message(13, "hi")

    asyncio.run(scenario())


def test_search_sends_query_parameters(search_page: str, transcript_page: str) -> None:
    site = ChatSite(search_page, transcript_page)

    async def scenario():
        chat = _chat(site)
        async with chat.session:
            await chat.session.connect("statebot")
            return await chat.search("img", user_id=chat.user_id)

    messages = asyncio.run(scenario())

    search_request = site.requests[-1]
    assert dict(search_request.url.params) == {
        "q": "img",
        "room": "",
        "user": "7",
        "page": "1",
        "pagesize": "100",
        "sort": "newest",
    }
    assert [m.message_id for m in messages] == [100, 90, 85]


def test_transcript_scrapes_room_page(search_page: str, transcript_page: str) -> None:
    site = ChatSite(search_page, transcript_page)

    async def scenario():
        chat = _chat(site)
        async with chat.session:
            await chat.session.connect("statebot")
            return await chat.transcript(42)

    messages = asyncio.run(scenario())

    assert str(site.requests[-1].url) == "https://chat.stackexchange.com/transcript/42"
    assert messages[0].room_id == 42
    assert messages[0].plain_text == "first"
