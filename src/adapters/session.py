"""Authenticated HTTP session for Stack Exchange chat.

Owns the cookie jar, the chat fkey (CSRF token) and the bot's own user id.
All three are only written by ``connect``; every other request reads them.

The login is a strict sequence of steps, each awaiting the previous one:

1) fetch the login page and read its fkey
2) post the credentials
3) stop if the account is not active on the login site
4) fetch the chat home page and read the chat fkey and own user id
5) validate both and mark the session connected
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

import httpx
from bs4 import BeautifulSoup, ParserRejectedMarkup

from core.errors import AuthError, LoginError, ParseError, TransportError

LOGGER = logging.getLogger(__name__)

LOGIN_URL = "https://security.stackexchange.com/users/login"
CHAT_URL = "https://chat.stackexchange.com"

USER_AGENT = "Mozilla/5.0 (compatible; chatledger)"


def path_segment(href: Optional[str], index: int) -> Optional[str]:
    """Return the index-th "/"-separated piece of an href."""

    if not href:
        return None
    parts = href.split("/")
    if len(parts) <= index:
        return None
    return parts[index]


def parse_int(value: Optional[str]) -> Optional[int]:
    """Parse a positive int out of a scraped string, or None."""

    if not value:
        return None
    try:
        number = int(value)
    except ValueError:
        return None
    return number or None


class ChatSession:
    """Cookie-carrying session with the login state machine.

    ``connect`` must be called at most once per session. Other components
    gate on ``wait_connected`` or ``is_connected`` before issuing
    authenticated requests.
    """

    def __init__(
        self,
        email: str,
        password: str,
        login_url: str = LOGIN_URL,
        chat_url: str = CHAT_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._email = email
        self._password = password
        self.login_url = login_url
        self.chat_url = chat_url.rstrip("/")
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )
        self.account_name: Optional[str] = None
        self.csrf_token: Optional[str] = None
        self.user_id: Optional[int] = None
        self._connect_started = False
        self._connected: Optional[asyncio.Future] = None

    async def __aenter__(self) -> "ChatSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    @property
    def is_connected(self) -> bool:
        signal = self._connected
        return (
            signal is not None
            and signal.done()
            and not signal.cancelled()
            and signal.exception() is None
        )

    def _signal(self) -> asyncio.Future:
        # Created lazily so the session can be built outside a running loop.
        if self._connected is None:
            self._connected = asyncio.get_running_loop().create_future()
        return self._connected

    async def wait_connected(self) -> None:
        """Wait for the login to finish; raises its error if it failed."""

        await asyncio.shield(self._signal())

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        operation: Optional[str] = None,
    ) -> httpx.Response:
        """Issue one request through the session's cookie jar.

        Only the method, URL and query are logged; form bodies may carry
        credentials.
        """

        operation = operation or method
        LOGGER.info("%s %s %s", method, url, dict(params) if params else "")
        try:
            response = await self._client.request(method, url, params=params, data=data)
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or type(exc).__name__, operation=operation, target=url) from exc

        status = response.status_code
        if status in (401, 403):
            raise AuthError(f"HTTP {status}", operation=operation, target=url)
        if status >= 400:
            raise TransportError(f"HTTP {status}", operation=operation, target=url, status_code=status)
        return response

    async def fetch_document(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        operation: Optional[str] = None,
    ) -> BeautifulSoup:
        """Request a page and parse it into a navigable document."""

        response = await self.request(method, url, params=params, data=data, operation=operation)
        body = response.text
        if not body.strip():
            raise ParseError("empty response body", operation=operation or method, target=url)
        try:
            return BeautifulSoup(body, "html.parser")
        except ParserRejectedMarkup as exc:
            raise ParseError(str(exc), operation=operation or method, target=url) from exc

    async def connect(self, account_name: str) -> None:
        """Run the login sequence and resolve the connected signal.

        A failure rejects the signal and is re-raised here. There is no
        retry; callers wanting to reconnect build a new session.
        """

        if self._connect_started:
            raise RuntimeError("connect() was already called on this session")
        self._connect_started = True
        self.account_name = account_name
        signal = self._signal()

        LOGGER.info("Connecting to chat as %s", account_name)
        try:
            csrf_token, user_id = await self._login()
        except Exception as exc:
            LOGGER.error("Failed to connect to chat: %s", exc)
            if not signal.done():
                signal.set_exception(exc)
            raise

        self.csrf_token = csrf_token
        self.user_id = user_id
        if not signal.done():
            signal.set_result(None)
        LOGGER.info("Connected to chat as user %s", user_id)

    async def _login(self) -> tuple[str, int]:
        login_fkey = await self._fetch_login_fkey()
        await self._submit_credentials(login_fkey)
        return await self._fetch_chat_identity()

    async def _fetch_login_fkey(self) -> str:
        document = await self.fetch_document("GET", self.login_url, operation="login page")
        field = document.select_one("[name=fkey]")
        fkey = field.get("value") if field is not None else None
        if not fkey:
            raise LoginError(LoginError.MISSING_CSRF)
        LOGGER.info("Got Stack Exchange fkey")
        return fkey

    async def _submit_credentials(self, login_fkey: str) -> None:
        document = await self.fetch_document(
            "POST",
            self.login_url,
            data={
                "fkey": login_fkey,
                "email": self._email,
                "password": self._password,
                "ssrc": "",
                "oauth_version": "",
                "oauth_server": "",
                "openid_username": "",
                "openid_identifier": "",
            },
            operation="login submit",
        )
        # The login site asks to confirm account creation when the account
        # has never been used there.
        if document.select_one("#confirm-submit") is not None:
            raise LoginError(LoginError.ACCOUNT_INACTIVE)
        LOGGER.info("Logged in via %s", self.login_url)

    async def _fetch_chat_identity(self) -> tuple[str, int]:
        document = await self.fetch_document("GET", f"{self.chat_url}/", operation="chat home")
        LOGGER.info("Authenticated to chat, reading fkey")

        field = document.select_one("[name=fkey]")
        fkey = field.get("value") if field is not None else None
        profile_link = document.select_one(".topbar-menu-links a")
        user_id = parse_int(path_segment(profile_link.get("href") if profile_link else None, 2))

        if not user_id:
            raise LoginError(LoginError.MISSING_USER_ID)
        if not fkey:
            raise LoginError(LoginError.MISSING_FKEY)
        return fkey, user_id
