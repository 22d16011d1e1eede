"""Chat client factory for chatledger.

The session is built explicitly here, and connected explicitly by the
caller, so it is obvious when the login happens and which credentials it
uses.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv

import settings
from adapters.session import ChatSession
from adapters.stackchat import StackChat
from core.config import StateConfig


def bot_name() -> str:
    """Return the bot name, letting BOT_NAME in the environment win."""

    load_dotenv()
    return os.getenv("BOT_NAME") or settings.BOT_NAME


def build_chat() -> StackChat:
    """Create an unconnected chat client from environment variables.

    SE_USERNAME/SE_PASSWORD are read via python-dotenv to keep secrets out of
    the repo.
    """

    load_dotenv()

    email = os.getenv("SE_USERNAME")
    password = os.getenv("SE_PASSWORD")

    # Fail fast on missing credentials rather than posting an empty login.
    if not email or not password:
        raise RuntimeError("Missing SE_USERNAME or SE_PASSWORD in environment")

    logging.getLogger(__name__).info("Initializing chat session")

    session = ChatSession(
        email,
        password,
        login_url=settings.LOGIN_URL,
        chat_url=settings.CHAT_URL,
    )
    return StackChat(session)


def build_state_config(name: Optional[str] = None) -> StateConfig:
    return StateConfig.for_bot(
        name or bot_name(),
        url_prefix=settings.STATE_URL_PREFIX,
        legacy_url_prefixes=settings.STATE_LEGACY_URL_PREFIXES,
        search_page_size=settings.STATE_SEARCH_PAGE_SIZE,
        keep_alive_max_age_hours=settings.KEEP_ALIVE_MAX_AGE_HOURS,
    )
