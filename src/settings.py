"""Static configuration for chatledger.

All user-editable settings (bot name, chat endpoints, state storage and
logging) live in a single JSON file so they can be changed without touching
Python. Credentials stay in the environment.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.environ.get("CHATLEDGER_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

CONFIG = _CONFIG

# Bot identity. The name is also substituted into the state URL prefixes,
# so renaming the bot hides state posted under the old name.
_bot = _CONFIG.get("bot", {})
BOT_NAME = _bot.get("name", "chatledger")
CONNECT_DELAY_SECONDS = float(_bot.get("connect_delay_seconds", 12))

_chat = _CONFIG.get("chat", {})
LOGIN_URL = _chat.get("login_url", "https://security.stackexchange.com/users/login")
CHAT_URL = _chat.get("chat_url", "https://chat.stackexchange.com")

# State storage:
# - STATE_URL_PREFIX: written on every new snapshot
# - STATE_LEGACY_URL_PREFIXES: still accepted when recovering
# - KEEP_ALIVE_MAX_AGE_HOURS: age after which keepAlive rooms are re-signed
_state = _CONFIG.get("state", {})
STATE_URL_PREFIX = _state.get("url_prefix", "https://{name}.glitch.me/?_?")
STATE_LEGACY_URL_PREFIXES = tuple(_state.get("legacy_url_prefixes", []))
STATE_SEARCH_PAGE_SIZE = int(_state.get("search_page_size", 100))
KEEP_ALIVE_MAX_AGE_HOURS = float(_state.get("keep_alive_max_age_hours", 4))
REFRESH_INTERVAL_MINUTES = float(_state.get("refresh_interval_minutes", 30))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
