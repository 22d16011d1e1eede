"""Recent-activity log shown by the bot's status image.

``EventLog`` is a logging handler that keeps the last few distinct messages;
``render_log_snapshot`` turns them into a small SVG that can be served as an
image and oneboxed in chat.
"""

from __future__ import annotations

import html
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional

EVENT_LOGGER = logging.getLogger("chatledger.events")

MAX_ENTRIES = 20


@dataclass(frozen=True)
class LogEntry:
    """One line of the activity log."""

    time: str
    text: str


def _coerce(event: Any) -> str:
    try:
        return str(event)
    except Exception:
        try:
            return repr(event)
        except Exception:
            return f"<unprintable {type(event).__name__}>"


def log(event: Any) -> None:
    """Log any value as an activity event. Never raises."""

    # Handler failures are reported by logging itself, not raised.
    EVENT_LOGGER.info("%s", _coerce(event))


class EventLog(logging.Handler):
    """Keep the most recent distinct log messages in memory.

    A message that repeats replaces its older copy so the tail stays useful
    when the same line is logged over and over.
    """

    def __init__(self, limit: int = MAX_ENTRIES, level: int = logging.INFO) -> None:
        super().__init__(level=level)
        self._limit = limit
        self._entries: List[LogEntry] = []
        self._entries_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            text = self.format(record)
        except Exception:
            self.handleError(record)
            return

        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        with self._entries_lock:
            self._entries = [entry for entry in self._entries if entry.text != text]
            self._entries.append(LogEntry(time=stamp, text=text))
            del self._entries[: max(0, len(self._entries) - self._limit)]

    @property
    def entries(self) -> List[LogEntry]:
        with self._entries_lock:
            return list(self._entries)

    def render(self, project_name: Optional[str]) -> str:
        return render_log_snapshot(project_name, self.entries)


_SVG_STYLE = """
      #main {
        position: absolute; top: 2px; bottom: 2px; left: 0; right: 2px;
        font: 12px monospace; color: white; background: #222;
        border: 2px solid white; border-radius: 5px;
      }
      #header {
        position: absolute; top: 0; left: 1px; right: 0; z-index: 100;
        padding: 1px 2px; font-weight: bold; background: #246;
        border-bottom: 1px solid white;
      }
      #header a { color: yellow; }
      #contents { position: absolute; bottom: 3px; left: 0; right: 2px; }
      #contents > div { margin-top: 2px; padding-left: 0.5em; text-indent: -0.5em; }
      #contents > div + div { border-top: 1px solid #444; }
      #contents code { white-space: pre-wrap; }
      #contents .time { margin-left: 10px; font-size: 8px; opacity: 0.75; }
"""


def render_log_snapshot(project_name: Optional[str], entries: Iterable[LogEntry]) -> str:
    """Render log entries as a 300x300 SVG document.

    Pure: reads only its arguments. Every piece of text is HTML-escaped.
    """

    name = html.escape(project_name or "unnamed")
    rows = "".join(
        f'<div><span class="time">{html.escape(entry.time)}</span>'
        f"<code>{html.escape(entry.text)}</code></div>"
        for entry in entries
    )
    return (
        '<svg version="1.1" baseProfile="full" xmlns="http://www.w3.org/2000/svg" '
        'width="300" height="300">'
        f"<style>{_SVG_STYLE}</style>"
        '<foreignObject x="0" y="0" width="100%" height="100%">'
        '<div xmlns="http://www.w3.org/1999/xhtml" id="main">'
        f'<div id="header">Log for <a href="https://glitch.com/~{name}">{name}</a></div>'
        f'<div id="contents">{rows}</div>'
        "</div></foreignObject></svg>"
    )
