"""Core configuration dataclasses.

Config parsing happens in ``settings``; these dataclasses define the shape
the core expects so the app layer can build it safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class StateConfig:
    """Settings for storing room state inside chat messages."""

    url_prefix: str
    legacy_url_prefixes: Tuple[str, ...] = field(default_factory=tuple)
    search_page_size: int = 100
    keep_alive_max_age_ms: int = 4 * 60 * 60 * 1000

    @property
    def read_prefixes(self) -> Tuple[str, ...]:
        """Prefixes accepted when decoding, canonical first."""

        return (self.url_prefix,) + tuple(
            prefix for prefix in self.legacy_url_prefixes if prefix != self.url_prefix
        )

    @classmethod
    def for_bot(
        cls,
        name: str,
        url_prefix: str,
        legacy_url_prefixes: Tuple[str, ...] = (),
        search_page_size: int = 100,
        keep_alive_max_age_hours: float = 4,
    ) -> "StateConfig":
        """Build a config from prefix templates containing ``{name}``."""

        return cls(
            url_prefix=url_prefix.format(name=name),
            legacy_url_prefixes=tuple(prefix.format(name=name) for prefix in legacy_url_prefixes),
            search_page_size=int(search_page_size),
            keep_alive_max_age_ms=int(keep_alive_max_age_hours * 60 * 60 * 1000),
        )
