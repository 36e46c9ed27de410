from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .util import Duration


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Runtime configuration for a channel watcher.

    - channel: Twitch login name to watch.
    - poll_seconds: polling interval; must be positive.
    - poll_immediately: poll once at startup to learn the initial status.
    - log_enabled: pass the default logger to the Watcher.
    """

    client_id: str = ""
    client_secret: str = ""
    channel: Optional[str] = None
    poll_seconds: int = 600
    poll_immediately: bool = True
    log_enabled: bool = True

    def __post_init__(self) -> None:
        if self.poll_seconds <= 0:
            raise ValueError("poll_seconds must be positive")

    @property
    def poll_every_ms(self) -> int:
        return Duration.second(self.poll_seconds)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Config":
        # a .env in the working directory is a development convenience; real env vars win
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True), override=False)

        raw_seconds = os.environ.get("STREAMWATCH_POLL_SECONDS", "").strip()
        try:
            poll_seconds = int(raw_seconds) if raw_seconds else 600
        except ValueError:
            raise ValueError(
                f"STREAMWATCH_POLL_SECONDS must be an integer, got {raw_seconds!r}"
            ) from None

        return cls(
            client_id=os.environ.get("TWITCH_CLIENT_ID", ""),
            client_secret=os.environ.get("TWITCH_CLIENT_SECRET", ""),
            channel=os.environ.get("TWITCH_CHANNEL") or None,
            poll_seconds=poll_seconds,
            poll_immediately=_env_bool("STREAMWATCH_POLL_IMMEDIATELY", True),
            log_enabled=_env_bool("STREAMWATCH_LOGGING", True),
        )
