from __future__ import annotations

import logging
import os
import time
from typing import Any, Optional, Protocol


class _Unset:
    """Marker for "no value", distinct from ``None`` (which means offline)."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def now_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000


class Duration:
    """Helpers to express durations in milliseconds, e.g. ``Duration.minute(10)``."""

    @staticmethod
    def ms(num: int) -> int:
        return num

    @staticmethod
    def second(num: int) -> int:
        return num * 1_000

    @staticmethod
    def minute(num: int) -> int:
        return num * 60_000

    @staticmethod
    def hour(num: int) -> int:
        return num * 3_600_000

    @staticmethod
    def day(num: int) -> int:
        return num * 86_400_000


def is_positive_int(value: Any) -> bool:
    # bool is an int subclass; reject it explicitly
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class Humanizer(Protocol):
    def __call__(self, ms: float, since: Optional[float] = None) -> str: ...


def default_humanizer(ms: float, since: Optional[float] = None) -> str:
    """Render a duration, or a point in time relative to `since`.

    Without `since`, ``ms`` is a duration: ``"250ms"`` or ``"12s"``.
    With `since`, ``ms`` is a timestamp and the result reads
    ``"just now"``, ``"5s ago"`` or ``"5s from now"``.
    """
    if since is None:
        return f"{ms}ms" if abs(ms) < 1000 else f"{round(ms / 1000)}s"
    delta = round((ms - since) / 1000)
    if delta == 0:
        return "just now"
    if delta < 0:
        return f"{-delta}s ago"
    return f"{delta}s from now"


class Logger(Protocol):
    def info(self, *args: Any) -> None: ...

    def error(self, *args: Any) -> None: ...


_FMT = "%(asctime)s.%(msecs)03dZ [StreamWatch] %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"

_INITIALIZED = False


def get_logger() -> logging.Logger:
    """Return the "streamwatch" logger, attaching a console handler once.

    Level is read from STREAMWATCH_LOG_LEVEL (default INFO). Records do not
    propagate to the root logger, so a host app's handlers don't repeat them.
    """
    global _INITIALIZED
    logger = logging.getLogger("streamwatch")
    if _INITIALIZED:
        return logger

    level = os.getenv("STREAMWATCH_LOG_LEVEL", "INFO").upper()
    lvl = getattr(logging, level, logging.INFO)
    if not isinstance(lvl, int):
        lvl = logging.INFO

    logger.setLevel(lvl)
    formatter = logging.Formatter(_FMT, datefmt=_DATEFMT)
    # timestamps are UTC, hence the trailing Z
    formatter.converter = time.gmtime
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    _INITIALIZED = True
    return logger


class DefaultLogger:
    """`Logger` implementation backed by the standard logging module."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or get_logger()

    @staticmethod
    def _join(args: tuple) -> str:
        return " ".join(str(a) for a in args)

    def info(self, *args: Any) -> None:
        self._logger.info(self._join(args))

    def error(self, *args: Any) -> None:
        self._logger.error(self._join(args))
