from __future__ import annotations

import asyncio
import math
from typing import Any, Awaitable, Callable, Generic, Optional, Set, TypeVar

from .util import UNSET, is_positive_int, now_ms

T = TypeVar("T")

# fetches abandoned by destroy(); the loop only holds weak references to
# tasks, so keep them alive here until they settle
_ABANDONED: Set[asyncio.Future] = set()


class Poller(Generic[T]):
    """Call an async `fn` every `every` milliseconds and pass results to `callback`.

    At most one of {scheduled timer, in-flight fetch} exists at any time, so
    a slow fetch pushes the next poll back instead of stacking calls. The
    interval is measured from the start of the previous fetch.

    `fn` returning `UNSET` means "no data this time" and skips the callback;
    `None` is passed through (offline). Exceptions raised by `fn` are
    swallowed here; `fn` is expected to report its own failures.

    Must be constructed while an asyncio loop is running.
    """

    def __init__(
        self,
        fn: Callable[[], Awaitable[Optional[T]]],
        callback: Callable[[Optional[T]], Any],
        every: int,
        immediately: bool = False,
    ) -> None:
        if not is_positive_int(every):
            raise TypeError("`opts`.`every` must be a positive integer")
        if fn is None:
            raise TypeError("`opts`.`fn` is required")
        if not callable(fn):
            raise TypeError("`opts`.`fn` must be a function")
        if callback is None:
            raise TypeError("`opts`.`callback` is required")
        if not callable(callback):
            raise TypeError("`opts`.`callback` must be a function")
        if not isinstance(immediately, bool):
            raise TypeError("`opts`.`immediately` must be a boolean")

        self._loop = asyncio.get_running_loop()
        self._destroyed = False
        self._fn = fn
        self._callback = callback
        self._every = every
        self._task: Optional[asyncio.Future] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        # far enough in the past that the first schedule polls right away
        self._last_poll = -math.inf if immediately else now_ms()
        self._schedule_next_poll()

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    @property
    def scheduled(self) -> bool:
        return self._timer is not None

    def _schedule_next_poll(self) -> None:
        if self._destroyed:
            return
        # max one scheduled or in-flight
        if self._timer is not None or self._task is not None:
            return
        # negative when we're overdue (e.g. the last fetch took longer than `every`)
        time_until_next = self._every - (now_ms() - self._last_poll)
        if time_until_next <= 0:
            self._poll()
        else:
            self._timer = self._loop.call_later(time_until_next / 1000, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        self._poll()

    def _poll(self) -> None:
        if self._destroyed:
            return
        # don't poll while we're already polling
        if self._task is not None:
            return
        self._last_poll = now_ms()
        try:
            task = asyncio.ensure_future(self._fn())
        except Exception:
            # `fn` raised before producing an awaitable; treat like a failed fetch
            self._loop.call_soon(self._schedule_next_poll)
            return
        self._task = task
        task.add_done_callback(self._on_settled)

    def _on_settled(self, task: asyncio.Future) -> None:
        if task is not self._task:
            # destroyed while in flight
            _ABANDONED.discard(task)
            if not task.cancelled():
                task.exception()
            return
        self._task = None
        if self._destroyed:
            return

        result: Any = UNSET
        if not task.cancelled() and task.exception() is None:
            result = task.result()
        try:
            if result is not UNSET:
                self._callback(result)
        finally:
            self._schedule_next_poll()

    def destroy(self) -> None:
        """Stop polling. A fetch already in flight is left to finish, unobserved."""
        self._destroyed = True
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        if self._task is not None:
            _ABANDONED.add(self._task)
        self._task = None
