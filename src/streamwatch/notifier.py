from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from .policy import DelayPolicy, ThrottlePolicy
from .util import UNSET, Logger, now_ms

T = TypeVar("T")


# --- what a notifier has seen / delivered ---------------------------------
@dataclass(frozen=True)
class Unset:
    pass


@dataclass(frozen=True)
class Cleared:
    at: float


@dataclass(frozen=True)
class Set(Generic[T]):
    value: T
    at: float


NotifyState = Union[Unset, Cleared, Set]


# --- public snapshot returned by Notifier.state() -------------------------
@dataclass(frozen=True)
class Uninitialized:
    initialized = False
    pending = False


@dataclass(frozen=True)
class Pending(Generic[T]):
    will_notify_with: T
    # may briefly go negative before the timer callback runs
    will_notify_in: float

    initialized = True
    pending = True


@dataclass(frozen=True)
class Idle(Generic[T]):
    is_active: bool
    last_notified_with: Any

    initialized = True
    pending = False


NotifierState = Union[Uninitialized, Pending, Idle]


class Notifier(Generic[T]):
    """Per-subscriber state machine: Unset -> Cleared <-> Set.

    `trigger` moves to Set and, subject to the throttle and delay policies,
    calls `callback` now or arms a timer. `clear` moves to Cleared and
    cancels the timer. Repeating either transition is a no-op.

    Delayed notifications are scheduled on the running asyncio loop.
    """

    def __init__(
        self,
        callback: Callable[[T], Any],
        throttle: Optional[ThrottlePolicy] = None,
        delay: Optional[DelayPolicy] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        if throttle is not None and not isinstance(throttle, ThrottlePolicy):
            raise TypeError("`opts`.`throttle` must be an instance of `ThrottlePolicy`")
        if delay is not None and not isinstance(delay, DelayPolicy):
            raise TypeError("`opts`.`delay` must be an instance of `DelayPolicy`")
        if callback is None:
            raise TypeError("`opts`.`callback` is required")
        if not callable(callback):
            raise TypeError("`opts`.`callback` must be a function")

        self._last_known: NotifyState = Unset()
        self._last_notified: NotifyState = Unset()
        self._throttle = throttle
        self._delay = delay
        self._callback = callback
        self._logger = logger
        self._timer: Optional[asyncio.TimerHandle] = None
        self._timer_set_at: Optional[float] = None
        self._timer_delay: int = 0

    def trigger(self, value: T = None, force: bool = False) -> Optional[int]:
        """Consider notifying with `value`.

        Returns None when nothing will be sent, 0 when the callback already
        ran, or the delay in milliseconds before it will run.
        """
        if not force and isinstance(self._last_known, Set):
            return None

        is_initial = isinstance(self._last_known, Unset)
        now = now_ms()
        self._last_known = Set(value, now)

        last_notified_at = (
            self._last_notified.at if isinstance(self._last_notified, Set) else None
        )
        should_send = (
            self._throttle.should_send(now, is_initial, last_notified_at)
            if self._throttle is not None
            else True
        )
        if not should_send:
            self._log(f"skipping {'initial' if is_initial else 'throttled'} notification")
            return None

        send_after = self._delay.send_after(is_initial) if self._delay is not None else 0
        if send_after <= 0:
            # a forced trigger may still have an older timer armed
            self._cancel_timer()
            self._deliver(value)
            return 0

        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(send_after / 1000, self._fire, value)
        self._timer_set_at = now
        self._timer_delay = send_after
        return send_after

    def clear(self) -> bool:
        """Move to Cleared without notifying. False if already cleared."""
        if isinstance(self._last_known, Cleared):
            return False
        self._last_known = Cleared(now_ms())
        if self._timer is not None:
            self._log("cleared pending notification")
        self._cancel_timer()
        return True

    def cancel(self) -> None:
        """Drop any pending delayed notification, leaving state untouched."""
        self._cancel_timer()

    def last_known_value(self) -> Any:
        """The value if Set, else `UNSET` (use `state()` to tell Cleared from Unset)."""
        if isinstance(self._last_known, Set):
            return self._last_known.value
        return UNSET

    def state(self) -> NotifierState:
        last_known = self._last_known
        if isinstance(last_known, Unset):
            return Uninitialized()
        if self._timer_set_at is not None and isinstance(last_known, Set):
            return Pending(
                will_notify_with=last_known.value,
                will_notify_in=self._timer_delay - (now_ms() - self._timer_set_at),
            )
        # with no timer pending, last notified and last known only differ when
        # a throttle dropped the notification
        if isinstance(last_known, Set):
            return Idle(is_active=True, last_notified_with=last_known.value)
        return Idle(is_active=False, last_notified_with=None)

    def _fire(self, value: T) -> None:
        self._timer = None
        self._timer_set_at = None
        self._deliver(value)
        self._log("sent delayed notification")

    def _deliver(self, value: T) -> None:
        self._last_notified = Set(value, now_ms())
        self._callback(value)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._timer_set_at = None
        self._timer_delay = 0

    def _log(self, message: str) -> None:
        if self._logger is not None:
            self._logger.info(message)
