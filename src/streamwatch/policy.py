"""Notification policies.

Both policies are immutable and stateless, so one instance may be shared by
any number of notifiers.
"""

from __future__ import annotations

from typing import Optional

from .util import is_positive_int


class ThrottlePolicy:
    """Avoid repeatedly notifying when a status flaps too often.

    Example use-case: "post to Discord when the stream comes online, but
    don't spam the channel".

    - at_most_once_per: milliseconds. A notification is discarded if it
      comes less than this long after the last delivered one. ``None``
      disables throttling.
    - notify_on_initial: whether the first determination of the status
      (leaving Unknown) notifies at all. Defaults to False.
    """

    __slots__ = ("_at_most_once_per", "_notify_on_initial")

    def __init__(
        self,
        at_most_once_per: Optional[int] = None,
        notify_on_initial: bool = False,
    ) -> None:
        if at_most_once_per is not None and not is_positive_int(at_most_once_per):
            raise TypeError("`opts`.`at_most_once_per` must be a positive integer")
        if not isinstance(notify_on_initial, bool):
            raise TypeError("`opts`.`notify_on_initial` must be a boolean")
        self._at_most_once_per = at_most_once_per or 0
        self._notify_on_initial = notify_on_initial

    @property
    def at_most_once_per(self) -> int:
        return self._at_most_once_per

    @property
    def notify_on_initial(self) -> bool:
        return self._notify_on_initial

    def should_send(
        self, now: float, is_initial: bool, last_notified: Optional[float]
    ) -> bool:
        if is_initial:
            return self._notify_on_initial
        if last_notified is None:
            return True
        return now >= last_notified + self._at_most_once_per

    def __repr__(self) -> str:
        return (
            f"ThrottlePolicy(at_most_once_per={self._at_most_once_per}, "
            f"notify_on_initial={self._notify_on_initial})"
        )


class DelayPolicy:
    """Hold a notification until the status has persisted for a while.

    Example use-case: "reset once-per-day bot actions, but don't get
    tricked by a brief stream interruption".

    - wait_at_least: milliseconds to defer the notification. If the status
      flips back before then, the notification is dropped.
    - no_delay_on_initial: notify the first determination immediately,
      ignoring `wait_at_least`. Defaults to False.
    """

    __slots__ = ("_wait_at_least", "_no_delay_on_initial")

    def __init__(
        self,
        wait_at_least: Optional[int] = None,
        no_delay_on_initial: bool = False,
    ) -> None:
        if wait_at_least is not None and not is_positive_int(wait_at_least):
            raise TypeError("`opts`.`wait_at_least` must be a positive integer")
        if not isinstance(no_delay_on_initial, bool):
            raise TypeError("`opts`.`no_delay_on_initial` must be a boolean")
        self._wait_at_least = wait_at_least or 0
        self._no_delay_on_initial = no_delay_on_initial

    @property
    def wait_at_least(self) -> int:
        return self._wait_at_least

    @property
    def no_delay_on_initial(self) -> bool:
        return self._no_delay_on_initial

    def send_after(self, is_initial: bool) -> int:
        if is_initial and self._no_delay_on_initial:
            return 0
        return self._wait_at_least

    def __repr__(self) -> str:
        return (
            f"DelayPolicy(wait_at_least={self._wait_at_least}, "
            f"no_delay_on_initial={self._no_delay_on_initial})"
        )
