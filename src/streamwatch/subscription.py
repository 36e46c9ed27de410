from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from .notifier import Notifier, Pending, Uninitialized

T = TypeVar("T")


class StreamState(str, Enum):
    UNKNOWN = "Unknown"
    ONLINE = "Online"
    PENDING_ONLINE = "PendingOnline"
    OFFLINE = "Offline"
    PENDING_OFFLINE = "PendingOffline"

    def __str__(self) -> str:
        return self.value


class SubscriptionKind(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    CHANGE = "change"


@dataclass(frozen=True)
class SubscriptionStatus:
    """State of one subscription. `remaining` (ms) is set only for pending states."""

    state: StreamState
    remaining: Optional[float] = None


class Subscription(Generic[T]):
    """Handle returned by `Watcher.on()`.

    `status()` is recomputed from the notifier on every call, so pending
    countdowns are always live.
    """

    def __init__(
        self,
        kind: SubscriptionKind,
        notifier: Notifier[T],
        unsubscribe: Callable[[], None],
    ) -> None:
        self._kind = SubscriptionKind(kind)
        self._notifier = notifier
        self._unsubscribe = unsubscribe

    @property
    def kind(self) -> SubscriptionKind:
        return self._kind

    def unsubscribe(self) -> None:
        self._unsubscribe()

    def status(self) -> SubscriptionStatus:
        state = self._notifier.state()
        if isinstance(state, Uninitialized):
            return SubscriptionStatus(StreamState.UNKNOWN)

        if self._kind is SubscriptionKind.CHANGE:
            if isinstance(state, Pending):
                return SubscriptionStatus(
                    StreamState.PENDING_OFFLINE
                    if state.will_notify_with is None
                    else StreamState.PENDING_ONLINE,
                    remaining=state.will_notify_in,
                )
            return SubscriptionStatus(
                StreamState.OFFLINE
                if state.last_notified_with is None
                else StreamState.ONLINE
            )

        is_online_kind = self._kind is SubscriptionKind.ONLINE
        if isinstance(state, Pending):
            return SubscriptionStatus(
                StreamState.PENDING_ONLINE if is_online_kind else StreamState.PENDING_OFFLINE,
                remaining=state.will_notify_in,
            )
        if state.is_active == is_online_kind:
            return SubscriptionStatus(StreamState.ONLINE)
        return SubscriptionStatus(StreamState.OFFLINE)
