"""streamwatch: deduplicated, policy-filtered notifications for a stream's
online/offline status.

Feed status in with `Watcher.update()` (e.g. from EventSub) and/or let
`Watcher.poll()` fetch it on an interval, then subscribe with
`Watcher.on("online" | "offline" | "change", callback, throttle=..., delay=...)`.
"""

from typing import List

from .notifier import Notifier
from .policy import DelayPolicy, ThrottlePolicy
from .poller import Poller
from .subscription import (
    StreamState,
    Subscription,
    SubscriptionKind,
    SubscriptionStatus,
)
from .util import UNSET, DefaultLogger, Duration, Humanizer, Logger, default_humanizer
from .watcher import StreamStatus, Watcher, WatcherDestroyedError

__all__: List[str] = [
    "DefaultLogger",
    "DelayPolicy",
    "Duration",
    "Humanizer",
    "Logger",
    "Notifier",
    "Poller",
    "StreamState",
    "StreamStatus",
    "Subscription",
    "SubscriptionKind",
    "SubscriptionStatus",
    "ThrottlePolicy",
    "UNSET",
    "Watcher",
    "WatcherDestroyedError",
    "default_humanizer",
]
