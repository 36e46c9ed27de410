from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar, Union

from .notifier import Notifier
from .policy import DelayPolicy, ThrottlePolicy
from .poller import Poller
from .subscription import StreamState, Subscription, SubscriptionKind
from .util import UNSET, DefaultLogger, Humanizer, Logger, default_humanizer

T = TypeVar("T")

GetStreamFn = Callable[[], Awaitable[Optional[T]]]


class WatcherDestroyedError(RuntimeError):
    def __init__(self) -> None:
        super().__init__("Watcher is destroyed")


@dataclass(frozen=True)
class StreamStatus(Generic[T]):
    """Canonical status: Unknown, Online (with the stream payload) or Offline."""

    state: StreamState
    stream: Optional[T] = None

    @classmethod
    def unknown(cls) -> "StreamStatus[T]":
        return cls(StreamState.UNKNOWN)

    @classmethod
    def online(cls, stream: T) -> "StreamStatus[T]":
        return cls(StreamState.ONLINE, stream)

    @classmethod
    def offline(cls) -> "StreamStatus[T]":
        return cls(StreamState.OFFLINE)


class Watcher(Generic[T]):
    """Track whether a stream is online and notify subscribers on transitions.

    Status comes in through `update()`, either from the caller (e.g. an
    EventSub handler) or from the poller started with `poll()`. `None`
    means offline; anything else is the online stream payload.

    Usage:
      watcher = Watcher(api.stream_fetcher(user_login="somechannel"), logger=True)
      watcher.on("online", lambda stream: print("live:", stream["title"]))
      stop = watcher.poll(every=Duration.minute(10), immediately=True)
    """

    def __init__(
        self,
        get_stream: GetStreamFn,
        logger: Union[Logger, bool, None] = None,
        humanizer: Optional[Humanizer] = None,
    ) -> None:
        if not callable(get_stream):
            raise TypeError("`opts`.`get_stream` must be a function")
        self._destroyed = False
        self._status: StreamStatus[T] = StreamStatus.unknown()
        self._get_stream = get_stream
        if logger is True:
            self._logger: Optional[Logger] = DefaultLogger()
        elif logger is False:
            self._logger = None
        else:
            self._logger = logger
        self._humanizer: Humanizer = humanizer or default_humanizer
        # insertion order is notification order
        self._notifiers: Dict[SubscriptionKind, Dict[int, Notifier]] = {
            kind: {} for kind in SubscriptionKind
        }
        self._handles = itertools.count(1)
        self._poller: Optional[Poller] = None

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise WatcherDestroyedError()

    def update(self, stream: Optional[T] = None, source: Optional[str] = None) -> None:
        """Record a new observed status and drive the notifiers."""
        self._ensure_alive()
        last_state = self._status.state

        # status first, so anything logged below sees the new value
        if stream is None:
            self._status = StreamStatus.offline()
        else:
            self._status = StreamStatus.online(stream)

        if self._logger is not None:
            self._logger.info(
                f"status updated source={source or 'unknown'} "
                f"from={last_state} to={self._status.state}"
            )

        results: Dict[SubscriptionKind, List[Optional[int]]] = {
            kind: [] for kind in SubscriptionKind
        }
        online = self._notifiers[SubscriptionKind.ONLINE]
        offline = self._notifiers[SubscriptionKind.OFFLINE]

        if stream is None:
            for notifier in list(online.values()):
                notifier.clear()
            for notifier in list(offline.values()):
                results[SubscriptionKind.OFFLINE].append(notifier.trigger(None))
        else:
            for notifier in list(offline.values()):
                notifier.clear()
            for notifier in list(online.values()):
                results[SubscriptionKind.ONLINE].append(notifier.trigger(stream))

        # A change notifier never clears: once initialized it stays Set, with
        # either a stream or None. It is only re-triggered (forced past the
        # duplicate check) when online/offline flips; a new payload while
        # still online leaves any pending notification alone.
        for notifier in list(self._notifiers[SubscriptionKind.CHANGE].values()):
            last = notifier.last_known_value()
            if last is UNSET:
                results[SubscriptionKind.CHANGE].append(notifier.trigger(stream))
            elif (last is None) != (stream is None):
                results[SubscriptionKind.CHANGE].append(notifier.trigger(stream, force=True))

        if self._logger is not None:
            self._log_results(self._logger, results)

    def _describe(self, result: Optional[int]) -> str:
        if result is None:
            return "ignored"
        if result == 0:
            return "sent immediately"
        return f"will send in {self._humanizer(result)}"

    def _log_results(
        self, logger: Logger, results: Dict[SubscriptionKind, List[Optional[int]]]
    ) -> None:
        for kind, values in results.items():
            if not values:
                continue
            logger.info(
                f"notified {len(values)} '{kind.value}' listeners:",
                ", ".join(self._describe(v) for v in values),
            )

    def get_status(self) -> StreamStatus[T]:
        self._ensure_alive()
        return self._status

    def poll(self, every: int, immediately: bool = False) -> Callable[[], None]:
        """Poll `get_stream` every `every` ms, replacing any earlier poller.

        Returns a function that stops this poller. Calling it after the
        poller has been replaced does nothing.
        """
        self._ensure_alive()
        if self._poller is not None:
            self._poller.destroy()
            self._poller = None

        poller: Poller = Poller(
            fn=self._fetch,
            callback=lambda stream: self.update(stream, "poll"),
            every=every,
            immediately=immediately,
        )
        self._poller = poller

        def stop() -> None:
            poller.destroy()
            if self._poller is poller:
                self._poller = None

        return stop

    async def _fetch(self) -> Optional[T]:
        logger = self._logger
        if logger is not None:
            logger.info("polling for status")
        try:
            stream = await self._get_stream()
        except Exception as exc:
            if logger is not None:
                logger.error("getStream failed", str(exc) or repr(exc))
            raise
        if logger is not None and stream is not UNSET:
            logger.info(f"got stream={stream is not None}")
        return stream

    def on(
        self,
        kind: Union[SubscriptionKind, str],
        callback: Callable[[Any], Any],
        throttle: Optional[ThrottlePolicy] = None,
        delay: Optional[DelayPolicy] = None,
    ) -> Subscription:
        """Subscribe to "online", "offline" or "change" notifications.

        - online: callback(stream) when the stream goes live
        - offline: callback(None) when it goes offline
        - change: callback(stream or None) on either transition
        """
        self._ensure_alive()
        try:
            kind = SubscriptionKind(kind)
        except ValueError:
            raise ValueError(f"unknown subscription kind: {kind!r}") from None

        notifier: Notifier = Notifier(
            callback=callback,
            throttle=throttle,
            delay=delay,
            logger=self._logger,
        )
        handle = next(self._handles)
        collection = self._notifiers[kind]
        collection[handle] = notifier

        def unsubscribe() -> None:
            removed = collection.pop(handle, None)
            if removed is not None:
                removed.cancel()

        return Subscription(kind, notifier, unsubscribe)

    def destroy(self) -> None:
        self._ensure_alive()
        if self._logger is not None:
            self._logger.info("watcher.destroy() called, cleaning up")
        if self._poller is not None:
            self._poller.destroy()
            self._poller = None
        for collection in self._notifiers.values():
            for notifier in collection.values():
                notifier.cancel()
            collection.clear()
        self._destroyed = True
