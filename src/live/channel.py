"""In-process fan-out of live events to topic subscribers.

Delivery is best-effort and at most once: an event is handed to the subscribers connected
at publish time and never replayed. A subscriber that raises, or whose queue is full, loses
the event without affecting the publisher or the other subscribers.
"""

import queue
import threading
import typing as t
from itertools import count

import structlog
from django.conf import settings

from .events import LiveEvent

logger = structlog.get_logger(__name__)

Callback = t.Callable[[LiveEvent], None]


class Subscription:
    """A subscriber to one topic.

    Either wraps a callback, invoked synchronously on publish, or buffers events in a
    bounded queue to be consumed with `get`.
    """

    def __init__(
        self, channel: "LiveChannel", topic: str, sub_id: int, callback: Callback | None, maxsize: int
    ) -> None:
        self._channel = channel
        self.topic = topic
        self.id = sub_id
        self._callback = callback
        self._queue: queue.Queue[LiveEvent] | None = None if callback else queue.Queue(maxsize=maxsize)

    def deliver(self, event: LiveEvent) -> None:
        if self._callback is not None:
            self._callback(event)
        else:
            t.cast(queue.Queue[LiveEvent], self._queue).put_nowait(event)

    def get(self, timeout: float | None = None) -> LiveEvent | None:
        """Wait for the next buffered event. Returns None on timeout."""
        if self._queue is None:
            raise TypeError("Callback subscriptions do not buffer events.")
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        self._channel.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: t.Any) -> None:
        self.close()


class LiveChannel:
    """Topic based publish/subscribe hub."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._topics: dict[str, dict[int, Subscription]] = {}
        self._ids = count(1)

    def subscribe(self, topic: str, callback: Callback | None = None, maxsize: int | None = None) -> Subscription:
        with self._lock:
            subscription = Subscription(
                self,
                topic,
                next(self._ids),
                callback,
                maxsize if maxsize is not None else settings.LIVE_SUBSCRIBER_QUEUE_SIZE,
            )
            self._topics.setdefault(topic, {})[subscription.id] = subscription
        logger.debug("live_subscribed", topic=topic, subscription_id=subscription.id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._topics.get(subscription.topic)
            if subscribers is None:
                return
            subscribers.pop(subscription.id, None)
            if not subscribers:
                del self._topics[subscription.topic]

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._topics.get(topic, {}))

    def publish(self, topic: str, event: LiveEvent) -> int:
        """Deliver an event to the current subscribers of a topic.

        Returns:
            The number of subscribers the event was delivered to.
        """
        with self._lock:
            subscribers = list(self._topics.get(topic, {}).values())
        delivered = 0
        for subscription in subscribers:
            try:
                subscription.deliver(event)
                delivered += 1
            except queue.Full:
                logger.warning("live_subscriber_queue_full", topic=topic, subscription_id=subscription.id)
            except Exception:
                logger.exception("live_subscriber_failed", topic=topic, subscription_id=subscription.id)
        return delivered

    def clear(self) -> None:
        with self._lock:
            self._topics.clear()


_channel = LiveChannel()


def get_channel() -> LiveChannel:
    """Get the process-wide live channel."""
    return _channel
