"""In-process change notifications.

Events carry no payload. Subscribers re-read whatever state they need, so
an extra or repeated notification is always harmless.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable

logger = logging.getLogger(__name__)

ACTIVITY_CHANGED = "activity_changed"
PROFILE_CHANGED = "profile_changed"

Callback = Callable[[], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callback]] = defaultdict(list)

    def subscribe(self, topic: str, callback: Callback) -> Callable[[], None]:
        """Register callback for topic. Returns a function that unsubscribes it."""
        self._subscribers[topic].append(callback)
        return lambda: self.unsubscribe(topic, callback)

    def unsubscribe(self, topic: str, callback: Callback) -> None:
        callbacks = self._subscribers.get(topic, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def publish(self, topic: str) -> int:
        """Call every subscriber of topic in registration order.

        A subscriber that raises is logged and skipped. Returns how many
        subscribers completed.
        """
        delivered = 0
        for callback in list(self._subscribers.get(topic, [])):
            try:
                callback()
            except Exception:
                logger.exception("Subscriber %r failed handling %s", callback, topic)
                continue
            delivered += 1
        return delivered

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))
