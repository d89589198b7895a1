"""Change notifications for review transitions.

Consumers that must react when reviews change (status caches, list views)
subscribe here. The transport behind a consumer is its own business.
"""

import logging
import threading
from typing import Callable, Set

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class ReviewEvents:
    """Publish/subscribe hub for "reviews changed" notifications."""

    def __init__(self):
        self._listeners: Set[Listener] = set()
        self._lock = threading.Lock()

    def on_reviews_changed(self, callback: Listener) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.add(callback)

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.discard(callback)

        return unsubscribe

    def notify_changed(self) -> None:
        """Call every listener. A failing listener does not stop the others."""
        with self._lock:
            listeners = list(self._listeners)
        for callback in listeners:
            try:
                callback()
            except Exception:
                logger.exception("Review change listener %r failed", callback)


# Process-wide hub used by the API
review_events = ReviewEvents()
