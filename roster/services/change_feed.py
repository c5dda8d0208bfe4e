"""
In-memory fan-out of row change notifications, one queue per subscriber.
"""

import asyncio
import logging
import threading
from typing import Dict, List, Tuple

from ..config import STREAM_QUEUE_SIZE
from ..schemas import ChangeNotification

logger = logging.getLogger(__name__)


def _offer(queue: asyncio.Queue, notification: ChangeNotification):
    try:
        queue.put_nowait(notification)
    except asyncio.QueueFull:
        # Slow subscriber; it misses this event and relies on the
        # reconciler's insert/update collapse to catch up.
        logger.warning(f"Dropping {notification.kind.value} for row {notification.row_id}: subscriber queue full")


class ChangeBroadcaster:
    """Per-day subscriber registry. Publishing never blocks the writer."""

    def __init__(self, queue_size: int = STREAM_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: Dict[str, List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, date_key: str) -> asyncio.Queue:
        """Register a queue for ``date_key``; must be called from the consuming loop."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        loop = asyncio.get_running_loop()
        with self._lock:
            self._subscribers.setdefault(date_key, []).append((loop, queue))
        logger.debug(f"Subscriber added for {date_key}")
        return queue

    def unsubscribe(self, date_key: str, queue: asyncio.Queue):
        with self._lock:
            entries = self._subscribers.get(date_key, [])
            self._subscribers[date_key] = [(l, q) for l, q in entries if q is not queue]
            if not self._subscribers[date_key]:
                del self._subscribers[date_key]

    def subscriber_count(self, date_key: str) -> int:
        with self._lock:
            return len(self._subscribers.get(date_key, []))

    def publish(self, notification: ChangeNotification):
        with self._lock:
            targets = list(self._subscribers.get(notification.date_key, []))
        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None
        for loop, queue in targets:
            if loop is current:
                _offer(queue, notification)
            elif not loop.is_closed():
                loop.call_soon_threadsafe(_offer, queue, notification)


# Global broadcaster instance
change_broadcaster = ChangeBroadcaster()
