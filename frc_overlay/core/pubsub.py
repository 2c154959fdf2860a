"""
Broadcast topic for server-push change events

Transport agnostic: the SSE endpoint subscribes and drains a queue. publish()
may be called from any thread (watchdog runs its own), delivery always
happens on the subscriber's event loop.
"""
import asyncio
import logging
import threading
from typing import Any, Optional, Set


logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


class Subscription:
    """One subscriber's bounded mailbox"""

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = DEFAULT_QUEUE_SIZE):
        self._loop = loop
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue(maxsize=maxsize)

    def deliver(self, message: Any) -> None:
        self._loop.call_soon_threadsafe(self._offer, message)

    def _offer(self, message: Any) -> None:
        if self._queue.full():
            # Slow consumer: keep the newest events
            self._queue.get_nowait()
        self._queue.put_nowait(message)

    async def get(self, timeout: Optional[float] = None) -> Optional[Any]:
        """Next message, or None if `timeout` elapses first"""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def pending(self) -> int:
        return self._queue.qsize()


class Topic:
    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self._queue_size = queue_size
        self._subscribers: Set[Subscription] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Must be called from inside the subscriber's running event loop"""
        subscription = Subscription(asyncio.get_running_loop(), self._queue_size)
        with self._lock:
            self._subscribers.add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> int:
        """Remove a subscriber; returns how many remain"""
        with self._lock:
            self._subscribers.discard(subscription)
            return len(self._subscribers)

    def publish(self, message: Any) -> int:
        """Fan `message` out to every subscriber; returns the delivery count"""
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for subscription in subscribers:
            try:
                subscription.deliver(message)
                delivered += 1
            except RuntimeError:
                # Event loop closed: the subscriber is gone
                logger.debug("Dropping subscriber with closed event loop")
                self.unsubscribe(subscription)
        return delivered
