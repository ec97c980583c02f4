"""Change notification channel.

Signals carry no payload, only a monotonically increasing version. Each
subscriber owns a queue of size one, so bursts of changes coalesce into a
single wake-up and a slow subscriber never blocks the kernel.
"""

import asyncio
import logging
from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


class ChangeNotifier:
    """Versioned, payload-free change signal."""

    def __init__(self) -> None:
        self._version = 0
        self._subscribers: set[asyncio.Queue[int]] = set()

    @property
    def version(self) -> int:
        return self._version

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue[int]:
        queue: asyncio.Queue[int] = asyncio.Queue(maxsize=1)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[int]) -> None:
        self._subscribers.discard(queue)

    def emit(self) -> int:
        """Bump the version and wake every subscriber.

        Returns:
            int: The new version
        """
        self._version += 1
        for queue in self._subscribers:
            if queue.full():
                # Replace the stale version with the latest one.
                queue.get_nowait()
            queue.put_nowait(self._version)
        return self._version

    async def listen(self) -> AsyncIterator[int]:
        """Yield the latest version after each (coalesced) change."""
        queue = self.subscribe()
        try:
            while True:
                yield await queue.get()
        finally:
            self.unsubscribe(queue)
