"""Request tracking for graceful shutdown.

Lifecycle operations are not cancellation-aware, so shutdown waits for
in-flight requests before the engine and identity client are closed.
"""

import asyncio
from collections import Counter
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from src.agency.core.logging import get_logger

logger = get_logger(__name__)


class RequestTracker:
    """Tracks in-flight requests for graceful shutdown."""

    def __init__(self) -> None:
        self._in_flight: Counter[str] = Counter()
        self._shutting_down = False
        self._lock = asyncio.Lock()
        self._drain_event = asyncio.Event()

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def in_flight_count(self) -> int:
        return sum(self._in_flight.values())

    @property
    def in_flight_operations(self) -> dict[str, int]:
        """In-flight request counts keyed by operation name."""
        return {name: count for name, count in self._in_flight.items() if count > 0}

    @asynccontextmanager
    async def track_request(self, operation: str = "request") -> AsyncGenerator[None]:
        """Context manager to track a request."""
        async with self._lock:
            self._in_flight[operation] += 1
        try:
            yield
        finally:
            async with self._lock:
                self._in_flight[operation] -= 1
                if self._in_flight[operation] <= 0:
                    del self._in_flight[operation]
                if self.in_flight_count == 0 and self._shutting_down:
                    logger.info("All requests drained, setting drain event")
                    self._drain_event.set()

    async def start_shutdown(self) -> None:
        """Mark the application as shutting down."""
        logger.info("Request tracker entering shutdown mode")
        self._shutting_down = True
        async with self._lock:
            if self.in_flight_count == 0:
                self._drain_event.set()
            else:
                logger.info(
                    "Waiting for in-flight requests",
                    in_flight=self.in_flight_count,
                    operations=self.in_flight_operations,
                )

    async def wait_for_drain(self, timeout: float) -> bool:
        """Wait for all in-flight requests to complete.

        Returns:
            True if all requests completed within timeout, False otherwise
        """
        try:
            await asyncio.wait_for(self._drain_event.wait(), timeout=timeout)
            logger.info("All requests drained successfully")
            return True
        except TimeoutError:
            logger.warning(
                "Shutdown timeout with requests still in flight",
                timeout=timeout,
                operations=self.in_flight_operations,
            )
            return False

    def reset(self) -> None:
        """Reset tracker state. For testing only."""
        self._in_flight = Counter()
        self._shutting_down = False
        self._drain_event = asyncio.Event()


# Global request tracker instance
request_tracker = RequestTracker()
