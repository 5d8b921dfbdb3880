"""Connection health monitor - probe the store before cross-system sequences."""

import asyncio
from collections.abc import Awaitable, Callable

from src.agency.core.db.store import Store
from src.agency.core.errors import LifecycleError, TransientStoreError
from src.agency.core.logging import get_logger

logger = get_logger(__name__)


class ConnectionHealthMonitor:
    """Probes the store and recovers the shared pool from transient failures.

    One instance per process. Concurrent recover() calls share a single
    in-flight recovery, and resetting the pool leaves checked-out
    connections alone, so unrelated transactions are unaffected.
    """

    def __init__(
        self,
        store: Store,
        attempts: int = 3,
        backoff_seconds: float = 0.1,
        probe_timeout: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds
        self.probe_timeout = probe_timeout
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._recovery: asyncio.Task[bool] | None = None
        self.last_error: LifecycleError | None = None

    async def probe(self) -> bool:
        """Round-trip the store. Never raises."""
        try:
            await self.store.ping(self.probe_timeout)
        except LifecycleError as e:
            self.last_error = e
            logger.warning(
                "Store probe failed",
                error_kind=e.kind.value,
                sqlstate=e.details.get("sqlstate"),
            )
            return False
        self.last_error = None
        return True

    async def recover(self) -> bool:
        """Reset the pool and re-probe with exponential backoff.

        Only transient failures are retried. Callers arriving while a
        recovery is running wait on that same recovery.
        """
        async with self._lock:
            if self._recovery is None or self._recovery.done():
                self._recovery = asyncio.create_task(self._run_recovery())
            recovery = self._recovery
        # Shielded: one cancelled caller must not abort recovery for the others
        return await asyncio.shield(recovery)

    async def _run_recovery(self) -> bool:
        if self.last_error is not None and not isinstance(self.last_error, TransientStoreError):
            logger.error(
                "Store failure is not transient, skipping recovery",
                error_kind=self.last_error.kind.value,
            )
            return False

        for attempt in range(self.attempts):
            try:
                await self.store.reset_pool()
            except Exception as e:
                logger.warning("Pool reset failed", attempt=attempt + 1, error=str(e))
            await self._sleep(self.backoff_seconds * 2**attempt)
            if await self.probe():
                logger.info("Store connection recovered", attempts=attempt + 1)
                return True

        logger.error("Store recovery exhausted", attempts=self.attempts)
        return False

    async def ensure_available(self) -> None:
        """Probe, recover if needed, or raise TransientStoreError."""
        if await self.probe():
            return
        if await self.recover():
            return
        raise TransientStoreError(
            "Database is unreachable; the operation was not started",
            details={
                "recovery_attempts": self.attempts,
                "last_error": self.last_error.kind.value if self.last_error else None,
            },
        )


_monitor: ConnectionHealthMonitor | None = None


def get_health_monitor() -> ConnectionHealthMonitor:
    """Get or create the process-wide health monitor."""
    global _monitor
    if _monitor is None:
        from src.agency.core.config import get_settings
        from src.agency.core.db.store import get_store

        settings = get_settings()
        _monitor = ConnectionHealthMonitor(
            get_store(),
            attempts=settings.health_recovery_attempts,
            backoff_seconds=settings.health_recovery_backoff_seconds,
            probe_timeout=settings.store_probe_timeout_seconds,
        )
    return _monitor


def reset_health_monitor() -> None:
    global _monitor
    _monitor = None
