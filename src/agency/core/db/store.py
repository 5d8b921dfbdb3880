"""Relational store handle - transactions, probing, and driver error translation.

Services receive a Store instead of reaching for the engine singleton, so
health probing and recovery can be exercised against a fake.
"""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Literal

from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from src.agency.core.errors import (
    ConflictError,
    LifecycleError,
    StoreError,
    TransientStoreError,
)
from src.agency.core.logging import get_logger
from src.agency.repositories.unit_of_work import UnitOfWork

logger = get_logger(__name__)

IsolationLevel = Literal["READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE"]

UNIQUE_VIOLATION = "23505"

# SQLSTATE codes that clear up after reconnecting or retrying
TRANSIENT_SQLSTATES = frozenset(
    {
        "42P05",  # duplicate_prepared_statement (stale pooled connection after deploy)
        "26000",  # invalid_sql_statement_name (prepared statement vanished)
        "57P01",  # admin_shutdown
        "57P02",  # crash_shutdown
        "57P03",  # cannot_connect_now
        "57014",  # query_canceled (statement_timeout)
        "40001",  # serialization_failure
        "40P01",  # deadlock_detected
        "53300",  # too_many_connections
    }
)


def get_sqlstate(exc: BaseException) -> str | None:
    """SQLSTATE of the driver error wrapped by a SQLAlchemy exception, if any."""
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_transient_sqlstate(sqlstate: str | None) -> bool:
    if not sqlstate:
        return False
    # Class 08: connection exception
    return sqlstate.startswith("08") or sqlstate in TRANSIENT_SQLSTATES


def translate_store_error(exc: BaseException) -> LifecycleError:
    """Map a driver/SQLAlchemy failure onto the lifecycle error set.

    Classification uses SQLSTATE and exception class only.
    """
    if isinstance(exc, LifecycleError):
        return exc

    sqlstate = get_sqlstate(exc)
    details = {"sqlstate": sqlstate} if sqlstate else None

    if sqlstate == UNIQUE_VIOLATION:
        return ConflictError(
            "A record with the same unique key already exists",
            resolution="Refresh and check whether the record was created concurrently",
            details=details,
        )

    if is_transient_sqlstate(sqlstate):
        return TransientStoreError("Database temporarily unavailable", details=details)

    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return TransientStoreError("Database connection was invalidated", details=details)

    if isinstance(exc, (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError)):
        return TransientStoreError("Database temporarily unavailable", details=details)

    if isinstance(exc, (OSError, TimeoutError)):
        return TransientStoreError("Database unreachable", details=details)

    return StoreError("Database operation failed", details=details)


class Store:
    """Injected handle over the shared connection pool."""

    def __init__(self, engine: AsyncEngine, default_timeout_ms: int = 10_000):
        self.engine = engine
        self.default_timeout_ms = default_timeout_ms
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    @asynccontextmanager
    async def transaction(
        self,
        timeout_ms: int | None = None,
        isolation_level: IsolationLevel | None = None,
    ) -> AsyncGenerator[UnitOfWork]:
        """Open a read-write transaction with a bounded statement timeout.

        Commits when the block exits normally, rolls back otherwise. Driver
        errors leave as LifecycleError subclasses.
        """
        timeout = timeout_ms if timeout_ms is not None else self.default_timeout_ms
        try:
            async with self._session_factory() as session:
                if isolation_level is not None:
                    await session.connection(
                        execution_options={"isolation_level": isolation_level}
                    )
                # is_local=true scopes the timeout to this transaction
                await session.execute(
                    text("SELECT set_config('statement_timeout', :timeout, true)"),
                    {"timeout": str(timeout)},
                )
                try:
                    yield UnitOfWork(session)
                    await session.commit()
                except BaseException:
                    # The original failure is what the caller needs to see
                    with contextlib.suppress(sa_exc.SQLAlchemyError, OSError):
                        await session.rollback()
                    raise
        except LifecycleError:
            raise
        except (sa_exc.SQLAlchemyError, OSError, TimeoutError) as e:
            translated = translate_store_error(e)
            logger.warning(
                "Store transaction failed",
                error_kind=translated.kind.value,
                sqlstate=get_sqlstate(e),
                error_type=type(e).__name__,
            )
            raise translated from e

    @asynccontextmanager
    async def read(self) -> AsyncGenerator[UnitOfWork]:
        """Read-only unit of work. Nothing is committed."""
        try:
            async with self._session_factory() as session:
                yield UnitOfWork(session)
        except LifecycleError:
            raise
        except (sa_exc.SQLAlchemyError, OSError, TimeoutError) as e:
            raise translate_store_error(e) from e

    async def ping(self, timeout: float = 5.0) -> None:
        """Round-trip a trivial query. Raises on failure."""
        try:
            async with asyncio.timeout(timeout):
                async with self.engine.connect() as connection:
                    await connection.execute(text("SELECT 1"))
        except TimeoutError as e:
            raise TransientStoreError(f"Database probe timed out after {timeout}s") from e
        except (sa_exc.SQLAlchemyError, OSError) as e:
            raise translate_store_error(e) from e

    async def reset_pool(self) -> None:
        """Replace the pool, leaving checked-out connections to finish.

        close=False detaches the old pool without closing connections that
        in-flight transactions still hold.
        """
        await self.engine.dispose(close=False)


_store: Store | None = None


def get_store() -> Store:
    """Get or create the process-wide Store over the engine singleton."""
    global _store
    if _store is None:
        from src.agency.core.config import get_settings
        from src.agency.core.db.engine import get_engine

        _store = Store(
            get_engine(),
            default_timeout_ms=get_settings().store_transaction_timeout_ms,
        )
    return _store


def reset_store() -> None:
    """Drop the Store singleton. Call after dispose_engine()."""
    global _store
    _store = None
