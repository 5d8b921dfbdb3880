"""Tests for driver error classification and the store probe."""

import asyncio
from contextlib import asynccontextmanager

import pytest
from sqlalchemy import exc as sa_exc

from src.agency.core.db.store import (
    Store,
    get_sqlstate,
    is_transient_sqlstate,
    translate_store_error,
)
from src.agency.core.errors import (
    ConflictError,
    NotFoundError,
    StoreError,
    TransientStoreError,
)

pytestmark = pytest.mark.unit


class DriverError(Exception):
    """Stands in for an asyncpg exception carrying a SQLSTATE."""

    def __init__(self, sqlstate: str | None):
        super().__init__(f"driver error {sqlstate}")
        self.sqlstate = sqlstate


def wrapped(sqlstate: str | None, cls=sa_exc.DBAPIError, **kwargs):
    return cls("SELECT 1", {}, DriverError(sqlstate), **kwargs)


class TestTranslateStoreError:
    def test_unique_violation_is_conflict(self):
        error = translate_store_error(wrapped("23505", sa_exc.IntegrityError))

        assert isinstance(error, ConflictError)
        assert error.details == {"sqlstate": "23505"}

    @pytest.mark.parametrize("sqlstate", ["57P01", "08006", "08003", "42P05", "26000", "40001"])
    def test_transient_sqlstates(self, sqlstate):
        error = translate_store_error(wrapped(sqlstate, sa_exc.ProgrammingError))

        assert isinstance(error, TransientStoreError)
        assert error.details["sqlstate"] == sqlstate

    def test_programming_error_is_not_transient(self):
        error = translate_store_error(wrapped("42703", sa_exc.ProgrammingError))

        assert type(error) is StoreError
        assert error.status_code == 500

    def test_operational_error_without_sqlstate_is_transient(self):
        assert isinstance(
            translate_store_error(wrapped(None, sa_exc.OperationalError)), TransientStoreError
        )

    def test_invalidated_connection_is_transient(self):
        error = translate_store_error(wrapped("XX000", connection_invalidated=True))

        assert isinstance(error, TransientStoreError)

    def test_socket_error_is_transient(self):
        assert isinstance(translate_store_error(ConnectionResetError()), TransientStoreError)

    def test_lifecycle_error_passes_through(self):
        original = NotFoundError("gone")

        assert translate_store_error(original) is original


def test_get_sqlstate_reads_pgcode_fallback():
    class Psycopg2Error(Exception):
        pgcode = "23505"

    assert get_sqlstate(sa_exc.IntegrityError("INSERT", {}, Psycopg2Error())) == "23505"


def test_is_transient_sqlstate():
    assert is_transient_sqlstate("08001")
    assert not is_transient_sqlstate("23505")
    assert not is_transient_sqlstate(None)


class HangingEngine:
    """Engine whose connections never open."""

    @asynccontextmanager
    async def connect(self):
        await asyncio.sleep(10)
        yield

    async def dispose(self, close: bool = True) -> None:
        self.disposed_with = close


@pytest.mark.asyncio
async def test_ping_timeout_is_transient():
    store = Store(HangingEngine())  # type: ignore[arg-type]

    with pytest.raises(TransientStoreError):
        await store.ping(timeout=0.01)


@pytest.mark.asyncio
async def test_reset_pool_keeps_checked_out_connections():
    engine = HangingEngine()
    store = Store(engine)  # type: ignore[arg-type]

    await store.reset_pool()

    assert engine.disposed_with is False
