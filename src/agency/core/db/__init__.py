"""Database utilities - engine and store handle."""

from src.agency.core.db.engine import dispose_engine, get_engine
from src.agency.core.db.migrations import run_migrations_sync
from src.agency.core.db.store import (
    Store,
    get_store,
    reset_store,
    translate_store_error,
)

__all__ = [
    # Engine
    "dispose_engine",
    "get_engine",
    # Migrations
    "run_migrations_sync",
    # Store
    "Store",
    "get_store",
    "reset_store",
    "translate_store_error",
]
