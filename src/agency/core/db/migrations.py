"""Alembic migration runner."""

from alembic.config import Config

from alembic import command


def run_migrations_sync(revision: str = "head") -> None:
    """Upgrade the public schema. Blocking; call via asyncio.to_thread."""
    alembic_cfg = Config("alembic.ini")
    command.upgrade(alembic_cfg, revision)
