"""Store transactions and driver error translation against PostgreSQL."""

import pytest
from sqlalchemy import text

from src.agency.core.errors import ConflictError, StoreError, TransientStoreError
from tests.factories import AccountFactory, ClientAssignmentFactory

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def _show(uow, setting: str) -> str:
    result = await uow.session.execute(text(f"SHOW {setting}"))
    return result.scalar_one()


class TestTransaction:
    async def test_applies_isolation_level_and_transaction_local_timeout(self, store):
        async with store.transaction(timeout_ms=1234, isolation_level="SERIALIZABLE") as uow:
            isolation = await _show(uow, "transaction_isolation")
            timeout = await _show(uow, "statement_timeout")

        assert isolation == "serializable"
        assert timeout == "1234ms"

        async with store.transaction() as uow:
            isolation = await _show(uow, "transaction_isolation")
            timeout = await _show(uow, "statement_timeout")

        assert isolation == "read committed"
        assert timeout == "10s"

    async def test_statement_timeout_is_transient(self, store):
        with pytest.raises(TransientStoreError) as exc_info:
            async with store.transaction(timeout_ms=50) as uow:
                await uow.session.execute(text("SELECT pg_sleep(1)"))

        assert exc_info.value.details["sqlstate"] == "57014"

    async def test_failed_block_rolls_back(self, store, organization):
        account = AccountFactory.build(organization_id=organization.id)

        with pytest.raises(RuntimeError):
            async with store.transaction() as uow:
                uow.accounts.add(account)
                await uow.flush()
                raise RuntimeError("abort")

        async with store.read() as uow:
            assert await uow.accounts.get_by_id(account.id) is None

    async def test_duplicate_email_in_organization_is_conflict(self, store, organization, admin):
        duplicate = AccountFactory.build(organization_id=organization.id, email=admin.email)

        with pytest.raises(ConflictError) as exc_info:
            async with store.transaction() as uow:
                uow.accounts.add(duplicate)

        assert exc_info.value.details["sqlstate"] == "23505"

    async def test_client_assignment_blocks_account_row_delete(self, store, organization, seed):
        member = AccountFactory.build(organization_id=organization.id)
        await seed(member)
        await seed(ClientAssignmentFactory.build(account_id=member.id))

        with pytest.raises(StoreError) as exc_info:
            async with store.transaction() as uow:
                row = await uow.accounts.get_by_id(member.id)
                await uow.accounts.delete(row)

        assert exc_info.value.details["sqlstate"] == "23503"
        async with store.read() as uow:
            assert await uow.accounts.get_by_id(member.id) is not None


class TestPing:
    async def test_ping_survives_pool_reset(self, store):
        await store.ping(timeout=2.0)
        await store.reset_pool()
        await store.ping(timeout=2.0)
