"""Repository for Account entity."""

from uuid import UUID

from sqlalchemy import func
from sqlmodel import col, select

from src.agency.models import ADMIN_FLOOR_STATUSES, Account, AccountRole, AccountStatus
from src.agency.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Repository for team member accounts."""

    model = Account

    async def get_in_organization(self, account_id: str, organization_id: UUID) -> Account | None:
        """Get an account only if it belongs to the given organization."""
        result = await self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, account_id: str) -> Account | None:
        """Get an account with a row lock held until the transaction ends."""
        result = await self.session.execute(
            select(Account).where(Account.id == account_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_by_email_in_organization(
        self, email: str, organization_id: UUID
    ) -> Account | None:
        """Case-insensitive email lookup scoped to one organization."""
        result = await self.session.execute(
            select(Account).where(
                func.lower(Account.email) == email.lower(),
                Account.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_pending_by_email(self, email: str) -> list[Account]:
        """Pending accounts for an email, across organizations."""
        result = await self.session.execute(
            select(Account).where(
                func.lower(Account.email) == email.lower(),
                Account.status == AccountStatus.PENDING.value,
            )
        )
        return list(result.scalars().all())

    async def list_by_organization(self, organization_id: UUID) -> list[Account]:
        """All accounts in an organization, active first then newest first."""
        result = await self.session.execute(
            select(Account)
            .where(Account.organization_id == organization_id)
            .order_by(col(Account.status).asc(), col(Account.created_at).desc())
        )
        return list(result.scalars().all())

    async def lock_floor_admins(self, organization_id: UUID) -> list[Account]:
        """Lock the admin rows that count toward the administrator floor.

        Concurrent deletions serialize on these row locks, so the count read
        afterwards stays valid until the transaction commits.
        """
        result = await self.session.execute(
            select(Account)
            .where(
                Account.organization_id == organization_id,
                Account.role == AccountRole.ADMIN.value,
                col(Account.status).in_(ADMIN_FLOOR_STATUSES),
            )
            .order_by(col(Account.id))
            .with_for_update()
        )
        return list(result.scalars().all())

    async def delete(self, account: Account) -> None:
        """Hard-delete an account row (flushes immediately)."""
        await self.session.delete(account)
        await self.session.flush()
