"""Repositories for records that reference accounts."""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlmodel import col, select

from src.agency.models import (
    CLOSED_DELIVERABLE_STATUSES,
    ClientAssignment,
    Deliverable,
    DeliverableNote,
)
from src.agency.models.base import utc_now
from src.agency.repositories.base import BaseRepository


class DeliverableRepository(BaseRepository[Deliverable]):
    """Repository for deliverables."""

    model = Deliverable

    async def list_open_by_assignee(self, account_id: str) -> list[Deliverable]:
        """Open (not completed/cancelled) deliverables assigned to an account."""
        result = await self.session.execute(
            select(Deliverable)
            .where(
                Deliverable.assigned_user_id == account_id,
                col(Deliverable.status).not_in(CLOSED_DELIVERABLE_STATUSES),
            )
            .order_by(col(Deliverable.created_at))
        )
        return list(result.scalars().all())

    async def reassign(
        self,
        deliverable_ids: Sequence[UUID],
        from_account_id: str,
        to_account_id: str,
    ) -> list[UUID]:
        """Move open deliverables between accounts.

        Only rows still assigned to from_account_id and still open are
        touched. Returns the ids actually reassigned.
        """
        if not deliverable_ids:
            return []
        result = await self.session.execute(
            update(Deliverable)
            .where(
                col(Deliverable.id).in_(list(deliverable_ids)),
                col(Deliverable.assigned_user_id) == from_account_id,
                col(Deliverable.status).not_in(CLOSED_DELIVERABLE_STATUSES),
            )
            .values(assigned_user_id=to_account_id, updated_at=utc_now())
            .returning(col(Deliverable.id))
        )
        return list(result.scalars().all())


class ClientAssignmentRepository(BaseRepository[ClientAssignment]):
    """Repository for client assignments."""

    model = ClientAssignment

    async def list_by_account(self, account_id: str) -> list[ClientAssignment]:
        result = await self.session.execute(
            select(ClientAssignment).where(ClientAssignment.account_id == account_id)
        )
        return list(result.scalars().all())

    async def delete_by_ids(self, assignment_ids: Sequence[UUID], account_id: str) -> list[UUID]:
        """Delete assignments owned by account_id. Returns the ids removed."""
        if not assignment_ids:
            return []
        result = await self.session.execute(
            delete(ClientAssignment)
            .where(
                col(ClientAssignment.id).in_(list(assignment_ids)),
                col(ClientAssignment.account_id) == account_id,
            )
            .returning(col(ClientAssignment.id))
        )
        return list(result.scalars().all())

    async def count_by_accounts(self, account_ids: Sequence[str]) -> dict[str, int]:
        """Number of client assignments per account id."""
        if not account_ids:
            return {}
        result = await self.session.execute(
            select(ClientAssignment.account_id, func.count())
            .where(col(ClientAssignment.account_id).in_(list(account_ids)))
            .group_by(col(ClientAssignment.account_id))
        )
        return {account_id: count for account_id, count in result.all()}


class DeliverableNoteRepository(BaseRepository[DeliverableNote]):
    """Repository for deliverable notes."""

    model = DeliverableNote
