"""Unit of work - the repositories bound to one store transaction."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.agency.repositories.account import AccountRepository
from src.agency.repositories.organization import ActivityLogRepository, OrganizationRepository
from src.agency.repositories.work import (
    ClientAssignmentRepository,
    DeliverableNoteRepository,
    DeliverableRepository,
)


class UnitOfWork:
    """Repositories sharing a single session.

    Created by Store.transaction() / Store.read(); never committed directly.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.accounts = AccountRepository(session)
        self.organizations = OrganizationRepository(session)
        self.deliverables = DeliverableRepository(session)
        self.assignments = ClientAssignmentRepository(session)
        self.notes = DeliverableNoteRepository(session)
        self.activity = ActivityLogRepository(session)

    async def flush(self) -> None:
        await self.session.flush()
