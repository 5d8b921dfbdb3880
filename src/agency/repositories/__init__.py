"""Repository layer - data access abstraction."""

from src.agency.repositories.account import AccountRepository
from src.agency.repositories.base import BaseRepository
from src.agency.repositories.organization import ActivityLogRepository, OrganizationRepository
from src.agency.repositories.unit_of_work import UnitOfWork
from src.agency.repositories.work import (
    ClientAssignmentRepository,
    DeliverableNoteRepository,
    DeliverableRepository,
)

__all__ = [
    "AccountRepository",
    "ActivityLogRepository",
    "BaseRepository",
    "ClientAssignmentRepository",
    "DeliverableNoteRepository",
    "DeliverableRepository",
    "OrganizationRepository",
    "UnitOfWork",
]
