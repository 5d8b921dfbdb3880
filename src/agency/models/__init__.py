"""Model exports.

Import from here: `from src.agency.models import Account, Organization`
"""

from src.agency.models.account import Account
from src.agency.models.activity import ActivityAction, ActivityLog
from src.agency.models.enums import (
    ADMIN_FLOOR_STATUSES,
    CLOSED_DELIVERABLE_STATUSES,
    AccountProvenance,
    AccountRole,
    AccountStatus,
    DeliverableStatus,
    NoteType,
)
from src.agency.models.organization import Organization
from src.agency.models.work import ClientAssignment, Deliverable, DeliverableNote

__all__ = [
    # Enums
    "ADMIN_FLOOR_STATUSES",
    "CLOSED_DELIVERABLE_STATUSES",
    "AccountProvenance",
    "AccountRole",
    "AccountStatus",
    "ActivityAction",
    "DeliverableStatus",
    "NoteType",
    # Tables
    "Account",
    "ActivityLog",
    "ClientAssignment",
    "Deliverable",
    "DeliverableNote",
    "Organization",
]
