"""Shared enums for models."""

from enum import Enum


class AccountRole(str, Enum):
    """Role of a team member within an organization."""

    ADMIN = "admin"
    MANAGER = "manager"
    TEAM_MEMBER = "team_member"
    VIEWER = "viewer"


class AccountStatus(str, Enum):
    """Account lifecycle status."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


# Statuses that count toward the organization's administrator floor
ADMIN_FLOOR_STATUSES = frozenset({AccountStatus.ACTIVE.value, AccountStatus.PENDING.value})


class AccountProvenance(str, Enum):
    """Where an account's credentials live.

    CURRENT accounts are paired with an identity provider account sharing
    the same id. LEGACY accounts predate the identity provider and have no
    counterpart there.
    """

    CURRENT = "current"
    LEGACY = "legacy"


class DeliverableStatus(str, Enum):
    """Deliverable workflow status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    NEEDS_REVIEW = "needs_review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


CLOSED_DELIVERABLE_STATUSES = frozenset(
    {DeliverableStatus.COMPLETED.value, DeliverableStatus.CANCELLED.value}
)


class NoteType(str, Enum):
    """Kind of note attached to a deliverable."""

    COMMENT = "comment"
    STATUS_UPDATE = "status_update"
