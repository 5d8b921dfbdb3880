"""Repositories for organizations and their activity log."""

from src.agency.models import ActivityLog, Organization
from src.agency.repositories.base import BaseRepository


class OrganizationRepository(BaseRepository[Organization]):
    """Repository for organizations."""

    model = Organization


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Append-only access to the activity log."""

    model = ActivityLog
