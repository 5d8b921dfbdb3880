"""Activity log service - best-effort entries outside the primary transaction."""

from typing import Any
from uuid import UUID

from src.agency.core.db.store import Store
from src.agency.core.logging import get_logger
from src.agency.core.request_context import get_request_context
from src.agency.models import ActivityAction, ActivityLog

logger = get_logger(__name__)

MEMBER_RESOURCE = "member"


def build_activity_entry(
    organization_id: UUID,
    action: ActivityAction | str,
    resource_id: str | None,
    actor_id: str | None = None,
    resource_name: str | None = None,
    metadata: dict[str, Any] | None = None,
    resource_type: str = MEMBER_RESOURCE,
) -> ActivityLog:
    """Build an ActivityLog row stamped with the current request's metadata."""
    ctx = get_request_context()
    return ActivityLog(
        organization_id=organization_id,
        actor_id=actor_id,
        action=action.value if isinstance(action, ActivityAction) else action,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=resource_name[:300] if resource_name else None,
        metadata_=metadata,
        ip_address=ctx.ip_address if ctx else None,
        user_agent=ctx.user_agent if ctx else None,
        request_id=ctx.request_id if ctx else None,
    )


class ActivityService:
    """Records activity entries in their own short transaction.

    Fire-and-forget: a failed write is logged and never propagates
    into the lifecycle operation that triggered it.
    """

    def __init__(self, store: Store):
        self.store = store

    async def record(
        self,
        organization_id: UUID,
        action: ActivityAction | str,
        resource_id: str | None,
        actor_id: str | None = None,
        resource_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ActivityLog | None:
        """Write one entry. Returns None if the write failed."""
        entry = build_activity_entry(
            organization_id=organization_id,
            action=action,
            resource_id=resource_id,
            actor_id=actor_id,
            resource_name=resource_name,
            metadata=metadata,
        )
        try:
            async with self.store.transaction() as uow:
                uow.activity.add(entry)
        except Exception as e:
            logger.warning(
                "Failed to record activity",
                action=entry.action,
                resource_id=resource_id,
                error=str(e),
            )
            return None

        logger.debug("Activity recorded", action=entry.action, resource_id=resource_id)
        return entry
