"""Admin invariant guard - pure decisions over organization membership."""

from collections.abc import Iterable
from dataclasses import dataclass

from src.agency.core.errors import PolicyViolationError
from src.agency.models import Account

SELF_DELETE_REASON = "You cannot delete your own account"
SELF_DELETE_RESOLUTION = "Ask another administrator to remove your account"
LAST_ADMIN_REASON = "Cannot delete the only administrator in the organization"
LAST_ADMIN_RESOLUTION = "Promote another member to admin first, then retry the deletion"


@dataclass(frozen=True)
class GuardDecision:
    ok: bool
    reason: str | None = None
    resolution: str | None = None

    def raise_if_rejected(self) -> None:
        if not self.ok:
            raise PolicyViolationError(self.reason or "Rejected", resolution=self.resolution)


APPROVED = GuardDecision(ok=True)


def count_active_admins(members: Iterable[Account]) -> int:
    """Admins with status active or pending."""
    return sum(1 for member in members if member.counts_toward_admin_floor)


def can_delete(target: Account, acting_admin: Account, org_members: Iterable[Account]) -> GuardDecision:
    """Decide whether acting_admin may delete target. No side effects.

    Rules, in order: no self-deletion; an admin target needs at least one
    other active/pending admin to remain.
    """
    if target.id == acting_admin.id:
        return GuardDecision(ok=False, reason=SELF_DELETE_REASON, resolution=SELF_DELETE_RESOLUTION)

    if target.is_admin and count_active_admins(org_members) <= 1:
        return GuardDecision(ok=False, reason=LAST_ADMIN_REASON, resolution=LAST_ADMIN_RESOLUTION)

    return APPROVED
