"""Permanent deletion of a team member.

Store first, identity provider second. A store-only deletion with a
surviving identity account is the recoverable inconsistency: the member's
organizational data is gone and only an org-less credential remains, which
is logged for manual cleanup.
"""

from dataclasses import dataclass

from src.agency.core.config import Settings, get_settings
from src.agency.core.db.store import Store
from src.agency.core.errors import (
    AuthorizationError,
    ExternalProviderError,
    NotFoundError,
)
from src.agency.core.identity import IdentityProviderClient
from src.agency.core.logging import get_logger, redact_email
from src.agency.models import Account, ActivityAction
from src.agency.services.activity_service import ActivityService
from src.agency.services.admin_guard import can_delete, count_active_admins
from src.agency.services.cascade_resolver import (
    CascadeImpact,
    CascadePlan,
    apply_cascade,
    plan_cascade,
)
from src.agency.services.health_monitor import ConnectionHealthMonitor
from src.agency.services.saga import DeleteState, Saga

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeletionResult:
    account: Account
    impact: CascadeImpact
    reassigned_to: Account
    identity_account_removed: bool


class MemberDeletionService:
    """Coordinates the delete saga."""

    def __init__(
        self,
        store: Store,
        identity: IdentityProviderClient,
        health_monitor: ConnectionHealthMonitor,
        activity: ActivityService,
        settings: Settings | None = None,
    ):
        self.store = store
        self.identity = identity
        self.health_monitor = health_monitor
        self.activity = activity
        self.settings = settings or get_settings()

    async def delete_member(self, acting: Account, target_id: str) -> DeletionResult:
        """Delete target_id from the acting admin's organization.

        Raises:
            AuthorizationError: acting account is not an admin.
            TransientStoreError: store unreachable; nothing was changed.
            NotFoundError: target missing or in another organization.
            PolicyViolationError: self-deletion or last administrator.
            ExternalProviderError: the store deletion committed but the
                identity account could not be removed.
        """
        if not acting.is_admin:
            raise AuthorizationError("Only administrators can delete team members")

        saga = Saga("delete", DeleteState.START, failed_state=DeleteState.FAILED)
        await self.health_monitor.ensure_available()

        async with self.store.read() as uow:
            target = await uow.accounts.get_in_organization(target_id, acting.organization_id)
            if target is None:
                raise NotFoundError(
                    "Member not found in your organization",
                    resolution="Refresh the team list; the member may already be removed",
                )
            members = await uow.accounts.list_by_organization(acting.organization_id)
            can_delete(target, acting, members).raise_if_rejected()
            saga.advance(DeleteState.INVARIANT_CHECKED)

            plan = await plan_cascade(uow, target, reassign_to=acting)
            saga.advance(DeleteState.CASCADE_PLANNED)

        impact = await saga.step(
            "delete_account_row",
            lambda: self._commit_deletion(acting, target, plan),
            reached=DeleteState.STORE_COMMITTED,
        )

        identity_removed = False
        if target.has_identity_account:
            try:
                await saga.step(
                    "delete_identity_account",
                    lambda: self.identity.delete_account(target.id),
                    reached=DeleteState.IDENTITY_REMOVED,
                )
            except ExternalProviderError as e:
                logger.error(
                    "Identity account orphaned - manual cleanup required",
                    account_id=target.id,
                    email=redact_email(target.email),
                    provider_status=e.status,
                    provider_code=e.code,
                )
                await self._record_deleted(acting, target, impact, identity_removed=False)
                await self.activity.record(
                    organization_id=acting.organization_id,
                    action=ActivityAction.DELETE_IDENTITY_FAILED,
                    resource_id=target.id,
                    actor_id=acting.id,
                    resource_name=target.email,
                    metadata={"error": e.message, "provider_status": e.status},
                )
                raise ExternalProviderError(
                    "Member removed from the organization, but the identity account "
                    "could not be deleted",
                    status=e.status,
                    code=e.code,
                    resolution="The identity account needs manual cleanup at the identity provider",
                    details={
                        "account_id": target.id,
                        "store_deleted": True,
                        "reassigned_deliverables": impact.reassigned_count,
                        "removed_client_assignments": impact.removed_assignment_count,
                    },
                ) from e
            identity_removed = True
        else:
            logger.info("Legacy account, skipping identity deletion", account_id=target.id)

        await self._record_deleted(acting, target, impact, identity_removed=identity_removed)
        logger.info(
            "Member deleted",
            account_id=target.id,
            reassigned_deliverables=impact.reassigned_count,
            removed_client_assignments=impact.removed_assignment_count,
            identity_account_removed=identity_removed,
        )
        return DeletionResult(
            account=target,
            impact=impact,
            reassigned_to=acting,
            identity_account_removed=identity_removed,
        )

    async def _commit_deletion(
        self, acting: Account, target: Account, plan: CascadePlan
    ) -> CascadeImpact:
        async with self.store.transaction(
            timeout_ms=self.settings.store_transaction_timeout_ms
        ) as uow:
            if target.is_admin:
                # Re-count under row locks: a concurrent deletion may have
                # removed another admin since the guard ran
                admins = await uow.accounts.lock_floor_admins(acting.organization_id)
                can_delete(target, acting, admins).raise_if_rejected()
                logger.debug("Admin floor rechecked", admins=count_active_admins(admins))

            row = await uow.accounts.get_in_organization(target.id, acting.organization_id)
            if row is None:
                raise NotFoundError("Member was removed by another request")

            impact = await apply_cascade(plan, uow)
            await uow.accounts.delete(row)
        return impact

    async def _record_deleted(
        self,
        acting: Account,
        target: Account,
        impact: CascadeImpact,
        identity_removed: bool,
    ) -> None:
        await self.activity.record(
            organization_id=acting.organization_id,
            action=ActivityAction.DELETED,
            resource_id=target.id,
            actor_id=acting.id,
            resource_name=f"{target.display_name} ({target.email})",
            metadata={
                "deleted_member_role": target.role,
                "deleted_member_status": target.status,
                "provenance": target.provenance,
                "reassigned_deliverables": impact.reassigned_count,
                "removed_client_assignments": impact.removed_assignment_count,
                "late_cascade_rows": impact.late_deliverables + impact.late_assignments,
                "reassigned_to": acting.id,
                "identity_account_removed": identity_removed,
                "deletion_reason": "admin_deletion",
            },
        )
