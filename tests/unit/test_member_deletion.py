"""Tests for the delete saga: store first, identity provider second."""

import pytest

from src.agency.core.errors import (
    AuthorizationError,
    ExternalProviderError,
    NotFoundError,
    PolicyViolationError,
    TransientStoreError,
)
from src.agency.models import AccountRole, ActivityAction, DeliverableStatus
from src.agency.services.admin_guard import LAST_ADMIN_REASON, SELF_DELETE_REASON
from src.agency.services.member_deletion_service import MemberDeletionService
from tests.factories import (
    AccountFactory,
    ClientAssignmentFactory,
    DeliverableFactory,
    OrganizationFactory,
)

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


@pytest.fixture
def service(store, identity, health_monitor, activity, settings) -> MemberDeletionService:
    return MemberDeletionService(store, identity, health_monitor, activity, settings)


@pytest.fixture
def target(store, identity, seed_member, organization):
    member = seed_member(display_name="Tom Target", email="tom@brightside.test")
    identity.seed(member.id, member.email, "Perm#Cred23456")
    store.seed(
        DeliverableFactory.build(organization_id=organization.id, assigned_user_id=member.id)
    )
    store.seed(
        DeliverableFactory.build(
            organization_id=organization.id,
            assigned_user_id=member.id,
            status=DeliverableStatus.NEEDS_REVIEW.value,
        )
    )
    store.seed(ClientAssignmentFactory.build(account_id=member.id))
    return member


class TestDeleteMember:
    async def test_deletes_member_everywhere(self, service, store, identity, admin, target):
        result = await service.delete_member(admin, target.id)

        assert store.account(target.id) is None
        assert target.id not in identity.records
        assert result.identity_account_removed
        assert result.reassigned_to.id == admin.id
        assert result.impact.reassigned_count == 2
        assert result.impact.removed_assignment_count == 1

        assert all(d.assigned_user_id == admin.id for d in store.tables.deliverables.values())
        assert store.tables.assignments == {}
        assert len(store.tables.notes) == 2

        deleted = store.activity_for(ActivityAction.DELETED.value)[0]
        assert deleted.resource_id == target.id
        assert deleted.metadata_["reassigned_deliverables"] == 2
        assert deleted.metadata_["removed_client_assignments"] == 1
        assert deleted.metadata_["identity_account_removed"] is True

    async def test_legacy_account_skips_identity_deletion(self, service, store, identity, admin):
        legacy = store.seed(AccountFactory.legacy(organization_id=admin.organization_id))

        result = await service.delete_member(admin, legacy.id)

        assert store.account(legacy.id) is None
        assert not result.identity_account_removed
        assert "delete_account" not in identity.calls

    async def test_self_deletion_rejected(self, service, store, admin):
        with pytest.raises(PolicyViolationError) as exc_info:
            await service.delete_member(admin, admin.id)

        assert exc_info.value.message == SELF_DELETE_REASON
        assert store.account(admin.id) is not None

    async def test_admin_target_rechecks_floor_under_lock(self, service, store, admin, seed_member):
        other_admin = seed_member(role=AccountRole.ADMIN.value)

        await service.delete_member(admin, other_admin.id)

        assert store.admin_locks == 1
        assert store.account(other_admin.id) is None

    async def test_concurrent_admin_removal_trips_floor(self, service, store, admin, seed_member):
        """Two admins deleting each other: the second commit must see only one admin left."""
        other_admin = seed_member(role=AccountRole.ADMIN.value)
        store.on_begin.append(lambda tables: tables.accounts.pop(admin.id))

        with pytest.raises(PolicyViolationError) as exc_info:
            await service.delete_member(admin, other_admin.id)

        assert exc_info.value.message == LAST_ADMIN_REASON
        assert store.account(other_admin.id) is not None

    async def test_member_of_other_organization_not_found(self, service, store, admin):
        outsider = store.seed(
            AccountFactory.build(organization_id=store.seed(OrganizationFactory.build()).id)
        )

        with pytest.raises(NotFoundError):
            await service.delete_member(admin, outsider.id)

        assert store.account(outsider.id) is not None

    async def test_unknown_member_not_found(self, service, admin):
        with pytest.raises(NotFoundError):
            await service.delete_member(admin, "missing-id")

    async def test_non_admin_cannot_delete(self, service, seed_member, target):
        manager = seed_member(role=AccountRole.MANAGER.value)

        with pytest.raises(AuthorizationError):
            await service.delete_member(manager, target.id)

    async def test_store_failure_changes_nothing(self, service, store, identity, admin, target):
        store.commit_errors.append(TransientStoreError("connection reset"))

        with pytest.raises(TransientStoreError):
            await service.delete_member(admin, target.id)

        assert store.account(target.id) is not None
        assert len(store.tables.assignments) == 1
        assert target.id in identity.records
        assert "delete_account" not in identity.calls

    async def test_identity_failure_after_commit_is_reported(
        self, service, store, identity, admin, target, logs
    ):
        identity.fail("delete_account")

        with pytest.raises(ExternalProviderError) as exc_info:
            await service.delete_member(admin, target.id)

        error = exc_info.value
        assert error.details["store_deleted"] is True
        assert error.details["reassigned_deliverables"] == 2
        assert store.account(target.id) is None
        assert target.id in identity.records
        assert store.activity_actions() == [
            ActivityAction.DELETED.value,
            ActivityAction.DELETE_IDENTITY_FAILED.value,
        ]
        orphan = next(e for e in logs if e["event"].startswith("Identity account orphaned"))
        assert orphan["log_level"] == "error"
        assert orphan["account_id"] == target.id
