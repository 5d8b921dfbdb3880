"""Tests for cascade planning and application."""

import pytest

from src.agency.models import DeliverableStatus, NoteType
from src.agency.services.cascade_resolver import apply_cascade, plan_cascade, reassignment_note
from tests.factories import AccountFactory, ClientAssignmentFactory, DeliverableFactory

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


@pytest.fixture
def target(seed_member):
    return seed_member(display_name="Tom Target")


class TestPlanCascade:
    async def test_plans_open_deliverables_and_assignments(self, store, admin, target, organization):
        open_item = store.seed(
            DeliverableFactory.build(organization_id=organization.id, assigned_user_id=target.id)
        )
        store.seed(
            DeliverableFactory.build(
                organization_id=organization.id,
                assigned_user_id=target.id,
                status=DeliverableStatus.COMPLETED.value,
            )
        )
        assignment = store.seed(ClientAssignmentFactory.build(account_id=target.id))

        async with store.read() as uow:
            plan = await plan_cascade(uow, target, reassign_to=admin)

        assert plan.reassignments == (open_item.id,)
        assert plan.unassignments == (assignment.id,)
        assert plan.reassign_to_id == admin.id
        assert not plan.is_empty

    async def test_empty_plan(self, store, admin, target):
        async with store.read() as uow:
            plan = await plan_cascade(uow, target, reassign_to=admin)

        assert plan.is_empty


class TestApplyCascade:
    async def test_reassigns_with_internal_note_and_removes_assignments(
        self, store, admin, target, organization
    ):
        deliverable = store.seed(
            DeliverableFactory.build(organization_id=organization.id, assigned_user_id=target.id)
        )
        store.seed(ClientAssignmentFactory.build(account_id=target.id))
        async with store.read() as uow:
            plan = await plan_cascade(uow, target, reassign_to=admin)

        async with store.transaction() as uow:
            impact = await apply_cascade(plan, uow)

        assert impact.reassigned_count == 1
        assert impact.removed_assignment_count == 1
        assert store.tables.deliverables[deliverable.id].assigned_user_id == admin.id
        assert store.tables.assignments == {}

        note = store.tables.notes[0]
        assert note.deliverable_id == deliverable.id
        assert note.author_id == admin.id
        assert note.is_internal
        assert note.note_type == NoteType.STATUS_UPDATE.value
        assert note.content == reassignment_note("Tom Target", "Ada Admin")

    async def test_includes_rows_created_after_planning(self, store, admin, target, organization):
        async with store.read() as uow:
            plan = await plan_cascade(uow, target, reassign_to=admin)
        late = DeliverableFactory.build(organization_id=organization.id, assigned_user_id=target.id)
        late_assignment = ClientAssignmentFactory.build(account_id=target.id)

        def concurrent_writer(tables):
            tables.deliverables[late.id] = late
            tables.assignments[late_assignment.id] = late_assignment

        store.on_begin.append(concurrent_writer)
        async with store.transaction() as uow:
            impact = await apply_cascade(plan, uow)

        assert impact.reassigned_deliverables == [late.id]
        assert impact.removed_assignments == [late_assignment.id]
        assert impact.late_deliverables == 1
        assert impact.late_assignments == 1

    async def test_skips_deliverables_closed_after_planning(self, store, admin, target, organization):
        deliverable = store.seed(
            DeliverableFactory.build(organization_id=organization.id, assigned_user_id=target.id)
        )
        async with store.read() as uow:
            plan = await plan_cascade(uow, target, reassign_to=admin)

        def close_it(tables):
            tables.deliverables[deliverable.id].status = DeliverableStatus.COMPLETED.value

        store.on_begin.append(close_it)
        async with store.transaction() as uow:
            impact = await apply_cascade(plan, uow)

        assert impact.reassigned_count == 0
        assert store.tables.notes == []
        assert store.tables.deliverables[deliverable.id].assigned_user_id == target.id

    async def test_leaves_other_members_untouched(self, store, admin, target, organization):
        bystander = store.seed(AccountFactory.build(organization_id=organization.id))
        theirs = store.seed(
            DeliverableFactory.build(organization_id=organization.id, assigned_user_id=bystander.id)
        )
        their_assignment = store.seed(ClientAssignmentFactory.build(account_id=bystander.id))
        async with store.read() as uow:
            plan = await plan_cascade(uow, target, reassign_to=admin)

        async with store.transaction() as uow:
            await apply_cascade(plan, uow)

        assert store.tables.deliverables[theirs.id].assigned_user_id == bystander.id
        assert their_assignment.id in store.tables.assignments
