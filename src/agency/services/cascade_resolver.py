"""Cascade resolver - dependent-record mutations required before an account row goes.

Open deliverables move to the deleting admin with an internal note each.
Client assignments are deleted, never transferred: a replacement assignment
is a separate decision for the admin.
"""

from dataclasses import dataclass, field
from uuid import UUID

from src.agency.core.logging import get_logger
from src.agency.models import Account, DeliverableNote, NoteType
from src.agency.repositories import UnitOfWork

logger = get_logger(__name__)


@dataclass(frozen=True)
class CascadePlan:
    """Read-only snapshot of what deleting target_id will touch."""

    target_id: str
    target_name: str
    reassign_to_id: str
    reassign_to_name: str
    reassignments: tuple[UUID, ...] = ()
    unassignments: tuple[UUID, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.reassignments and not self.unassignments


@dataclass(frozen=True)
class CascadeImpact:
    """What apply_cascade actually changed."""

    reassigned_deliverables: list[UUID] = field(default_factory=list)
    removed_assignments: list[UUID] = field(default_factory=list)
    # Rows that appeared between planning and applying
    late_deliverables: int = 0
    late_assignments: int = 0

    @property
    def reassigned_count(self) -> int:
        return len(self.reassigned_deliverables)

    @property
    def removed_assignment_count(self) -> int:
        return len(self.removed_assignments)


def reassignment_note(target_name: str, reassign_to_name: str) -> str:
    return (
        f"Deliverable automatically reassigned from {target_name} (deleted member) "
        f"to {reassign_to_name}"
    )


async def plan_cascade(uow: UnitOfWork, target: Account, reassign_to: Account) -> CascadePlan:
    """Compute the reassignment/unassignment set. Writes nothing."""
    deliverables = await uow.deliverables.list_open_by_assignee(target.id)
    assignments = await uow.assignments.list_by_account(target.id)
    plan = CascadePlan(
        target_id=target.id,
        target_name=target.display_name,
        reassign_to_id=reassign_to.id,
        reassign_to_name=reassign_to.display_name,
        reassignments=tuple(d.id for d in deliverables),
        unassignments=tuple(a.id for a in assignments),
    )
    logger.info(
        "Cascade planned",
        target_id=target.id,
        deliverables=len(plan.reassignments),
        client_assignments=len(plan.unassignments),
    )
    return plan


async def apply_cascade(plan: CascadePlan, uow: UnitOfWork) -> CascadeImpact:
    """Apply the plan inside the deleting transaction.

    Re-reads the target's open deliverables and assignments first, so rows
    created after planning are covered too. Planned deliverables that were
    closed or reassigned meanwhile are left alone.
    """
    current_deliverables = await uow.deliverables.list_open_by_assignee(plan.target_id)
    current_assignments = await uow.assignments.list_by_account(plan.target_id)

    planned_deliverables = set(plan.reassignments)
    planned_assignments = set(plan.unassignments)
    late_deliverables = [d.id for d in current_deliverables if d.id not in planned_deliverables]
    late_assignments = [a.id for a in current_assignments if a.id not in planned_assignments]
    if late_deliverables or late_assignments:
        logger.info(
            "Cascade plan drifted, including late rows",
            target_id=plan.target_id,
            late_deliverables=len(late_deliverables),
            late_assignments=len(late_assignments),
        )

    reassigned = await uow.deliverables.reassign(
        [*plan.reassignments, *late_deliverables],
        from_account_id=plan.target_id,
        to_account_id=plan.reassign_to_id,
    )
    content = reassignment_note(plan.target_name, plan.reassign_to_name)
    for deliverable_id in reassigned:
        uow.notes.add(
            DeliverableNote(
                deliverable_id=deliverable_id,
                author_id=plan.reassign_to_id,
                content=content,
                note_type=NoteType.STATUS_UPDATE.value,
                is_internal=True,
            )
        )

    removed = await uow.assignments.delete_by_ids(
        [*plan.unassignments, *late_assignments],
        account_id=plan.target_id,
    )
    await uow.flush()

    return CascadeImpact(
        reassigned_deliverables=reassigned,
        removed_assignments=removed,
        late_deliverables=len(late_deliverables),
        late_assignments=len(late_assignments),
    )
