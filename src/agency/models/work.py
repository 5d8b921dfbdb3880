"""Work models that reference accounts: client assignments, deliverables, notes."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.agency.models.base import utc_now
from src.agency.models.enums import CLOSED_DELIVERABLE_STATUSES, DeliverableStatus, NoteType


class ClientAssignment(SQLModel, table=True):
    """Links an account to a client it serves. Not transferable."""

    __tablename__ = "client_assignments"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    account_id: str = Field(foreign_key="public.accounts.id", index=True, max_length=64)
    client_id: UUID = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)


class Deliverable(SQLModel, table=True):
    """A unit of client work, optionally assigned to an account."""

    __tablename__ = "deliverables"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(foreign_key="public.organizations.id", index=True)
    client_id: UUID = Field(index=True)
    title: str = Field(max_length=200)
    status: str = Field(default=DeliverableStatus.PENDING.value, max_length=20)
    assigned_user_id: str | None = Field(
        default=None,
        foreign_key="public.accounts.id",
        index=True,
        max_length=64,
        ondelete="SET NULL",
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_open(self) -> bool:
        return self.status not in CLOSED_DELIVERABLE_STATUSES


class DeliverableNote(SQLModel, table=True):
    """Comment or status note on a deliverable."""

    __tablename__ = "deliverable_notes"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    deliverable_id: UUID = Field(
        foreign_key="public.deliverables.id", index=True, ondelete="CASCADE"
    )
    author_id: str | None = Field(
        default=None,
        foreign_key="public.accounts.id",
        max_length=64,
        ondelete="SET NULL",
    )
    content: str = Field(max_length=2000)
    note_type: str = Field(default=NoteType.COMMENT.value, max_length=20)
    is_internal: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
