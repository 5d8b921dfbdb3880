"""Account model - a team member paired with an identity provider account."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Column, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.agency.models.base import utc_now
from src.agency.models.enums import (
    ADMIN_FLOOR_STATUSES,
    AccountProvenance,
    AccountRole,
    AccountStatus,
)


class Account(SQLModel, table=True):
    """Team member account.

    For CURRENT provenance the primary key equals the identity provider's
    account id. The pairing is kept consistent by the lifecycle services,
    not by a foreign key.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("organization_id", "email", name="uq_accounts_organization_email"),
        {"schema": "public"},
    )

    id: str = Field(primary_key=True, max_length=64)
    organization_id: UUID = Field(
        foreign_key="public.organizations.id", index=True, ondelete="CASCADE"
    )
    email: str = Field(max_length=255, index=True)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    display_name: str = Field(max_length=201)
    title: str = Field(max_length=100)
    phone: str | None = Field(default=None, max_length=40)
    role: str = Field(default=AccountRole.TEAM_MEMBER.value, max_length=20)
    status: str = Field(default=AccountStatus.PENDING.value, max_length=20)
    provenance: str = Field(default=AccountProvenance.CURRENT.value, max_length=20)
    permissions: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSONB, nullable=True),
    )

    invited_by: str | None = Field(default=None, max_length=64)
    invited_at: datetime | None = Field(default=None)
    # Plaintext, present only between invite and activation
    temporary_credential: str | None = Field(default=None, max_length=128)
    activated_at: datetime | None = Field(default=None)
    last_login_at: datetime | None = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN.value

    @property
    def counts_toward_admin_floor(self) -> bool:
        return self.is_admin and self.status in ADMIN_FLOOR_STATUSES

    @property
    def has_identity_account(self) -> bool:
        return self.provenance == AccountProvenance.CURRENT.value
