"""Team member schemas."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from src.agency.core.security import validate_credential_strength

RoleName = Literal["admin", "manager", "team_member", "viewer"]


class MemberRead(BaseModel):
    """Public view of an account. Never includes the temporary credential."""

    id: str
    organization_id: UUID
    email: str
    display_name: str
    first_name: str
    last_name: str
    title: str
    phone: str | None
    role: str
    status: str
    invited_at: datetime | None
    activated_at: datetime | None
    last_login_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class InviteRequest(BaseModel):
    email: EmailStr
    role: RoleName
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    title: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=40)
    custom_permissions: dict[str, Any] | None = None


class ManualDeliveryRead(BaseModel):
    """Sign-in details for out-of-band delivery when the email did not go out."""

    email: str
    temporary_credential: str
    login_url: str
    note: str


class InviteResponse(BaseModel):
    member: MemberRead
    email_delivered: bool
    email_error: str | None = None
    temporary_credential: str | None = None
    manual_delivery: ManualDeliveryRead | None = None
    message: str


class ActivateRequest(BaseModel):
    email: EmailStr
    temporary_credential: str = Field(min_length=1, max_length=128)
    new_credential: str = Field(min_length=8, max_length=100)

    @field_validator("new_credential")
    @classmethod
    def validate_credential(cls, v: str) -> str:
        return validate_credential_strength(v)

    @model_validator(mode="after")
    def new_credential_differs(self) -> "ActivateRequest":
        if self.new_credential == self.temporary_credential:
            raise ValueError("New password must differ from the temporary password")
        return self


class OrganizationSummary(BaseModel):
    id: UUID
    name: str
    slug: str

    model_config = {"from_attributes": True}


class SessionRead(BaseModel):
    access_token: str
    refresh_token: str | None
    expires_in: int | None
    token_type: str = "bearer"


class ActivateResponse(BaseModel):
    member: MemberRead
    organization: OrganizationSummary | None
    session: SessionRead | None = None
    session_error: str | None = None
    message: str = "Account activated successfully"


class DeletionImpact(BaseModel):
    reassigned_deliverables: int
    removed_client_assignments: int
    reassigned_to: str
    reassigned_to_name: str


class DeletedMember(BaseModel):
    id: str
    display_name: str
    email: str
    role: str


class DeleteResponse(BaseModel):
    deleted_member: DeletedMember
    impact: DeletionImpact
    identity_account_removed: bool
    message: str


class TeamMemberRead(MemberRead):
    assigned_client_count: int


class TeamListResponse(BaseModel):
    members: list[TeamMemberRead]
    total: int
