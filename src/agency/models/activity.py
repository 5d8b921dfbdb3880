"""Activity log model - append-only audit trail per organization."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Column, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.agency.models.base import utc_now


class ActivityAction(str, Enum):
    """Actions recorded for account lifecycle operations."""

    INVITED = "invited"
    INVITE_DELIVERY = "invite_delivery"
    INVITE_COMPENSATED = "invite_compensated"
    INVITE_COMPENSATION_FAILED = "invite_compensation_failed"
    ACTIVATED = "activated"
    DELETED = "deleted"
    DELETE_IDENTITY_FAILED = "delete_identity_failed"


class ActivityLog(SQLModel, table=True):
    """Append-only activity entry.

    actor_id and resource_id are plain strings, not foreign keys: entries
    must outlive the accounts they mention.
    """

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_org_created", "organization_id", "created_at"),
        Index("ix_activity_logs_resource", "resource_type", "resource_id"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(index=True)
    actor_id: str | None = Field(default=None, max_length=64)
    action: str = Field(max_length=50)
    resource_type: str = Field(max_length=50)
    resource_id: str | None = Field(default=None, max_length=64)
    resource_name: str | None = Field(default=None, max_length=300)
    metadata_: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column("metadata", JSONB, nullable=True),
    )

    ip_address: str | None = Field(default=None, max_length=45)
    user_agent: str | None = Field(default=None, max_length=500)
    request_id: str | None = Field(default=None, max_length=64)

    created_at: datetime = Field(default_factory=utc_now)
