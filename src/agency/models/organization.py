"""Organization model - owns accounts and their assignments."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.agency.models.base import utc_now


class Organization(SQLModel, table=True):
    """An agency using the product."""

    __tablename__ = "organizations"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=100)
    slug: str = Field(max_length=56, unique=True, index=True)
    # Null until onboarding completes
    setup_completed_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
