"""Account and work-item factories for test data generation."""

from uuid import uuid4

from polyfactory import Use

from src.agency.models import (
    Account,
    AccountProvenance,
    AccountRole,
    AccountStatus,
    ClientAssignment,
    Deliverable,
    DeliverableStatus,
)
from tests.factories.base import BaseFactory, generate_account_id, utc_now

# Default temporary credential for pending accounts
DEFAULT_TEMPORARY_CREDENTIAL = "Tmp#Cred2345abcd"


class AccountFactory(BaseFactory):
    """Factory for generating Account test data."""

    __model__ = Account

    id = Use(generate_account_id)
    organization_id = None
    email = Use(lambda: f"member_{uuid4().hex[:8]}@example.com")
    first_name = "Test"
    last_name = "Member"
    display_name = "Test Member"
    title = "Designer"
    phone = None
    role = AccountRole.TEAM_MEMBER.value
    status = AccountStatus.ACTIVE.value
    provenance = AccountProvenance.CURRENT.value
    permissions = None
    invited_by = None
    invited_at = Use(utc_now)
    temporary_credential = None
    activated_at = Use(utc_now)
    last_login_at = None
    created_at = Use(utc_now)
    updated_at = Use(utc_now)

    @classmethod
    def admin(cls, **kwargs):
        """Create an active administrator."""
        return cls.build(role=AccountRole.ADMIN.value, **kwargs)

    @classmethod
    def pending(cls, **kwargs):
        """Create an invited account that has not activated yet."""
        kwargs.setdefault("temporary_credential", DEFAULT_TEMPORARY_CREDENTIAL)
        return cls.build(status=AccountStatus.PENDING.value, activated_at=None, **kwargs)

    @classmethod
    def legacy(cls, **kwargs):
        """Create an account that predates the identity provider."""
        return cls.build(provenance=AccountProvenance.LEGACY.value, **kwargs)


class DeliverableFactory(BaseFactory):
    __model__ = Deliverable

    id = Use(uuid4)
    organization_id = None
    client_id = Use(uuid4)
    title = "Monthly report"
    status = DeliverableStatus.IN_PROGRESS.value
    assigned_user_id = None
    created_at = Use(utc_now)
    updated_at = Use(utc_now)


class ClientAssignmentFactory(BaseFactory):
    __model__ = ClientAssignment

    id = Use(uuid4)
    account_id = None
    client_id = Use(uuid4)
    created_at = Use(utc_now)
