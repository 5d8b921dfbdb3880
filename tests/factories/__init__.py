"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import AccountFactory, OrganizationFactory, ...
"""

from tests.factories.account import (
    DEFAULT_TEMPORARY_CREDENTIAL,
    AccountFactory,
    ClientAssignmentFactory,
    DeliverableFactory,
)
from tests.factories.base import BaseFactory, generate_account_id, utc_now
from tests.factories.organization import OrganizationFactory

__all__ = [
    # Base
    "BaseFactory",
    "generate_account_id",
    "utc_now",
    # Organization
    "OrganizationFactory",
    # Account
    "AccountFactory",
    "DEFAULT_TEMPORARY_CREDENTIAL",
    # Work
    "ClientAssignmentFactory",
    "DeliverableFactory",
]
