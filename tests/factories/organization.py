"""Organization factory."""

from uuid import uuid4

from polyfactory import Use

from src.agency.models import Organization
from tests.factories.base import BaseFactory, utc_now


class OrganizationFactory(BaseFactory):
    __model__ = Organization

    id = Use(uuid4)
    name = "Test Agency"
    slug = Use(lambda: f"agency_{uuid4().hex[:8]}")
    setup_completed_at = Use(utc_now)
    created_at = Use(utc_now)
