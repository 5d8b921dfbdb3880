"""HTTP test fixtures: the real app with fakes injected through dependency overrides."""

from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient

from src.agency.api.dependencies import (
    get_dispatcher_dep,
    get_health_monitor_dep,
    get_identity_dep,
    get_store_dep,
)
from src.agency.core.health import reset_health_cache
from src.agency.main import app as application
from src.agency.models import Account
from tests.helpers import make_access_token


@pytest.fixture
def app(store, identity, dispatcher, health_monitor):
    application.dependency_overrides[get_store_dep] = lambda: store
    application.dependency_overrides[get_identity_dep] = lambda: identity
    application.dependency_overrides[get_dispatcher_dep] = lambda: dispatcher
    application.dependency_overrides[get_health_monitor_dep] = lambda: health_monitor
    reset_health_cache()
    yield application
    application.dependency_overrides.clear()
    reset_health_cache()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> Callable[[Account], dict[str, str]]:
    def _headers(account: Account) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_access_token(account.id)}"}

    return _headers
