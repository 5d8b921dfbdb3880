"""Process-wide collaborators, exposed as dependencies so tests can override them."""

from typing import Annotated

from fastapi import Depends

from src.agency.core.db.store import Store, get_store
from src.agency.core.identity import IdentityProviderClient, get_identity_client
from src.agency.core.notifications import NotificationDispatcher, get_dispatcher
from src.agency.services.health_monitor import ConnectionHealthMonitor, get_health_monitor


def get_store_dep() -> Store:
    return get_store()


def get_identity_dep() -> IdentityProviderClient:
    return get_identity_client()


def get_dispatcher_dep() -> NotificationDispatcher:
    return get_dispatcher()


def get_health_monitor_dep() -> ConnectionHealthMonitor:
    return get_health_monitor()


StoreDep = Annotated[Store, Depends(get_store_dep)]
IdentityDep = Annotated[IdentityProviderClient, Depends(get_identity_dep)]
DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher_dep)]
HealthMonitorDep = Annotated[ConnectionHealthMonitor, Depends(get_health_monitor_dep)]
