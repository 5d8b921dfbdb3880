"""FastAPI dependency injection definitions."""

from src.agency.api.dependencies.auth import CurrentAccount, get_current_account
from src.agency.api.dependencies.resources import (
    DispatcherDep,
    HealthMonitorDep,
    IdentityDep,
    StoreDep,
    get_dispatcher_dep,
    get_health_monitor_dep,
    get_identity_dep,
    get_store_dep,
)
from src.agency.api.dependencies.services import (
    ActivityServiceDep,
    InviteServiceDep,
    MemberDeletionServiceDep,
    TeamServiceDep,
    get_activity_service,
    get_invite_service,
    get_member_deletion_service,
    get_team_service,
)

__all__ = [
    # Resources
    "DispatcherDep",
    "HealthMonitorDep",
    "IdentityDep",
    "StoreDep",
    "get_dispatcher_dep",
    "get_health_monitor_dep",
    "get_identity_dep",
    "get_store_dep",
    # Auth
    "CurrentAccount",
    "get_current_account",
    # Services
    "ActivityServiceDep",
    "InviteServiceDep",
    "MemberDeletionServiceDep",
    "TeamServiceDep",
    "get_activity_service",
    "get_invite_service",
    "get_member_deletion_service",
    "get_team_service",
]
