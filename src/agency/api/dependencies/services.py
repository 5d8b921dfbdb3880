"""Service dependencies."""

from typing import Annotated

from fastapi import Depends

from src.agency.api.dependencies.resources import (
    DispatcherDep,
    HealthMonitorDep,
    IdentityDep,
    StoreDep,
)
from src.agency.services import (
    ActivityService,
    InviteService,
    MemberDeletionService,
    TeamService,
)


def get_activity_service(store: StoreDep) -> ActivityService:
    return ActivityService(store)


ActivityServiceDep = Annotated[ActivityService, Depends(get_activity_service)]


def get_invite_service(
    store: StoreDep,
    identity: IdentityDep,
    dispatcher: DispatcherDep,
    health_monitor: HealthMonitorDep,
    activity: ActivityServiceDep,
) -> InviteService:
    return InviteService(store, identity, dispatcher, health_monitor, activity)


def get_member_deletion_service(
    store: StoreDep,
    identity: IdentityDep,
    health_monitor: HealthMonitorDep,
    activity: ActivityServiceDep,
) -> MemberDeletionService:
    return MemberDeletionService(store, identity, health_monitor, activity)


def get_team_service(store: StoreDep) -> TeamService:
    return TeamService(store)


InviteServiceDep = Annotated[InviteService, Depends(get_invite_service)]
MemberDeletionServiceDep = Annotated[MemberDeletionService, Depends(get_member_deletion_service)]
TeamServiceDep = Annotated[TeamService, Depends(get_team_service)]
