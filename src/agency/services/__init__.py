from src.agency.services.activity_service import ActivityService
from src.agency.services.health_monitor import ConnectionHealthMonitor
from src.agency.services.invite_service import InviteService
from src.agency.services.member_deletion_service import MemberDeletionService
from src.agency.services.team_service import TeamService

__all__ = [
    "ActivityService",
    "ConnectionHealthMonitor",
    "InviteService",
    "MemberDeletionService",
    "TeamService",
]
