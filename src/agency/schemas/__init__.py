from src.agency.schemas.member import (
    ActivateRequest,
    ActivateResponse,
    DeleteResponse,
    InviteRequest,
    InviteResponse,
    MemberRead,
    TeamListResponse,
)

__all__ = [
    "ActivateRequest",
    "ActivateResponse",
    "DeleteResponse",
    "InviteRequest",
    "InviteResponse",
    "MemberRead",
    "TeamListResponse",
]
