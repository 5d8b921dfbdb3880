"""Team member lifecycle endpoints."""

from fastapi import APIRouter, status

from src.agency.api.dependencies import (
    CurrentAccount,
    InviteServiceDep,
    MemberDeletionServiceDep,
    TeamServiceDep,
)
from src.agency.schemas.member import (
    ActivateRequest,
    ActivateResponse,
    DeletedMember,
    DeleteResponse,
    DeletionImpact,
    InviteRequest,
    InviteResponse,
    ManualDeliveryRead,
    MemberRead,
    OrganizationSummary,
    SessionRead,
    TeamListResponse,
    TeamMemberRead,
)
from src.agency.services.invite_service import ActivateCommand, InviteCommand

router = APIRouter(prefix="/members", tags=["members"])


@router.get(
    "",
    response_model=TeamListResponse,
    summary="List team members",
    description="Members of the caller's organization with their client assignment counts.",
)
async def list_members(
    account: CurrentAccount,
    team_service: TeamServiceDep,
) -> TeamListResponse:
    members = await team_service.list_team(account)
    return TeamListResponse(
        members=[
            TeamMemberRead(
                **MemberRead.model_validate(m.account).model_dump(),
                assigned_client_count=m.assigned_client_count,
            )
            for m in members
        ],
        total=len(members),
    )


@router.post(
    "/invite",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite member",
    description=(
        "Create a pending member with an identity account and email the temporary "
        "password. If the email is not delivered, the response carries the temporary "
        "password for manual delivery. Admin role required."
    ),
)
async def invite_member(
    request: InviteRequest,
    account: CurrentAccount,
    invite_service: InviteServiceDep,
) -> InviteResponse:
    result = await invite_service.invite_member(
        account,
        InviteCommand(
            email=str(request.email),
            role=request.role,
            first_name=request.first_name,
            last_name=request.last_name,
            title=request.title,
            phone=request.phone,
            permissions=request.custom_permissions,
        ),
    )
    member = MemberRead.model_validate(result.account)

    if result.manual_delivery is not None:
        return InviteResponse(
            member=member,
            email_delivered=False,
            email_error=result.delivery.error,
            temporary_credential=result.manual_delivery.temporary_credential,
            manual_delivery=ManualDeliveryRead(
                email=result.manual_delivery.email,
                temporary_credential=result.manual_delivery.temporary_credential,
                login_url=result.manual_delivery.login_url,
                note=result.manual_delivery.note,
            ),
            message=(
                f"Member created, but the invitation email was not delivered. "
                f"Share the sign-in details with {member.email} directly."
            ),
        )
    return InviteResponse(
        member=member,
        email_delivered=True,
        message=f"Invitation sent to {member.email}",
    )


@router.post(
    "/activate",
    response_model=ActivateResponse,
    summary="Activate invited account",
    description="Exchange the temporary password for a permanent one. No bearer token needed.",
)
async def activate_account(
    request: ActivateRequest,
    invite_service: InviteServiceDep,
) -> ActivateResponse:
    result = await invite_service.activate_account(
        ActivateCommand(
            email=str(request.email),
            temporary_credential=request.temporary_credential,
            new_credential=request.new_credential,
        )
    )
    session = None
    if result.session is not None:
        session = SessionRead(
            access_token=result.session.access_token,
            refresh_token=result.session.refresh_token,
            expires_in=result.session.expires_in,
            token_type=result.session.token_type,
        )
    return ActivateResponse(
        member=MemberRead.model_validate(result.account),
        organization=(
            OrganizationSummary.model_validate(result.organization)
            if result.organization is not None
            else None
        ),
        session=session,
        session_error=result.session_error,
    )


@router.delete(
    "/{account_id}",
    response_model=DeleteResponse,
    summary="Delete member",
    description=(
        "Permanently delete a member. Open deliverables move to the caller, client "
        "assignments are removed. Admin role required."
    ),
)
async def delete_member(
    account_id: str,
    account: CurrentAccount,
    deletion_service: MemberDeletionServiceDep,
) -> DeleteResponse:
    result = await deletion_service.delete_member(account, account_id)
    deleted = result.account
    return DeleteResponse(
        deleted_member=DeletedMember(
            id=deleted.id,
            display_name=deleted.display_name,
            email=deleted.email,
            role=deleted.role,
        ),
        impact=DeletionImpact(
            reassigned_deliverables=result.impact.reassigned_count,
            removed_client_assignments=result.impact.removed_assignment_count,
            reassigned_to=result.reassigned_to.id,
            reassigned_to_name=result.reassigned_to.display_name,
        ),
        identity_account_removed=result.identity_account_removed,
        message=f"{deleted.display_name} has been permanently deleted",
    )
