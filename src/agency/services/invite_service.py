"""Invite and activate team members across the identity provider and the store.

Invite: identity account first, then the store row. A failed store write is
compensated by deleting the identity account.
Activate: credential update at the provider first, then the status flip. A
failed store write is compensated by restoring the temporary credential.
"""

import contextlib
import re
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any

from src.agency.core.config import Settings, get_settings
from src.agency.core.db.store import Store
from src.agency.core.errors import (
    AlreadyActivatedError,
    AuthenticationError,
    AuthorizationError,
    CompensationFailureError,
    ConflictError,
    ExternalProviderError,
    LifecycleError,
    NotFoundError,
    ValidationError,
)
from src.agency.core.identity import IdentityProviderClient, IdentitySession
from src.agency.core.logging import get_logger, redact_email
from src.agency.core.notifications import (
    TEAM_INVITATION,
    DeliveryResult,
    NotificationDispatcher,
)
from src.agency.core.security import (
    MIN_CREDENTIAL_LENGTH,
    credentials_match,
    generate_temporary_credential,
)
from src.agency.models import (
    Account,
    AccountProvenance,
    AccountRole,
    AccountStatus,
    ActivityAction,
    Organization,
)
from src.agency.models.base import utc_now
from src.agency.services.activity_service import ActivityService, build_activity_entry
from src.agency.services.health_monitor import ConnectionHealthMonitor
from src.agency.services.saga import ActivateState, InviteState, Saga

logger = get_logger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MANUAL_DELIVERY_NOTE = "They'll be prompted to set a permanent password on first sign-in."


@dataclass(frozen=True)
class InviteCommand:
    email: str
    role: str
    first_name: str
    last_name: str
    title: str
    phone: str | None = None
    permissions: dict[str, Any] | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class ActivateCommand:
    email: str
    temporary_credential: str
    new_credential: str


@dataclass(frozen=True)
class ManualDelivery:
    """What the inviting admin needs to hand the invitation over in person."""

    email: str
    temporary_credential: str
    login_url: str
    note: str = MANUAL_DELIVERY_NOTE


@dataclass(frozen=True)
class InviteResult:
    account: Account
    delivery: DeliveryResult
    manual_delivery: ManualDelivery | None = None

    @property
    def email_delivered(self) -> bool:
        return self.delivery.delivered


@dataclass(frozen=True)
class ActivationResult:
    account: Account
    organization: Organization | None
    session: IdentitySession | None = None
    session_error: str | None = None


def _require(value: str | None, field_name: str, max_length: int) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field_name} is required")
    if len(cleaned) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return cleaned


def validate_invite(command: InviteCommand) -> InviteCommand:
    """Check input shape and return a normalized copy. Pure."""
    email = (command.email or "").strip().lower()
    if not _EMAIL_PATTERN.match(email) or len(email) > 255:
        raise ValidationError("Invalid email format")

    try:
        role = AccountRole(command.role).value
    except ValueError:
        allowed = ", ".join(r.value for r in AccountRole)
        raise ValidationError(f"Invalid role. Must be one of: {allowed}") from None

    phone = (command.phone or "").strip() or None
    if phone is not None and len(phone) > 40:
        raise ValidationError("phone must be at most 40 characters")

    if command.permissions is not None and not isinstance(command.permissions, dict):
        raise ValidationError("permissions must be an object")

    return replace(
        command,
        email=email,
        role=role,
        first_name=_require(command.first_name, "first_name", 100),
        last_name=_require(command.last_name, "last_name", 100),
        title=_require(command.title, "title", 100),
        phone=phone,
    )


def validate_activation(command: ActivateCommand) -> ActivateCommand:
    """Check activation input. Pure."""
    email = (command.email or "").strip().lower()
    if not email or not command.temporary_credential or not command.new_credential:
        raise ValidationError("Email, temporary password, and new password are required")
    if len(command.new_credential) < MIN_CREDENTIAL_LENGTH:
        raise ValidationError(
            f"New password must be at least {MIN_CREDENTIAL_LENGTH} characters long"
        )
    if command.new_credential == command.temporary_credential:
        raise ValidationError("New password must differ from the temporary password")
    return replace(command, email=email)


class InviteService:
    """Coordinates invite and activation sagas."""

    def __init__(
        self,
        store: Store,
        identity: IdentityProviderClient,
        dispatcher: NotificationDispatcher,
        health_monitor: ConnectionHealthMonitor,
        activity: ActivityService,
        settings: Settings | None = None,
    ):
        self.store = store
        self.identity = identity
        self.dispatcher = dispatcher
        self.health_monitor = health_monitor
        self.activity = activity
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Invite
    # ------------------------------------------------------------------

    async def invite_member(self, acting: Account, command: InviteCommand) -> InviteResult:
        """Create a pending member paired with a new identity account.

        Raises:
            AuthorizationError: acting account is not an admin.
            ValidationError: malformed input.
            TransientStoreError: store unreachable; nothing was created.
            ConflictError: email already in the organization.
            ExternalProviderError: identity account could not be created.
            CompensationFailureError: store write failed and the identity
                account could not be removed.
        """
        if not acting.is_admin:
            raise AuthorizationError("Only administrators can invite team members")

        command = validate_invite(command)
        await self.health_monitor.ensure_available()

        async with self.store.read() as uow:
            organization = await uow.organizations.get_by_id(acting.organization_id)
            existing = await uow.accounts.get_by_email_in_organization(
                command.email, acting.organization_id
            )
        if organization is None:
            raise NotFoundError("Organization not found")
        if existing is not None:
            raise self._duplicate_email()

        temporary_credential = generate_temporary_credential(
            self.settings.temporary_credential_length
        )
        invited_at = utc_now()
        metadata = {
            "organization_id": str(organization.id),
            "organization_slug": organization.slug,
            "company_name": organization.name,
            "role": command.role,
            "name": command.display_name,
            "first_name": command.first_name,
            "last_name": command.last_name,
            "title": command.title,
            "phone": command.phone,
            "invited_by": acting.id,
            "invited_at": invited_at.isoformat(),
            # Prompts a password change on first sign-in
            "temporary_credential": True,
        }

        saga = Saga("invite", InviteState.START, failed_state=InviteState.FAILED)
        account_id = await saga.step(
            "create_identity_account",
            lambda: self.identity.create_account(command.email, temporary_credential, metadata),
            compensation=self.identity.delete_account,
            reached=InviteState.IDENTITY_CREATED,
        )

        try:
            account = await saga.step(
                "insert_account",
                lambda: self._insert_account(
                    account_id, acting, command, temporary_credential, invited_at
                ),
                reached=InviteState.STORE_COMMITTED,
            )
        except CompensationFailureError as e:
            await self.activity.record(
                organization_id=acting.organization_id,
                action=ActivityAction.INVITE_COMPENSATION_FAILED,
                resource_id=account_id,
                actor_id=acting.id,
                resource_name=command.email,
                metadata={
                    "orphaned_identity_account": account_id,
                    "original_error": getattr(e.original_error, "message", str(e.original_error)),
                    "failed_compensations": e.failed_compensations,
                },
            )
            raise
        except Exception as e:
            removed = any(
                outcome.step == "create_identity_account" and outcome.succeeded
                for outcome in saga.compensations
            )
            await self.activity.record(
                organization_id=acting.organization_id,
                action=ActivityAction.INVITE_COMPENSATED,
                resource_id=account_id,
                actor_id=acting.id,
                resource_name=command.email,
                metadata={
                    "error": e.kind.value if isinstance(e, LifecycleError) else type(e).__name__,
                    "identity_account_removed": removed,
                },
            )
            raise

        logger.info(
            "Member invited",
            account_id=account.id,
            email=redact_email(account.email),
            role=account.role,
        )

        delivery = await self._send_invitation(acting, organization, account, temporary_credential)
        if delivery.delivered:
            saga.advance(InviteState.NOTIFIED)

        await self.activity.record(
            organization_id=acting.organization_id,
            action=ActivityAction.INVITE_DELIVERY,
            resource_id=account.id,
            actor_id=acting.id,
            resource_name=account.email,
            metadata={
                "channel": "email" if delivery.delivered else "manual",
                "email_delivered": delivery.delivered,
                "message_id": delivery.message_id,
                "email_error": delivery.error,
            },
        )

        manual_delivery = None
        if not delivery.delivered:
            manual_delivery = ManualDelivery(
                email=account.email,
                temporary_credential=temporary_credential,
                login_url=self.settings.sign_in_url,
            )
        return InviteResult(account=account, delivery=delivery, manual_delivery=manual_delivery)

    def _duplicate_email(self) -> ConflictError:
        return ConflictError(
            "A member with this email already exists in your organization",
            resolution="Look up the existing member instead of inviting again",
        )

    async def _insert_account(
        self,
        account_id: str,
        acting: Account,
        command: InviteCommand,
        temporary_credential: str,
        invited_at: datetime,
    ) -> Account:
        async with self.store.transaction(
            timeout_ms=self.settings.store_transaction_timeout_ms,
            isolation_level="SERIALIZABLE",
        ) as uow:
            # The pre-check ran before the identity call; a concurrent invite may have won since
            if await uow.accounts.get_by_email_in_organization(
                command.email, acting.organization_id
            ):
                raise self._duplicate_email()

            account = Account(
                id=account_id,
                organization_id=acting.organization_id,
                email=command.email,
                first_name=command.first_name,
                last_name=command.last_name,
                display_name=command.display_name,
                title=command.title,
                phone=command.phone,
                role=command.role,
                status=AccountStatus.PENDING.value,
                provenance=AccountProvenance.CURRENT.value,
                permissions=command.permissions,
                invited_by=acting.id,
                invited_at=invited_at,
                temporary_credential=temporary_credential,
            )
            uow.accounts.add(account)
            uow.activity.add(
                build_activity_entry(
                    organization_id=acting.organization_id,
                    action=ActivityAction.INVITED,
                    resource_id=account_id,
                    actor_id=acting.id,
                    resource_name=command.email,
                    metadata={
                        "role": command.role,
                        "identity_account_id": account_id,
                        "invited_by": acting.display_name,
                    },
                )
            )
            await uow.flush()
        return account

    async def _send_invitation(
        self,
        acting: Account,
        organization: Organization,
        account: Account,
        temporary_credential: str,
    ) -> DeliveryResult:
        payload = {
            "organization_name": organization.name,
            "member_name": account.display_name,
            "member_title": account.title,
            "inviter_name": acting.display_name,
            "role": account.role,
            "temporary_credential": temporary_credential,
        }
        try:
            return await self.dispatcher.send(TEAM_INVITATION, account.email, payload)
        except Exception as e:
            # The invite already succeeded; delivery falls back to manual
            logger.exception("Invitation dispatch raised", account_id=account.id)
            return DeliveryResult(delivered=False, error=str(e))

    # ------------------------------------------------------------------
    # Activate
    # ------------------------------------------------------------------

    async def activate_account(self, command: ActivateCommand) -> ActivationResult:
        """Swap the temporary credential for a permanent one and activate.

        Raises:
            ValidationError: missing or weak input.
            AuthenticationError: no pending account matches, or the invitation expired.
            ExternalProviderError: the provider rejected the credential update.
            CompensationFailureError: store write failed and the temporary
                credential could not be restored.
        """
        command = validate_activation(command)
        await self.health_monitor.ensure_available()

        account = await self._find_pending_account(command.email, command.temporary_credential)
        if account is None:
            raise AuthenticationError(
                "Invalid credentials or invitation has expired",
                resolution="Check the temporary password from your invitation",
            )

        expires_after = timedelta(days=self.settings.invite_expire_days)
        if account.invited_at is None or utc_now() - account.invited_at > expires_after:
            raise AuthenticationError(
                "Invitation has expired. Please request a new invitation.",
                resolution="Ask an administrator to remove and re-invite you",
            )

        saga = Saga("activate", ActivateState.START, failed_state=ActivateState.FAILED)
        await saga.step(
            "update_credential",
            lambda: self.identity.update_credential(
                account.id,
                command.new_credential,
                metadata={
                    "name": account.display_name,
                    "organization_id": str(account.organization_id),
                    "role": account.role,
                    "temporary_credential": False,
                },
            ),
            compensation=lambda _: self.identity.update_credential(
                account.id,
                command.temporary_credential,
                metadata={"temporary_credential": True},
            ),
            reached=ActivateState.CREDENTIAL_UPDATED,
        )
        activated, organization = await saga.step(
            "activate_account",
            lambda: self._mark_active(account.id),
            reached=ActivateState.STORE_COMMITTED,
            # A duplicate submission lost the race; restoring the temporary
            # credential would lock out the member the winner just activated
            keep_completed_on=lambda e: isinstance(e, AlreadyActivatedError),
        )
        logger.info("Account activated", account_id=activated.id)

        session: IdentitySession | None = None
        session_error: str | None = None
        try:
            session = await self.identity.sign_in(command.email, command.new_credential)
        except LifecycleError as e:
            # The account is usable; the caller only has to sign in again
            session_error = e.message
            logger.warning(
                "Session not established after activation",
                account_id=activated.id,
                error_kind=e.kind.value,
            )

        return ActivationResult(
            account=activated,
            organization=organization,
            session=session,
            session_error=session_error,
        )

    async def _find_pending_account(self, email: str, temporary_credential: str) -> Account | None:
        async with self.store.read() as uow:
            candidates = await uow.accounts.list_pending_by_email(email)

        for candidate in candidates:
            if credentials_match(temporary_credential, candidate.temporary_credential):
                return candidate

        if not candidates:
            return None

        # The temporary credential may have been rotated at the provider directly
        try:
            session = await self.identity.sign_in(email, temporary_credential)
        except AuthenticationError:
            return None

        with contextlib.suppress(ExternalProviderError):
            await self.identity.sign_out(session.access_token)
        return next((c for c in candidates if c.id == session.account_id), None)

    async def _mark_active(self, account_id: str) -> tuple[Account, Organization | None]:
        async with self.store.transaction(
            timeout_ms=self.settings.store_transaction_timeout_ms
        ) as uow:
            # Serializes duplicate activations of the same account
            account = await uow.accounts.get_for_update(account_id)
            if account is not None and account.status == AccountStatus.ACTIVE.value:
                raise AlreadyActivatedError(
                    "Account is already active",
                    resolution="Sign in with your new password",
                )
            if account is None or account.status != AccountStatus.PENDING.value:
                raise ConflictError(
                    "Account is no longer pending activation",
                    resolution="Sign in with your new password",
                )
            now = utc_now()
            account.status = AccountStatus.ACTIVE.value
            account.temporary_credential = None
            account.activated_at = now
            account.last_login_at = now
            account.updated_at = now
            uow.activity.add(
                build_activity_entry(
                    organization_id=account.organization_id,
                    action=ActivityAction.ACTIVATED,
                    resource_id=account.id,
                    actor_id=account.id,
                    resource_name=account.display_name,
                    metadata={"activation_type": "invitation_acceptance"},
                )
            )
            organization = await uow.organizations.get_by_id(account.organization_id)
            await uow.flush()
        return account, organization
