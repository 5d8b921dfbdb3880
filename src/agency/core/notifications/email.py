"""Notification dispatcher using the Resend API.

Delivery is best-effort: send() never raises for provider failures, it
reports them in the DeliveryResult so callers can fall back to manual
delivery.
"""

import asyncio
import html
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import resend

from src.agency.core.config import Settings, get_settings
from src.agency.core.logging import get_logger, redact_email

logger = get_logger(__name__)

# Thread pool for the blocking Resend SDK
_email_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email_sender")

TEAM_INVITATION = "team_invitation"

# Shared email styles
_BODY_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; "
    "line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;"
)
_BUTTON_STYLE = (
    "background-color: #2563eb; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 500;"
)
_CODE_STYLE = (
    "font-family: SFMono-Regular, Menlo, monospace; background: #f3f4f6; "
    "padding: 8px 12px; border-radius: 4px; display: inline-block;"
)
_MUTED_STYLE = "color: #666; font-size: 14px;"


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a send attempt."""

    delivered: bool
    message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str


def sign_in_link(settings: Settings, email: str) -> str:
    return f"{settings.sign_in_url}?email={quote(email)}"


def _render_team_invitation(
    recipient: str, payload: dict[str, Any], settings: Settings
) -> RenderedEmail:
    """Invitation carrying the temporary credential and sign-in link."""
    organization_name = html.escape(str(payload.get("organization_name", settings.app_name)))
    member_name = html.escape(str(payload.get("member_name", "")))
    member_title = html.escape(str(payload.get("member_title", "")))
    inviter_name = html.escape(str(payload.get("inviter_name", "Your administrator")))
    role = html.escape(str(payload.get("role", "")).replace("_", " "))
    credential = html.escape(str(payload["temporary_credential"]))
    login_url = html.escape(sign_in_link(settings, recipient), quote=True)
    expire_days = settings.invite_expire_days

    body = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="{_BODY_STYLE}">
    <h1 style="color: #2563eb; margin-bottom: 24px;">Welcome to {organization_name}</h1>
    <p>Hi {member_name},</p>
    <p>{inviter_name} has added you to <strong>{organization_name}</strong>
    as {role} ({member_title}).</p>
    <p>Sign in with this email address and the temporary password below.
    You will be asked to choose a new password.</p>
    <p><span style="{_CODE_STYLE}">{credential}</span></p>
    <p style="margin: 32px 0;">
        <a href="{login_url}" style="{_BUTTON_STYLE}">Sign in</a>
    </p>
    <p style="{_MUTED_STYLE} margin-top: 32px;">
        This invitation expires in {expire_days} days. If you were not expecting it,
        you can safely ignore this email.
    </p>
</body>
</html>"""
    raw_organization_name = str(payload.get("organization_name", settings.app_name))
    return RenderedEmail(
        subject=f"Welcome to {raw_organization_name} - your account is ready",
        html=body,
    )


_TEMPLATES: dict[str, Callable[[str, dict[str, Any], Settings], RenderedEmail]] = {
    TEAM_INVITATION: _render_team_invitation,
}


class NotificationDispatcher:
    """Sends templated emails through Resend with a bounded timeout."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def render(self, template_id: str, recipient: str, payload: dict[str, Any]) -> RenderedEmail:
        try:
            renderer = _TEMPLATES[template_id]
        except KeyError:
            raise ValueError(f"Unknown email template: {template_id}") from None
        return renderer(recipient, payload, self.settings)

    async def send(
        self,
        template_id: str,
        recipient: str,
        payload: dict[str, Any],
    ) -> DeliveryResult:
        """Render and send. Provider failures are reported, not raised."""
        settings = self.settings
        rendered = self.render(template_id, recipient, payload)

        if not settings.resend_api_key:
            logger.warning(
                "RESEND_API_KEY not set - email not sent",
                to=redact_email(recipient),
                email_type=template_id,
            )
            return DeliveryResult(delivered=False, error="Email delivery is not configured")

        resend.api_key = settings.resend_api_key

        def _send() -> Any:
            return resend.Emails.send(
                {
                    "from": settings.email_from,
                    "to": [recipient],
                    "subject": rendered.subject,
                    "html": rendered.html,
                }
            )

        loop = asyncio.get_running_loop()
        try:
            response = await asyncio.wait_for(
                loop.run_in_executor(_email_executor, _send),
                timeout=settings.email_send_timeout_seconds,
            )
        except TimeoutError:
            logger.error(
                "Email send timed out",
                to=redact_email(recipient),
                timeout=settings.email_send_timeout_seconds,
            )
            return DeliveryResult(delivered=False, error="Email delivery timed out")
        except Exception as e:
            logger.error(
                "Failed to send email",
                to=redact_email(recipient),
                email_type=template_id,
                error=str(e),
            )
            return DeliveryResult(delivered=False, error=f"Email delivery failed: {e}")

        message_id = response.get("id") if isinstance(response, dict) else None
        logger.info(
            "Email sent",
            to=redact_email(recipient),
            email_type=template_id,
            message_id=message_id,
        )
        return DeliveryResult(delivered=True, message_id=message_id)


_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """Get or create the notification dispatcher singleton."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher
