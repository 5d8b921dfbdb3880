"""Request metadata for activity log entries, stored in a contextvar."""

from contextvars import ContextVar
from dataclasses import dataclass

_request_context: ContextVar["RequestContext | None"] = ContextVar(
    "request_context", default=None
)


@dataclass(frozen=True)
class RequestContext:
    """Immutable request metadata copied into ActivityLog rows."""

    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None


def set_request_context(
    ip_address: str | None = None,
    user_agent: str | None = None,
    request_id: str | None = None,
) -> None:
    ctx = RequestContext(
        ip_address=ip_address,
        user_agent=user_agent[:500] if user_agent and len(user_agent) > 500 else user_agent,
        request_id=request_id,
    )
    _request_context.set(ctx)


def get_request_context() -> RequestContext | None:
    return _request_context.get()


def clear_request_metadata() -> None:
    _request_context.set(None)


def get_client_ip(forwarded_for: str | None, client_host: str | None) -> str | None:
    """Extract client IP from X-Forwarded-For header or client host.

    The first entry of X-Forwarded-For is the original client.
    """
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return client_host
