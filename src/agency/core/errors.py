"""Typed error taxonomy for account lifecycle operations.

Every collaborator (store, identity provider, guard, coordinator) raises one of
these explicitly. Callers branch on ``kind``, never on message text.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced to API callers."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSIENT_STORE = "transient_store"
    STORE = "store"
    EXTERNAL_PROVIDER = "external_provider"
    POLICY_VIOLATION = "policy_violation"
    COMPENSATION_FAILURE = "compensation_failure"


class LifecycleError(Exception):
    """Base class for all lifecycle failures."""

    kind: ErrorKind = ErrorKind.STORE
    status_code: int = 500
    default_resolution: str | None = None

    def __init__(
        self,
        message: str,
        *,
        resolution: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.resolution = resolution if resolution is not None else self.default_resolution
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"detail": self.message, "error": self.kind.value}
        if self.resolution:
            body["resolution"] = self.resolution
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(LifecycleError):
    """Malformed input. Local, never retried."""

    kind = ErrorKind.VALIDATION
    status_code = 400


class AuthenticationError(LifecycleError):
    kind = ErrorKind.AUTHENTICATION
    status_code = 401


class AuthorizationError(LifecycleError):
    kind = ErrorKind.AUTHORIZATION
    status_code = 403


class NotFoundError(LifecycleError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class ConflictError(LifecycleError):
    kind = ErrorKind.CONFLICT
    status_code = 409


class AlreadyActivatedError(ConflictError):
    """Another activation of the same account committed first."""


class StoreError(LifecycleError):
    """Non-transient relational store failure."""

    kind = ErrorKind.STORE
    status_code = 500
    default_resolution = "Check server logs for the failing statement before retrying"


class TransientStoreError(StoreError):
    """Store unreachable or connection-level failure; safe to retry later."""

    kind = ErrorKind.TRANSIENT_STORE
    status_code = 503
    default_resolution = "The database is temporarily unreachable. Retry in a few seconds"


class ExternalProviderError(LifecycleError):
    """An identity provider call failed or timed out."""

    kind = ErrorKind.EXTERNAL_PROVIDER
    status_code = 500
    default_resolution = "Check the identity provider configuration and status, then retry"

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        resolution: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, resolution=resolution, details=details)
        self.status = status
        self.code = code


class PolicyViolationError(LifecycleError):
    """Rejected by an organizational invariant."""

    kind = ErrorKind.POLICY_VIOLATION
    status_code = 400


class CompensationFailureError(LifecycleError):
    """A compensation attempt failed: the two systems are now inconsistent."""

    kind = ErrorKind.COMPENSATION_FAILURE
    status_code = 500
    default_resolution = (
        "Systems may be inconsistent. Escalate for manual reconciliation "
        "before retrying this operation"
    )

    def __init__(
        self,
        message: str,
        *,
        original_error: BaseException,
        failed_compensations: list[str],
        resolution: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, resolution=resolution, details=details)
        self.original_error = original_error
        self.failed_compensations = failed_compensations
