"""Identity provider client (GoTrue-compatible admin REST API).

The identity provider owns credentials and sessions. Accounts here are paired
with store rows by id; this module never touches the store.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from src.agency.core.config import get_settings
from src.agency.core.errors import AuthenticationError, ExternalProviderError
from src.agency.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IdentitySession:
    """Session issued by the identity provider after a password grant."""

    account_id: str
    access_token: str
    refresh_token: str | None
    expires_in: int | None
    token_type: str = "bearer"


def _error_code(response: httpx.Response) -> str | None:
    """Pull the machine-readable error code out of an error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    code = body.get("error_code") or body.get("error")
    return str(code) if code else None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return response.text[:200]


class IdentityProviderClient:
    """Async client for the identity provider's admin and token endpoints.

    Every failure leaves as ExternalProviderError, except rejected sign-in
    credentials which raise AuthenticationError.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._service_key = service_key
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
        )

    @property
    def _admin_headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
        }

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Identity provider timed out", operation=operation)
            raise ExternalProviderError(
                f"Identity provider timed out during {operation}",
                code="timeout",
                resolution="The identity provider did not respond in time. Retry shortly",
            ) from e
        except httpx.HTTPError as e:
            logger.warning(
                "Identity provider unreachable",
                operation=operation,
                error_type=type(e).__name__,
            )
            raise ExternalProviderError(
                f"Identity provider unreachable during {operation}",
                code="transport_error",
            ) from e

    def _raise_for_status(self, operation: str, response: httpx.Response) -> None:
        if response.is_success:
            return
        code = _error_code(response)
        logger.warning(
            "Identity provider rejected request",
            operation=operation,
            status=response.status_code,
            code=code,
        )
        resolution = None
        if code == "email_exists":
            resolution = (
                "An identity account already exists for this email. Remove it from the "
                "identity provider or invite a different address"
            )
        raise ExternalProviderError(
            f"Identity provider {operation} failed: {_error_message(response)}",
            status=response.status_code,
            code=code,
            resolution=resolution,
        )

    def _json_body(self, operation: str, response: httpx.Response) -> dict[str, Any]:
        """Decode a success body, which must be a JSON object."""
        try:
            body = response.json()
        except ValueError as e:
            raise ExternalProviderError(
                f"Identity provider returned an unreadable {operation} response",
                status=response.status_code,
                code="invalid_response",
            ) from e
        if not isinstance(body, dict):
            raise ExternalProviderError(
                f"Identity provider returned an unexpected {operation} response",
                status=response.status_code,
                code="invalid_response",
            )
        return body

    async def create_account(
        self,
        email: str,
        credential: str,
        metadata: dict[str, Any],
    ) -> str:
        """Create a confirmed account and return its id."""
        response = await self._request(
            "create_account",
            "POST",
            "/auth/v1/admin/users",
            headers=self._admin_headers,
            json={
                "email": email,
                "password": credential,
                "email_confirm": True,
                "user_metadata": metadata,
            },
        )
        self._raise_for_status("create_account", response)
        account_id = self._json_body("create_account", response).get("id")
        if not account_id:
            raise ExternalProviderError(
                "Identity provider returned no account id",
                status=response.status_code,
            )
        return str(account_id)

    async def delete_account(self, account_id: str) -> None:
        """Delete an account. An already-missing account counts as deleted."""
        response = await self._request(
            "delete_account",
            "DELETE",
            f"/auth/v1/admin/users/{account_id}",
            headers=self._admin_headers,
        )
        if response.status_code == 404:
            logger.info("Identity account already absent", account_id=account_id)
            return
        self._raise_for_status("delete_account", response)

    async def update_credential(
        self,
        account_id: str,
        credential: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Replace an account's password, optionally merging metadata."""
        body: dict[str, Any] = {"password": credential}
        if metadata is not None:
            body["user_metadata"] = metadata
        response = await self._request(
            "update_credential",
            "PUT",
            f"/auth/v1/admin/users/{account_id}",
            headers=self._admin_headers,
            json=body,
        )
        self._raise_for_status("update_credential", response)

    async def sign_in(self, email: str, credential: str) -> IdentitySession:
        """Password grant. Wrong credentials raise AuthenticationError."""
        response = await self._request(
            "sign_in",
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            headers={"apikey": self._service_key},
            json={"email": email, "password": credential},
        )
        if response.status_code in (400, 401):
            raise AuthenticationError("Invalid email or credential")
        self._raise_for_status("sign_in", response)

        data = self._json_body("sign_in", response)
        access_token = data.get("access_token")
        if not access_token:
            raise ExternalProviderError(
                "Identity provider returned no access token",
                status=response.status_code,
                code="invalid_response",
            )
        user = data.get("user") or {}
        return IdentitySession(
            account_id=str(user.get("id", "")),
            access_token=access_token,
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            token_type=data.get("token_type", "bearer"),
        )

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""
        response = await self._request(
            "sign_out",
            "POST",
            "/auth/v1/logout",
            headers={
                "apikey": self._service_key,
                "Authorization": f"Bearer {access_token}",
            },
        )
        # An already-expired session has nothing left to revoke
        if response.status_code in (401, 403, 404):
            return
        self._raise_for_status("sign_out", response)

    async def ping(self) -> None:
        """Reachability check used by /health."""
        response = await self._request(
            "health",
            "GET",
            "/auth/v1/health",
            headers={"apikey": self._service_key},
        )
        self._raise_for_status("health", response)

    async def aclose(self) -> None:
        await self._client.aclose()


_identity_client: IdentityProviderClient | None = None


def get_identity_client() -> IdentityProviderClient:
    """Get or create the identity provider client singleton."""
    global _identity_client
    if _identity_client is None:
        settings = get_settings()
        _identity_client = IdentityProviderClient(
            base_url=settings.identity_provider_url,
            service_key=settings.identity_service_key,
            timeout=settings.identity_request_timeout_seconds,
        )
    return _identity_client


async def close_identity_client() -> None:
    """Close the HTTP client. Call during shutdown."""
    global _identity_client
    if _identity_client is not None:
        await _identity_client.aclose()
        _identity_client = None
