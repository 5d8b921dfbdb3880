"""Authentication dependencies."""

from typing import Annotated

from fastapi import Depends, Header

from src.agency.api.dependencies.resources import StoreDep
from src.agency.core.errors import AuthenticationError
from src.agency.core.logging import bind_account_context
from src.agency.core.security import decode_access_token
from src.agency.models import Account, AccountStatus


async def get_current_account(
    store: StoreDep,
    authorization: Annotated[str | None, Header()] = None,
) -> Account:
    """Validate the identity-provider access token and load the active account.

    The token's `sub` is the account id; the account must exist and be active.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Missing or invalid authorization header")

    payload = decode_access_token(authorization[7:])
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    account_id = payload.get("sub")
    if not account_id:
        raise AuthenticationError("Invalid token payload")

    async with store.read() as uow:
        account = await uow.accounts.get_by_id(str(account_id))

    if account is None or account.status != AccountStatus.ACTIVE.value:
        raise AuthenticationError(
            "Account not found or inactive",
            resolution="Complete activation or ask an administrator for access",
        )

    bind_account_context(account.id, account.organization_id, account.email)
    return account


CurrentAccount = Annotated[Account, Depends(get_current_account)]
