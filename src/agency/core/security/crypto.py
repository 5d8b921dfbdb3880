"""Credential utilities - access token verification and temporary credentials."""

import hmac
import secrets
from typing import Any

from jose import JWTError, jwt

from src.agency.core.config import get_settings

# Ambiguous glyphs (0/O, 1/l/I) are left out: admins may read these aloud
_CHARACTER_CLASSES = (
    "ABCDEFGHJKLMNPQRSTUVWXYZ",
    "abcdefghijkmnopqrstuvwxyz",
    "23456789",
    "!@#$%^&*",
)
_ALPHABET = "".join(_CHARACTER_CLASSES)


def generate_temporary_credential(length: int | None = None) -> str:
    """Generate a random temporary credential.

    Contains at least one character from each class so provider-side
    password policies accept it.
    """
    if length is None:
        length = get_settings().temporary_credential_length
    if length < len(_CHARACTER_CLASSES):
        raise ValueError(f"length must be at least {len(_CHARACTER_CLASSES)}")

    chars = [secrets.choice(group) for group in _CHARACTER_CLASSES]
    chars += [secrets.choice(_ALPHABET) for _ in range(length - len(chars))]
    # Fisher-Yates with a CSPRNG
    for i in range(len(chars) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        chars[i], chars[j] = chars[j], chars[i]
    return "".join(chars)


def credentials_match(supplied: str, stored: str | None) -> bool:
    """Constant-time comparison of a supplied credential with the stored one."""
    if stored is None:
        return False
    return hmac.compare_digest(supplied.encode(), stored.encode())


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode an identity-provider access token. Returns None on any error."""
    settings = get_settings()
    try:
        return jwt.decode(  # type: ignore[no-any-return]
            token,
            settings.identity_jwt_secret,
            algorithms=[settings.identity_jwt_algorithm],
            audience=settings.identity_jwt_audience,
        )
    except JWTError:
        return None
