"""Shared test helpers."""

import time

from jose import jwt

from src.agency.core.config import get_settings


def make_access_token(account_id: str, **claims) -> str:
    """Sign a token the way the identity provider does."""
    settings = get_settings()
    payload = {
        "sub": account_id,
        "aud": settings.identity_jwt_audience,
        "exp": int(time.time()) + 3600,
        "role": "authenticated",
    }
    payload.update(claims)
    return jwt.encode(payload, settings.identity_jwt_secret, algorithm=settings.identity_jwt_algorithm)
