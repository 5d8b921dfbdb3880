"""Security utilities - credentials, tokens and validators."""

from src.agency.core.security.crypto import (
    credentials_match,
    decode_access_token,
    generate_temporary_credential,
)
from src.agency.core.security.validators import (
    MIN_CREDENTIAL_LENGTH,
    MIN_CREDENTIAL_SCORE,
    validate_credential_strength,
)

__all__ = [
    # Crypto
    "credentials_match",
    "decode_access_token",
    "generate_temporary_credential",
    # Validators
    "MIN_CREDENTIAL_LENGTH",
    "MIN_CREDENTIAL_SCORE",
    "validate_credential_strength",
]
