"""Input validators shared by request schemas and services."""

from typing import Final

from zxcvbn import zxcvbn

# Minimum zxcvbn score (0-4 scale): 3 = "safely unguessable"
MIN_CREDENTIAL_SCORE: Final[int] = 3
MIN_CREDENTIAL_LENGTH: Final[int] = 8


def validate_credential_strength(value: str, user_inputs: list[str] | None = None) -> str:
    """Validate credential strength using zxcvbn entropy estimation.

    Raises:
        ValueError: With zxcvbn's feedback when the score is too low.
    """
    result = zxcvbn(value, user_inputs=user_inputs or [])
    if result["score"] >= MIN_CREDENTIAL_SCORE:
        return value

    feedback = result.get("feedback", {})
    warning = feedback.get("warning", "")
    suggestions = feedback.get("suggestions", [])
    if warning:
        raise ValueError(f"Weak password: {warning}")
    elif suggestions:
        raise ValueError(f"Weak password: {suggestions[0]}")
    raise ValueError("Password is too weak. Use a longer password with a mix of characters.")
