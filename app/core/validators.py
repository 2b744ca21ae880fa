"""
Input Validators

Helpers for identifiers that arrive as raw strings (query parameters)
and must be parsed before they reach the store.
"""

import uuid

from app.core.exceptions import ValidationError


def new_slug_id() -> str:
    """Generate a fresh opaque slug identifier (32 lowercase hex chars)."""
    return uuid.uuid4().hex


def parse_slug_id(raw: str) -> str:
    """
    Parse and normalize a slug identifier.

    Accepts both the compact hex form and the dashed UUID form.

    Args:
        raw: The identifier as received from the client

    Returns:
        Normalized 32-char hex identifier

    Raises:
        ValidationError: If the value is not a UUID
    """
    if not raw or not isinstance(raw, str):
        raise ValidationError("id", "identifier is required")
    try:
        return uuid.UUID(raw.strip()).hex
    except ValueError:
        raise ValidationError("id", f"'{raw}' is not a valid slug identifier")

