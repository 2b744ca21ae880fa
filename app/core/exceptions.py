"""
Custom Exceptions

This module defines the error taxonomy of the slug service.

Every exception carries:
- error_code: stable machine-readable identifier returned to API consumers
- status_code: HTTP status the request surface answers with

The policy engine never swallows these; they propagate up to the API layer,
which maps them to responses in one place (see app.api.errors).
"""

from typing import Optional


class SlugShortenerError(Exception):
    """Base exception for the slug service."""

    error_code = "slug_shortener:error"
    status_code = 500


class UserNotFound(SlugShortenerError):
    """Raised when the identity provider does not know the user."""

    error_code = "identity:user_not_found"
    status_code = 400

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("USER not found")


class RateLimitExceeded(SlugShortenerError):
    """Raised when a user already created the maximum number of slugs in the window."""

    error_code = "slugs:rate_limit_exceeded"
    status_code = 400

    def __init__(self, user_id: str, count: int, limit: int):
        self.user_id = user_id
        self.count = count
        self.limit = limit
        super().__init__(f"limit of slugs reached ({count}/{limit})")


class SlugNotFound(SlugShortenerError):
    """Raised when no slug record matches a token."""

    error_code = "slugs:slug_not_found"
    status_code = 400

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Slug '{token}' not found")


class ValidationError(SlugShortenerError):
    """Raised when input cannot be parsed (e.g. a malformed slug id)."""

    error_code = "request:validation_error"
    status_code = 400

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class StoreError(SlugShortenerError):
    """Raised when a store operation fails: connectivity, timeout or query error."""

    error_code = "store:store_error"
    status_code = 500

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class IdentityProviderError(SlugShortenerError):
    """Raised for identity provider failures other than 'user not found'."""

    error_code = "identity:provider_error"
    status_code = 500

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Identity provider error: {message}")
