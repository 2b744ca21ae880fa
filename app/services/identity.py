"""
Identity Gate

Answers one question: does this user exist at the identity provider?

Design Decisions:
- Providers report an explicit tri-state UserLookup (found / not found /
  provider error) instead of signalling "not found" through an exception
- The gate turns that into the service contract: True, False, or
  IdentityProviderError
- No caching and no retries; every call is a fresh round trip
- Provider SDK calls are blocking, so they run in a worker thread bounded
  by a timeout to keep the event loop free for other requests
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError

from app.core.exceptions import IdentityProviderError

logger = logging.getLogger(__name__)


class LookupStatus(enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    PROVIDER_ERROR = "provider_error"


@dataclass(frozen=True)
class UserLookup:
    """Outcome of one identity provider lookup."""
    status: LookupStatus
    error: Optional[Exception] = None

    @classmethod
    def found(cls) -> "UserLookup":
        return cls(LookupStatus.FOUND)

    @classmethod
    def not_found(cls) -> "UserLookup":
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: Exception) -> "UserLookup":
        return cls(LookupStatus.PROVIDER_ERROR, error)


class IdentityProvider(Protocol):
    """Blocking client for an external identity provider."""

    def lookup_user(self, user_id: str) -> UserLookup:
        ...

    def close(self) -> None:
        ...


class FirebaseIdentityProvider:
    """
    Identity provider backed by Firebase Authentication.

    Owns a dedicated firebase_admin App so that several providers (or tests)
    never collide on the default app.
    """

    APP_NAME = "slug-shortener"

    def __init__(self, app: firebase_admin.App):
        self.app = app

    @classmethod
    def from_settings(
        cls,
        credentials_file: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> "FirebaseIdentityProvider":
        """
        Initialize the Firebase app.

        Uses the service account file when given, application default
        credentials otherwise.

        Raises:
            IdentityProviderError: If the SDK cannot be initialized
        """
        try:
            if credentials_file:
                credential = credentials.Certificate(credentials_file)
            else:
                credential = credentials.ApplicationDefault()
            options = {"projectId": project_id} if project_id else None
            app = firebase_admin.initialize_app(credential, options, name=cls.APP_NAME)
        except (ValueError, OSError, FirebaseError, GoogleAuthError) as e:
            raise IdentityProviderError(f"failed to initialize Firebase: {e}", original_error=e)
        logger.info(f"Firebase identity provider initialized (project={app.project_id})")
        return cls(app)

    def lookup_user(self, user_id: str) -> UserLookup:
        try:
            user = auth.get_user(user_id, app=self.app)
        except auth.UserNotFoundError:
            return UserLookup.not_found()
        except (FirebaseError, GoogleAuthError, ValueError) as e:
            # ValueError: malformed uid (empty, too long)
            return UserLookup.failed(e)
        if user is None:
            return UserLookup.not_found()
        return UserLookup.found()

    def close(self) -> None:
        firebase_admin.delete_app(self.app)


class IdentityGate:
    """
    Existence check for user identifiers.
    """

    def __init__(self, provider: IdentityProvider, timeout: float = 10.0):
        self.provider = provider
        self.timeout = timeout

    async def lookup(self, user_id: str) -> UserLookup:
        """Run the provider lookup off the event loop, bounded by timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.provider.lookup_user, user_id),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            return UserLookup.failed(e)

    async def user_exists(self, user_id: str) -> bool:
        """
        Check whether user_id is known to the identity provider.

        Returns:
            True if found, False if the provider reports no such user

        Raises:
            IdentityProviderError: For any other provider failure
        """
        result = await self.lookup(user_id)
        if result.status is LookupStatus.FOUND:
            return True
        if result.status is LookupStatus.NOT_FOUND:
            return False
        logger.warning(f"Identity lookup failed for user '{user_id}': {result.error!r}")
        raise IdentityProviderError(
            str(result.error) or type(result.error).__name__,
            original_error=result.error,
        )
