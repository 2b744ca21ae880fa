"""
Slug Service

This service holds the business rules of the slug lifecycle:
- Creation rate limit (max N slugs per user in a trailing window)
- Identifier assignment and server-side timestamps
- Resolving a token to its redirect target and recording a hit
- Owner-scoped listing, update and delete

Design Decisions:
- Persistence goes through SlugStoreGateway only; no queries here
- User existence is checked through IdentityGate before every owner operation
- No state is kept between calls; everything lives in the store

Known limitations kept for compatibility:
- The rate limit is check-then-insert, not atomic: concurrent creations by
  the same user can transiently exceed the cap
- Update/delete report success even when nothing matched (id, userid)
- A failure to record the hit fails the whole resolution
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from app.core.exceptions import RateLimitExceeded, UserNotFound
from app.core.validators import new_slug_id
from app.db.gateway import SlugStoreGateway
from app.db.models import Slug, SlugRecord
from app.services.identity import IdentityGate

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT_COUNT = 30
DEFAULT_RATE_LIMIT_WINDOW = timedelta(days=30)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SlugService:
    """
    Core business logic for slugs.

    Separated from the API layer for testability; constructed per request
    from the request's gateway and the process-wide identity gate.
    """

    def __init__(
        self,
        store: SlugStoreGateway,
        identity: IdentityGate,
        rate_limit_count: int = DEFAULT_RATE_LIMIT_COUNT,
        rate_limit_window: timedelta = DEFAULT_RATE_LIMIT_WINDOW,
        now: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the slug service.

        Args:
            store: Gateway used for every read and write
            identity: Gate used to check that users exist
            rate_limit_count: Max slugs a user may create inside the window
            rate_limit_window: Length of the trailing window
            now: Clock returning an aware UTC datetime
        """
        self.store = store
        self.identity = identity
        self.rate_limit_count = rate_limit_count
        self.rate_limit_window = rate_limit_window
        self.now = now

    async def _require_user(self, user_id: str) -> None:
        if not await self.identity.user_exists(user_id):
            raise UserNotFound(user_id)

    async def create_slug(self, user_id: str, token: str, domain: str) -> Slug:
        """
        Create a slug for user_id.

        Returns:
            The created slug, with a freshly generated id

        Raises:
            UserNotFound: If the user does not exist
            RateLimitExceeded: If the user hit the creation limit for the window
            StoreError: If a store operation fails
        """
        await self._require_user(user_id)

        now = self.now()
        count = await self.store.count_user_records_since(user_id, now - self.rate_limit_window)
        logger.debug(f"User '{user_id}' created {count} slugs in the current window")
        if count >= self.rate_limit_count:
            logger.info(f"Rate limit reached for user '{user_id}' ({count}/{self.rate_limit_count})")
            raise RateLimitExceeded(user_id, count, self.rate_limit_count)

        record = SlugRecord(
            id=new_slug_id(),
            slug=token,
            domain=domain,
            userid=user_id,
            createdat=now,
            updatedat=now,
        )
        await self.store.insert_slug_record(record)
        logger.info(f"Created slug '{token}' ({record.id}) for user '{user_id}'")
        return Slug.from_record(record)

    async def resolve_slug(self, token: str) -> Slug:
        """
        Resolve a token to its slug and record a hit.

        The caller performs the redirect; this only answers where to.

        Raises:
            SlugNotFound: If no slug carries the token
            StoreError: If the lookup or the hit logging fails
        """
        slug = Slug.from_record(await self.store.find_slug_record_by_token(token))
        await self.store.insert_hit_event(slug, self.now())
        logger.debug(f"Resolved slug '{token}' -> {slug.domain}")
        return slug

    async def list_slugs(self, user_id: str) -> list[Slug]:
        """
        All slugs owned by user_id, in insertion order.

        Raises:
            UserNotFound: If the user does not exist
        """
        await self._require_user(user_id)
        records = await self.store.find_slug_records_by_user(user_id)
        return [Slug.from_record(record) for record in records]

    async def update_slug(self, slug: Slug) -> None:
        """
        Replace token and redirect of the slug (slug.id, slug.userid).

        Succeeds even if no slug matched.

        Raises:
            UserNotFound: If the user does not exist
        """
        await self._require_user(slug.userid)
        matched = await self.store.update_slug_record(
            slug.id, slug.userid, slug.slug, slug.domain, self.now()
        )
        if not matched:
            logger.warning(f"Update matched no slug (id={slug.id}, user='{slug.userid}')")

    async def delete_slug(self, slug_id: str, user_id: str) -> None:
        """
        Delete the slug (slug_id, user_id). Idempotent.

        Raises:
            UserNotFound: If the user does not exist
        """
        await self._require_user(user_id)
        deleted = await self.store.delete_slug_record(slug_id, user_id)
        if not deleted:
            logger.info(f"Delete matched no slug (id={slug_id}, user='{user_id}')")
