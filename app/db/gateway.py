"""
Slug Store Gateway

The only module that builds queries against the slugs and hits tables.
Services hand it domain values and get records back; they never touch
SQLAlchemy statements themselves.

Every operation:
- is bounded by the store operation timeout (asyncio.wait_for)
- raises StoreError on timeout, connectivity loss or query failure
- is not retried here; retry policy belongs to callers

Update and delete are scoped mutations: the ownership check (userid) is
part of the filter, so a mismatched owner simply matches nothing.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import SlugNotFound, StoreError
from app.db.models import HitEvent, Slug, SlugRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_OPERATION_TIMEOUT = 30.0


class SlugStoreGateway:
    """
    Persistence operations for slug records and hit events.
    """

    def __init__(self, session: AsyncSession, timeout: float = DEFAULT_OPERATION_TIMEOUT):
        """
        Args:
            session: Async database session for database operations
            timeout: Seconds allowed for each operation
        """
        self.session = session
        self.timeout = timeout

    async def _run(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            await self._rollback()
            logger.error(f"Store operation '{operation}' timed out after {self.timeout}s")
            raise StoreError(f"{operation} timed out after {self.timeout}s", original_error=e)
        except (SQLAlchemyError, OSError) as e:
            await self._rollback()
            logger.error(f"Store operation '{operation}' failed: {str(e)}", exc_info=True)
            raise StoreError(f"{operation} failed: {str(e)}", original_error=e)

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback after failed store operation also failed", exc_info=True)

    async def insert_slug_record(self, record: SlugRecord) -> SlugRecord:
        """Persist one new slug record."""
        async def _insert() -> SlugRecord:
            self.session.add(record)
            await self.session.commit()
            return record

        return await self._run("insert_slug_record", _insert())

    async def find_slug_records(self, *filters: Any) -> list[SlugRecord]:
        """
        Find slug records matching all filters, in insertion order.

        Returns:
            Matching records; an empty list (never None) when nothing matches
        """
        async def _find() -> list[SlugRecord]:
            statement = select(SlugRecord).where(*filters).order_by(SlugRecord.pk)
            result = await self.session.execute(statement)
            return list(result.scalars().all())

        return await self._run("find_slug_records", _find())

    async def find_slug_records_by_user(self, user_id: str) -> list[SlugRecord]:
        return await self.find_slug_records(SlugRecord.userid == user_id)

    async def find_slug_record_by_token(self, token: str) -> SlugRecord:
        """
        Find the record for a token.

        Tokens are not unique: when several records share one, the last
        inserted wins.

        Raises:
            SlugNotFound: If no record carries the token
        """
        records = await self.find_slug_records(SlugRecord.slug == token)
        if not records:
            raise SlugNotFound(token)
        return records[-1]

    async def count_user_records_since(self, user_id: str, cutoff: datetime) -> int:
        """Count a user's records with createdat >= cutoff."""
        async def _count() -> int:
            statement = select(func.count()).select_from(SlugRecord).where(
                SlugRecord.userid == user_id,
                SlugRecord.createdat >= cutoff,
            )
            result = await self.session.execute(statement)
            return result.scalar_one()

        return await self._run("count_user_records_since", _count())

    async def update_slug_record(
        self,
        slug_id: str,
        user_id: str,
        new_slug: str,
        new_domain: str,
        updated_at: datetime,
    ) -> int:
        """
        Update token and redirect of the record matching (id, userid).

        Returns:
            Number of matched records; 0 is not an error
        """
        async def _update() -> int:
            statement = (
                update(SlugRecord)
                .where(SlugRecord.id == slug_id, SlugRecord.userid == user_id)
                .values(slug=new_slug, domain=new_domain, updatedat=updated_at)
            )
            result = await self.session.execute(statement)
            await self.session.commit()
            return result.rowcount

        return await self._run("update_slug_record", _update())

    async def delete_slug_record(self, slug_id: str, user_id: str) -> int:
        """
        Delete the record matching (id, userid).

        Returns:
            Number of deleted records; 0 is not an error
        """
        async def _delete() -> int:
            statement = delete(SlugRecord).where(
                SlugRecord.id == slug_id,
                SlugRecord.userid == user_id,
            )
            result = await self.session.execute(statement)
            await self.session.commit()
            return result.rowcount

        return await self._run("delete_slug_record", _delete())

    async def insert_hit_event(self, slug: Slug, hit_at: datetime) -> HitEvent:
        """Append a hit event embedding a snapshot of slug."""
        async def _insert() -> HitEvent:
            hit = HitEvent(
                slug_id=slug.id,
                slug=slug.slug,
                domain=slug.domain,
                userid=slug.userid,
                hittedat=hit_at,
            )
            self.session.add(hit)
            await self.session.commit()
            return hit

        return await self._run("insert_hit_event", _insert())

    async def find_hit_events(self, slug_id: str) -> list[HitEvent]:
        """Hit events recorded for a slug id, in insertion order."""
        async def _find() -> list[HitEvent]:
            statement = (
                select(HitEvent)
                .where(HitEvent.slug_id == slug_id)
                .order_by(HitEvent.pk)
            )
            result = await self.session.execute(statement)
            return list(result.scalars().all())

        return await self._run("find_hit_events", _find())
