"""
Tests for the slug service: creation rate limit, resolution and hit logging,
owner-scoped listing, update and delete.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import (
    IdentityProviderError,
    RateLimitExceeded,
    SlugNotFound,
    StoreError,
    UserNotFound,
)
from app.db.models import Slug, SlugRecord


async def seed(gateway, user_id, count, created_at, token="seed"):
    """Insert count records for user_id created at created_at."""
    for index in range(count):
        await gateway.insert_slug_record(SlugRecord(
            id=f"{user_id}{index:030d}"[-32:],
            slug=f"{token}{index}",
            domain="https://seed.example.com",
            userid=user_id,
            createdat=created_at,
            updatedat=created_at,
        ))


class TestCreateSlug:

    @pytest.mark.asyncio
    async def test_returns_slug_echoing_input(self, service):
        slug = await service.create_slug("u1", "abc", "https://x.com")

        assert slug.slug == "abc"
        assert slug.domain == "https://x.com"
        assert slug.userid == "u1"
        assert len(slug.id) == 32

    @pytest.mark.asyncio
    async def test_generates_fresh_ids(self, service):
        first = await service.create_slug("u1", "abc", "https://x.com")
        second = await service.create_slug("u1", "abc", "https://x.com")

        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_stamps_created_and_updated_at(self, service, gateway, clock):
        slug = await service.create_slug("u1", "abc", "https://x.com")

        [record] = await gateway.find_slug_records(SlugRecord.id == slug.id)
        assert record.createdat.replace(tzinfo=None) == clock().replace(tzinfo=None)
        assert record.updatedat == record.createdat

    @pytest.mark.asyncio
    async def test_unknown_user(self, service, gateway):
        with pytest.raises(UserNotFound):
            await service.create_slug("ghost", "abc", "https://x.com")

        assert await gateway.find_slug_records() == []

    @pytest.mark.asyncio
    async def test_29_existing_slugs_allows_one_more(self, service, gateway, clock):
        await seed(gateway, "u1", 29, clock() - timedelta(days=1))

        slug = await service.create_slug("u1", "abc", "https://x.com")

        assert slug.slug == "abc"
        assert len(await gateway.find_slug_records_by_user("u1")) == 30

    @pytest.mark.asyncio
    async def test_30_existing_slugs_is_rate_limited(self, service, gateway, clock):
        await seed(gateway, "u1", 30, clock() - timedelta(days=1))

        with pytest.raises(RateLimitExceeded) as exc_info:
            await service.create_slug("u1", "abc", "https://x.com")

        assert exc_info.value.count == 30
        assert len(await gateway.find_slug_records_by_user("u1")) == 30

    @pytest.mark.asyncio
    async def test_slugs_outside_window_do_not_count(self, service, gateway, clock):
        await seed(gateway, "u1", 30, clock() - timedelta(days=31))

        slug = await service.create_slug("u1", "abc", "https://x.com")

        assert slug.userid == "u1"

    @pytest.mark.asyncio
    async def test_window_boundary_is_inclusive(self, service, gateway, clock):
        await seed(gateway, "u1", 30, clock() - timedelta(days=30))

        with pytest.raises(RateLimitExceeded):
            await service.create_slug("u1", "abc", "https://x.com")

    @pytest.mark.asyncio
    async def test_limit_is_per_user(self, service, gateway, clock):
        await seed(gateway, "u2", 30, clock() - timedelta(days=1))

        slug = await service.create_slug("u1", "abc", "https://x.com")

        assert slug.userid == "u1"

    @pytest.mark.asyncio
    async def test_window_slides_with_time(self, service, gateway, clock):
        await seed(gateway, "u1", 30, clock() - timedelta(days=29))
        with pytest.raises(RateLimitExceeded):
            await service.create_slug("u1", "abc", "https://x.com")

        clock.advance(days=2)

        slug = await service.create_slug("u1", "abc", "https://x.com")
        assert slug.slug == "abc"

    @pytest.mark.asyncio
    async def test_identity_failure_propagates(self, service, identity_provider, gateway):
        identity_provider.failures["u1"] = ConnectionError("provider down")

        with pytest.raises(IdentityProviderError):
            await service.create_slug("u1", "abc", "https://x.com")

        assert await gateway.find_slug_records() == []


class TestResolveSlug:

    @pytest.mark.asyncio
    async def test_unknown_token(self, service):
        with pytest.raises(SlugNotFound):
            await service.resolve_slug("nope")

    @pytest.mark.asyncio
    async def test_returns_slug_and_records_one_hit(self, service, gateway, clock):
        created = await service.create_slug("u1", "abc", "https://x.com")
        clock.advance(minutes=5)

        resolved = await service.resolve_slug("abc")

        assert resolved == created
        [hit] = await gateway.find_hit_events(created.id)
        assert hit.slug == "abc"
        assert hit.domain == "https://x.com"
        assert hit.userid == "u1"
        assert hit.hittedat.replace(tzinfo=None) == clock().replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_each_resolution_records_a_hit(self, service, gateway):
        created = await service.create_slug("u1", "abc", "https://x.com")

        for _ in range(3):
            await service.resolve_slug("abc")

        assert len(await gateway.find_hit_events(created.id)) == 3

    @pytest.mark.asyncio
    async def test_last_inserted_wins_on_duplicate_tokens(self, service):
        await service.create_slug("u1", "abc", "https://first.com")
        latest = await service.create_slug("u2", "abc", "https://second.com")

        resolved = await service.resolve_slug("abc")

        assert resolved == latest

    @pytest.mark.asyncio
    async def test_hits_keep_snapshot_after_update(self, service, gateway):
        created = await service.create_slug("u1", "abc", "https://x.com")
        await service.resolve_slug("abc")

        await service.update_slug(Slug(id=created.id, slug="xyz", domain="https://y.com", userid="u1"))

        [hit] = await gateway.find_hit_events(created.id)
        assert hit.slug == "abc"
        assert hit.domain == "https://x.com"

    @pytest.mark.asyncio
    async def test_hit_logging_failure_fails_resolution(self, service, gateway):
        await service.create_slug("u1", "abc", "https://x.com")
        gateway.insert_hit_event = AsyncMock(side_effect=StoreError("insert_hit_event failed"))

        with pytest.raises(StoreError):
            await service.resolve_slug("abc")

    @pytest.mark.asyncio
    async def test_does_not_check_identity(self, service, identity_provider):
        await service.create_slug("u1", "abc", "https://x.com")
        identity_provider.calls.clear()

        await service.resolve_slug("abc")

        assert identity_provider.calls == []


class TestListSlugs:

    @pytest.mark.asyncio
    async def test_empty(self, service):
        assert await service.list_slugs("u1") == []

    @pytest.mark.asyncio
    async def test_only_own_slugs_in_insertion_order(self, service):
        first = await service.create_slug("u1", "a", "https://a.com")
        await service.create_slug("u2", "b", "https://b.com")
        third = await service.create_slug("u1", "c", "https://c.com")

        assert await service.list_slugs("u1") == [first, third]

    @pytest.mark.asyncio
    async def test_unknown_user(self, service):
        with pytest.raises(UserNotFound):
            await service.list_slugs("ghost")


class TestUpdateSlug:

    @pytest.mark.asyncio
    async def test_updates_token_redirect_and_updated_at(self, service, gateway, clock):
        created = await service.create_slug("u1", "abc", "https://x.com")
        clock.advance(hours=1)

        await service.update_slug(Slug(id=created.id, slug="xyz", domain="https://y.com", userid="u1"))

        [record] = await gateway.find_slug_records(SlugRecord.id == created.id)
        assert (record.slug, record.domain, record.userid) == ("xyz", "https://y.com", "u1")
        assert record.updatedat.replace(tzinfo=None) == clock().replace(tzinfo=None)
        assert record.updatedat > record.createdat

    @pytest.mark.asyncio
    async def test_other_owner_is_untouched(self, service, gateway):
        created = await service.create_slug("u1", "abc", "https://x.com")

        await service.update_slug(Slug(id=created.id, slug="xyz", domain="https://evil.com", userid="u2"))

        [record] = await gateway.find_slug_records(SlugRecord.id == created.id)
        assert (record.slug, record.domain) == ("abc", "https://x.com")

    @pytest.mark.asyncio
    async def test_no_match_is_not_an_error(self, service):
        await service.update_slug(Slug(id="0" * 32, slug="xyz", domain="https://y.com", userid="u1"))

    @pytest.mark.asyncio
    async def test_unknown_user(self, service):
        with pytest.raises(UserNotFound):
            await service.update_slug(Slug(id="0" * 32, slug="xyz", domain="https://y.com", userid="ghost"))


class TestDeleteSlug:

    @pytest.mark.asyncio
    async def test_removes_only_matching_record(self, service):
        doomed = await service.create_slug("u1", "a", "https://a.com")
        kept = await service.create_slug("u1", "b", "https://b.com")
        other = await service.create_slug("u2", "c", "https://c.com")

        await service.delete_slug(doomed.id, "u1")

        assert await service.list_slugs("u1") == [kept]
        assert await service.list_slugs("u2") == [other]

    @pytest.mark.asyncio
    async def test_other_owner_cannot_delete(self, service):
        created = await service.create_slug("u1", "a", "https://a.com")

        await service.delete_slug(created.id, "u2")

        assert await service.list_slugs("u1") == [created]

    @pytest.mark.asyncio
    async def test_idempotent(self, service):
        created = await service.create_slug("u1", "a", "https://a.com")

        await service.delete_slug(created.id, "u1")
        await service.delete_slug(created.id, "u1")

        assert await service.list_slugs("u1") == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, service):
        with pytest.raises(UserNotFound):
            await service.delete_slug("0" * 32, "ghost")
