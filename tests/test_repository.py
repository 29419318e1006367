"""Contract tests run against every repository backend."""

import uuid

import pytest

from shortener.core.exceptions import ShortCodeCollisionError, URLDeletedError, URLNotFoundError
from shortener.core.schemas import ServiceStats, URLMapping


class TestStoreAndLookup:
    """Single mappings in both directions."""

    @pytest.mark.asyncio
    async def test_store_and_resolve_both_directions(self, repository, owner):
        stored = await repository.store_url(owner, "https://example.com/a", "X1")

        assert stored == "X1"
        assert await repository.get_short_url("https://example.com/a") == "X1"
        assert await repository.get_original_url("X1") == "https://example.com/a"

    @pytest.mark.asyncio
    async def test_storing_known_url_returns_existing_code(self, repository, owner, other_owner):
        await repository.store_url(owner, "https://example.com/a", "X1")

        stored = await repository.store_url(other_owner, "https://example.com/a", "Y2")

        assert stored == "X1"
        with pytest.raises(URLNotFoundError):
            await repository.get_original_url("Y2")
        assert await repository.get_stats() == ServiceStats(urls=1, users=1)

    @pytest.mark.asyncio
    async def test_taken_code_is_a_collision(self, repository, owner):
        await repository.store_url(owner, "https://example.com/a", "X1")

        with pytest.raises(ShortCodeCollisionError):
            await repository.store_url(owner, "https://example.com/b", "X1")

        with pytest.raises(URLNotFoundError):
            await repository.get_short_url("https://example.com/b")

    @pytest.mark.asyncio
    async def test_missing_keys(self, repository):
        with pytest.raises(URLNotFoundError):
            await repository.get_short_url("https://example.com/missing")
        with pytest.raises(URLNotFoundError):
            await repository.get_original_url("missing")


class TestBatch:
    """Batch store and lookup."""

    @pytest.mark.asyncio
    async def test_duplicate_originals_create_one_mapping(self, repository, owner):
        stored = await repository.store_batch_url(owner, {
            "c1": "https://example.com/1",
            "c2": "https://example.com/2",
            "c3": "https://example.com/1",
        })

        assert stored == {"https://example.com/1": "c1", "https://example.com/2": "c2"}
        with pytest.raises(URLNotFoundError):
            await repository.get_original_url("c3")
        assert (await repository.get_stats()).urls == 2

    @pytest.mark.asyncio
    async def test_known_urls_keep_their_codes(self, repository, owner):
        await repository.store_url(owner, "https://example.com/1", "old")

        stored = await repository.store_batch_url(owner, {
            "new1": "https://example.com/1",
            "new2": "https://example.com/2",
        })

        assert stored == {"https://example.com/1": "old", "https://example.com/2": "new2"}

    @pytest.mark.asyncio
    async def test_collision_rejects_whole_batch(self, repository, owner):
        await repository.store_url(owner, "https://example.com/0", "taken")

        with pytest.raises(ShortCodeCollisionError):
            await repository.store_batch_url(owner, {
                "fresh": "https://example.com/1",
                "taken": "https://example.com/2",
            })

        with pytest.raises(URLNotFoundError):
            await repository.get_short_url("https://example.com/1")
        assert (await repository.get_stats()).urls == 1

    @pytest.mark.asyncio
    async def test_empty_batch(self, repository, owner):
        assert await repository.store_batch_url(owner, {}) == {}
        assert await repository.get_short_batch_url([]) == {}

    @pytest.mark.asyncio
    async def test_batch_lookup_returns_hits_only(self, repository, owner):
        await repository.store_url(owner, "https://example.com/1", "c1")
        await repository.store_url(owner, "https://example.com/2", "c2")

        found = await repository.get_short_batch_url([
            "https://example.com/1",
            "https://example.com/missing",
            "https://example.com/2",
        ])

        assert found == {"https://example.com/1": "c1", "https://example.com/2": "c2"}


class TestOwnershipAndDeletion:
    """Per-user listing and soft deletion."""

    @pytest.mark.asyncio
    async def test_user_urls_are_scoped_to_owner(self, repository, owner, other_owner):
        await repository.store_url(owner, "https://example.com/1", "c1")
        await repository.store_url(other_owner, "https://example.com/2", "c2")

        assert await repository.get_user_urls(owner) == [
            URLMapping(short_url="c1", original_url="https://example.com/1")
        ]
        assert await repository.get_user_urls(uuid.uuid4()) == []

    @pytest.mark.asyncio
    async def test_delete_hides_mapping(self, repository, owner):
        await repository.store_url(owner, "https://example.com/1", "c1")
        await repository.store_url(owner, "https://example.com/2", "c2")

        await repository.mark_urls_as_deleted(owner, ["c1"])

        with pytest.raises(URLDeletedError):
            await repository.get_original_url("c1")
        assert await repository.get_user_urls(owner) == [
            URLMapping(short_url="c2", original_url="https://example.com/2")
        ]

    @pytest.mark.asyncio
    async def test_cannot_delete_other_users_urls(self, repository, owner, other_owner):
        await repository.store_url(owner, "https://example.com/1", "c1")
        await repository.store_url(other_owner, "https://example.com/2", "c2")

        await repository.mark_urls_as_deleted(other_owner, ["c1", "c2", "unknown"])

        assert await repository.get_original_url("c1") == "https://example.com/1"
        with pytest.raises(URLDeletedError):
            await repository.get_original_url("c2")

    @pytest.mark.asyncio
    async def test_empty_delete_is_noop(self, repository, owner):
        await repository.store_url(owner, "https://example.com/1", "c1")

        await repository.mark_urls_as_deleted(owner, [])

        assert await repository.get_original_url("c1") == "https://example.com/1"

    @pytest.mark.asyncio
    async def test_deleted_url_keeps_its_code(self, repository, owner):
        await repository.store_url(owner, "https://example.com/1", "c1")
        await repository.mark_urls_as_deleted(owner, ["c1"])

        assert await repository.get_short_url("https://example.com/1") == "c1"
        assert await repository.store_url(owner, "https://example.com/1", "c9") == "c1"


class TestStats:
    """Aggregate counts."""

    @pytest.mark.asyncio
    async def test_counts_urls_and_owners(self, repository):
        owners = [uuid.uuid4() for _ in range(3)]
        for index in range(5):
            await repository.store_url(
                owners[index % 3],
                f"https://example.com/{index}",
                f"c{index}"
            )

        assert await repository.get_stats() == ServiceStats(urls=5, users=3)

    @pytest.mark.asyncio
    async def test_deleted_urls_still_counted(self, repository, owner):
        await repository.store_url(owner, "https://example.com/1", "c1")
        await repository.mark_urls_as_deleted(owner, ["c1"])

        assert await repository.get_stats() == ServiceStats(urls=1, users=1)

    @pytest.mark.asyncio
    async def test_empty_store(self, repository):
        assert await repository.get_stats() == ServiceStats(urls=0, users=0)

    @pytest.mark.asyncio
    async def test_ping(self, repository):
        await repository.ping()
