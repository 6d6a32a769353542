"""Tests for the publish / retrieve paths."""
import asyncio
import logging
from datetime import timedelta

import pytest

from conftest import T0, ScriptedAllocator
from core.identifiers import IdentifierAllocator
from service.publication_service import PublicationService
from util.errors import (
    AllocationExhaustedError,
    ContentTooLargeError,
    EmptyContentError,
    ExpiryNotInFutureError,
    ExpiryOutOfRangeError,
    InvalidExpiryError,
    StorageFailureError,
    StorageIOError,
)


def make_service(store, clock, allocator=None, **overrides) -> PublicationService:
    opts = dict(
        max_content_size=64,
        default_expiry=timedelta(days=3),
        min_expiry=timedelta(minutes=10),
        max_expiry=timedelta(days=30),
        max_attempts=3,
        clock=clock,
    )
    opts.update(overrides)
    return PublicationService(store, allocator or IdentifierAllocator(), **opts)


class BrokenStore:
    async def create(self, snippet_id, content, expires_at):
        raise StorageIOError("create failed")

    async def get(self, snippet_id):
        raise StorageIOError("get failed")

    async def delete_expired(self):
        raise StorageIOError("delete_expired failed")

    async def delete(self, snippet_id):
        raise StorageIOError("delete failed")


class TestPublish:
    async def test_default_expiry(self, memory_store, clock):
        svc = make_service(memory_store, clock)

        result = await svc.publish(b"hello world")

        assert result.created_at == T0
        assert result.expires_at == T0 + timedelta(days=3)
        assert memory_store.rows[result.id].content == b"hello world"

    async def test_ten_minutes_then_gone(self, sql_store, clock):
        svc = make_service(sql_store, clock)

        result = await svc.publish(b"x", "10m")
        assert result.expires_at == result.created_at + timedelta(minutes=10)

        clock.advance(timedelta(minutes=9, seconds=59))
        assert await svc.retrieve(result.id) == b"x"

        clock.advance(timedelta(seconds=2))
        assert await svc.retrieve(result.id) is None

    async def test_size_limit_is_inclusive(self, memory_store, clock):
        svc = make_service(memory_store, clock)

        await svc.publish(b"a" * 64)
        with pytest.raises(ContentTooLargeError):
            await svc.publish(b"a" * 65)

    async def test_empty_content(self, memory_store, clock):
        svc = make_service(memory_store, clock)
        with pytest.raises(EmptyContentError):
            await svc.publish(b"")

    async def test_content_is_checked_before_expiry(self, memory_store, clock):
        svc = make_service(memory_store, clock)
        with pytest.raises(EmptyContentError):
            await svc.publish(b"", "bogus")

    @pytest.mark.parametrize("text", ["5s", "1y", "1.5h", "0m", "10"])
    async def test_invalid_expiry(self, memory_store, clock, text):
        svc = make_service(memory_store, clock)
        with pytest.raises(InvalidExpiryError):
            await svc.publish(b"x", text)
        assert memory_store.rows == {}

    async def test_expiry_out_of_range(self, memory_store, clock):
        svc = make_service(memory_store, clock)

        with pytest.raises(ExpiryOutOfRangeError) as exc:
            await svc.publish(b"x", "5m")
        assert "less than minimum 10m" in exc.value.message

        with pytest.raises(ExpiryOutOfRangeError):
            await svc.publish(b"x", "31d")

    async def test_out_of_range_rejection_names_the_bound(self, memory_store, clock, caplog):
        svc = make_service(memory_store, clock)
        with caplog.at_level(logging.INFO, logger="service.publication_service"):
            with pytest.raises(ExpiryOutOfRangeError):
                await svc.publish(b"x", "31d")
        assert "publish.rejected reason=expiry_maximum limit=30d" in caplog.text

    async def test_bounds_themselves_are_accepted(self, memory_store, clock):
        svc = make_service(memory_store, clock)
        assert (await svc.publish(b"x", "10m")).expires_at == T0 + timedelta(minutes=10)
        assert (await svc.publish(b"x", "30d")).expires_at == T0 + timedelta(days=30)


class TestCollisions:
    async def test_concurrent_publishers_never_share_an_id(self, memory_store, clock):
        allocator = ScriptedAllocator(["AAAAAAAAAAAA", "AAAAAAAAAAAA", "BBBBBBBBBBBB"])
        svc = make_service(memory_store, clock, allocator)

        first, second = await asyncio.gather(
            svc.publish(b"one"), svc.publish(b"two")
        )

        assert {first.id, second.id} == {"AAAAAAAAAAAA", "BBBBBBBBBBBB"}
        assert memory_store.create_calls == ["AAAAAAAAAAAA", "AAAAAAAAAAAA", "BBBBBBBBBBBB"]
        assert memory_store.rows["AAAAAAAAAAAA"].content == b"one"
        assert memory_store.rows["BBBBBBBBBBBB"].content == b"two"

    async def test_collision_against_sql_store_is_retried(self, sql_store, clock):
        await sql_store.create("AAAAAAAAAAAA", b"taken", T0 + timedelta(hours=1))
        allocator = ScriptedAllocator(["AAAAAAAAAAAA", "BBBBBBBBBBBB"])
        svc = make_service(sql_store, clock, allocator)

        result = await svc.publish(b"mine")

        assert result.id == "BBBBBBBBBBBB"
        assert await svc.retrieve("AAAAAAAAAAAA") == b"taken"
        assert await svc.retrieve("BBBBBBBBBBBB") == b"mine"

    async def test_concurrent_publishers_race_on_the_sql_primary_key(self, sql_store, clock):
        allocator = ScriptedAllocator(["AAAAAAAAAAAA", "AAAAAAAAAAAA", "BBBBBBBBBBBB"])
        svc = make_service(sql_store, clock, allocator)

        first, second = await asyncio.gather(
            svc.publish(b"one"), svc.publish(b"two")
        )

        assert {first.id, second.id} == {"AAAAAAAAAAAA", "BBBBBBBBBBBB"}
        assert {await svc.retrieve(first.id), await svc.retrieve(second.id)} == {b"one", b"two"}

    async def test_allocation_exhausted(self, memory_store, clock):
        await memory_store.create("AAAAAAAAAAAA", b"taken", T0 + timedelta(hours=1))
        memory_store.create_calls.clear()
        allocator = ScriptedAllocator(["AAAAAAAAAAAA"] * 3)
        svc = make_service(memory_store, clock, allocator)

        with pytest.raises(AllocationExhaustedError):
            await svc.publish(b"x")
        assert len(memory_store.create_calls) == 3

    def test_requires_at_least_one_attempt(self, memory_store, clock):
        with pytest.raises(ValueError):
            make_service(memory_store, clock, max_attempts=0)


class TestRetrieve:
    async def test_absent_cases_look_identical(self, memory_store, clock):
        svc = make_service(memory_store, clock)
        expired = await svc.publish(b"x", "10m")
        clock.advance(timedelta(hours=1))

        assert await svc.retrieve("not-an-id!") is None
        assert await svc.retrieve("ZZZZZZZZZZZZ") is None
        assert await svc.retrieve(expired.id) is None

    async def test_malformed_id_never_reaches_store(self, clock):
        svc = make_service(BrokenStore(), clock)
        assert await svc.retrieve("short") is None

    async def test_store_failure_is_not_reported_as_absent(self, clock):
        svc = make_service(BrokenStore(), clock)
        with pytest.raises(StorageFailureError):
            await svc.retrieve("AAAAAAAAAAAA")


class TestStorageFailure:
    async def test_publish_maps_store_errors(self, clock):
        svc = make_service(BrokenStore(), clock)
        with pytest.raises(StorageFailureError):
            await svc.publish(b"x")

    async def test_store_clock_ahead_of_service_clock(self, sql_store, clock):
        svc = make_service(sql_store, lambda: T0 - timedelta(days=1))
        with pytest.raises(StorageFailureError) as exc:
            await svc.publish(b"x", "10m")
        assert isinstance(exc.value.__cause__, ExpiryNotInFutureError)

    async def test_delete(self, memory_store, clock):
        svc = make_service(memory_store, clock)
        result = await svc.publish(b"x")

        await svc.delete(result.id)
        await svc.delete(result.id)
        await svc.delete("bad id")

        assert await svc.retrieve(result.id) is None

        with pytest.raises(StorageFailureError):
            await make_service(BrokenStore(), clock).delete("AAAAAAAAAAAA")
