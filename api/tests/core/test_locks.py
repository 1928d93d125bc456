"""Tests for per-key mutation locks."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from redis.exceptions import LockError

from scsm.core.exceptions import StorageError
from scsm.core.locks import UserLocks, mobile_key, order_key


class TestKeys:
    def test_key_namespaces(self) -> None:
        assert mobile_key("9876543210") == "mobile:9876543210"
        assert order_key("ORDER_1_a") == "order:ORDER_1_a"


class TestInProcessLocks:
    """Tests for asyncio-backed locks."""

    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self) -> None:
        locks = UserLocks()
        events: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("mobile:1"):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    @pytest.mark.asyncio
    async def test_held_key_makes_others_wait(self) -> None:
        locks = UserLocks()

        async def enter() -> None:
            async with locks.hold("mobile:1"):
                pass

        async with locks.hold("mobile:1"):
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(enter(), timeout=0.05)

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self) -> None:
        locks = UserLocks()
        entered: list[str] = []

        async def enter(key: str) -> None:
            async with locks.hold(key):
                entered.append(key)

        async with locks.hold("mobile:1"):
            await asyncio.wait_for(enter("mobile:2"), timeout=1)

        assert entered == ["mobile:2"]

    @pytest.mark.asyncio
    async def test_registry_is_cleaned_up(self) -> None:
        locks = UserLocks()

        async with locks.hold("mobile:1"):
            pass

        assert locks._locks == {}
        assert locks._waiters == {}

    @pytest.mark.asyncio
    async def test_released_on_error(self) -> None:
        locks = UserLocks()

        with pytest.raises(RuntimeError):
            async with locks.hold("mobile:1"):
                raise RuntimeError("boom")

        assert locks._locks == {}
        async with asyncio.timeout(1):
            async with locks.hold("mobile:1"):
                pass


class TestRedisLocks:
    """Tests for Redis-backed locks (mocked client)."""

    def make_redis(self, acquired: bool = True) -> tuple[Mock, Mock]:
        lock = Mock()
        lock.acquire = AsyncMock(return_value=acquired)
        lock.release = AsyncMock()
        redis = Mock()
        redis.lock = Mock(return_value=lock)
        return redis, lock

    @pytest.mark.asyncio
    async def test_acquires_and_releases(self) -> None:
        redis, lock = self.make_redis()
        locks = UserLocks(redis=redis, timeout=5)

        async with locks.hold("order:ORDER_1_a"):
            lock.release.assert_not_awaited()

        redis.lock.assert_called_once_with(
            "lock:order:ORDER_1_a", timeout=5, blocking_timeout=5
        )
        lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_busy_lock_raises_storage_error(self) -> None:
        redis, _lock = self.make_redis(acquired=False)
        locks = UserLocks(redis=redis)

        with pytest.raises(StorageError):
            async with locks.hold("mobile:1"):
                pytest.fail("lock body must not run")

    @pytest.mark.asyncio
    async def test_expired_lock_release_is_tolerated(self) -> None:
        redis, lock = self.make_redis()
        lock.release = AsyncMock(side_effect=LockError("expired"))
        locks = UserLocks(redis=redis)

        async with locks.hold("mobile:1"):
            pass

        lock.release.assert_awaited_once()
