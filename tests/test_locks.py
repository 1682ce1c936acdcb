"""Tests for per-resource lock registry."""

import asyncio
import gc

import pytest

from booking_core.lifecycle.locks import ResourceLockRegistry


class TestResourceLockRegistry:
    def test_same_key_same_lock(self):
        registry = ResourceLockRegistry()
        lock = registry.lock_for("t", "s")
        assert registry.lock_for("t", "s") is lock
        assert len(registry) == 1

    def test_unused_locks_are_dropped(self):
        registry = ResourceLockRegistry()
        locks = [registry.lock_for("t", f"staff-{i}") for i in range(50)]
        assert len(registry) == 50
        del locks
        gc.collect()
        assert len(registry) == 0

    def test_unassigned_bucket_has_own_lock(self):
        registry = ResourceLockRegistry()
        assert registry.lock_for("t", None) is not registry.lock_for("t", "s")
        assert registry.lock_for("t", None) is not registry.lock_for("u", None)

    @pytest.mark.asyncio
    async def test_hold_serializes_same_resource(self):
        registry = ResourceLockRegistry()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with registry.hold(("t", "s")):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order == ["a-in", "a-out", "b-in", "b-out"]

    @pytest.mark.asyncio
    async def test_hold_releases_on_error(self):
        registry = ResourceLockRegistry()
        lock = registry.lock_for("t", "s")
        with pytest.raises(RuntimeError):
            async with registry.hold(("t", "s")):
                assert lock.locked()
                raise RuntimeError("boom")
        assert not lock.locked()

    @pytest.mark.asyncio
    async def test_hold_multiple_keys_in_any_order(self):
        registry = ResourceLockRegistry()

        async def worker(keys) -> None:
            async with registry.hold(*keys):
                await asyncio.sleep(0.01)

        await asyncio.wait_for(
            asyncio.gather(
                worker([("t", "a"), ("t", None)]),
                worker([("t", None), ("t", "a")]),
            ),
            timeout=1,
        )
        assert not registry.lock_for("t", "a").locked()
        assert not registry.lock_for("t", None).locked()
