import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from core.role_cache import AccessEntry, RoleCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingLoader:
    """Loader returning a fixed entry per user and counting store hits."""

    def __init__(self, entries=None):
        self.entries = entries or {}
        self.calls: list[int] = []
        self.error: Exception | None = None

    async def __call__(self, db, user_id: int) -> AccessEntry:
        self.calls.append(user_id)
        if self.error is not None:
            raise self.error
        return self.entries.get(user_id, AccessEntry())


STAFF = AccessEntry(
    roles=frozenset({"medewerker"}),
    permissions=frozenset({"bikes:read", "bikes:update"}),
)


def test_access_entry_role_and_permission_semantics():
    assert STAFF.has_any_role(["admin", "medewerker"])
    assert not STAFF.has_any_role(["admin"])
    assert STAFF.has_all_permissions(["bikes:read", "bikes:update"])
    assert not STAFF.has_all_permissions(["bikes:read", "bikes:create"])
    assert STAFF.has_all_permissions([])


@pytest.mark.anyio
async def test_resolve_within_ttl_hits_store_once():
    loader = CountingLoader({1: STAFF})
    cache = RoleCache(loader, ttl_seconds=300, clock=FakeClock())

    first = await cache.resolve(None, 1)
    second = await cache.resolve(None, 1)

    assert first == second == STAFF
    assert loader.calls == [1]


@pytest.mark.anyio
async def test_invalidate_forces_reload():
    loader = CountingLoader({1: STAFF})
    cache = RoleCache(loader, clock=FakeClock())

    await cache.resolve(None, 1)
    cache.invalidate(1)
    assert 1 not in cache

    await cache.resolve(None, 1)
    assert loader.calls == [1, 1]


class BlockingLoader:
    """Loader that reads the user's roles, then waits until released."""

    def __init__(self, store):
        self.store = store
        self.calls = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, db, user_id: int) -> AccessEntry:
        self.calls += 1
        entry = AccessEntry(roles=frozenset(self.store[user_id]))
        self.started.set()
        await self.release.wait()
        return entry


@pytest.mark.anyio
@pytest.mark.parametrize("invalidate_all", [False, True])
async def test_invalidate_during_load_is_not_overwritten(invalidate_all):
    store = {1: {"admin"}}
    loader = BlockingLoader(store)
    cache = RoleCache(loader, clock=FakeClock())

    task = asyncio.create_task(cache.resolve(None, 1))
    await loader.started.wait()

    store[1] = set()
    if invalidate_all:
        cache.invalidate_all()
    else:
        cache.invalidate(1)
    loader.release.set()

    # The overtaken load still answers its own caller
    assert (await task).roles == {"admin"}
    assert 1 not in cache

    entry = await cache.resolve(None, 1)
    assert entry.roles == frozenset()
    assert loader.calls == 2
    assert 1 in cache


@pytest.mark.anyio
async def test_expired_entry_is_never_returned():
    clock = FakeClock()
    loader = CountingLoader({1: STAFF})
    cache = RoleCache(loader, ttl_seconds=300, clock=clock)

    await cache.resolve(None, 1)
    clock.advance(299)
    await cache.resolve(None, 1)
    assert loader.calls == [1]

    clock.advance(1)
    loader.entries[1] = AccessEntry(roles=frozenset({"readonly"}))
    entry = await cache.resolve(None, 1)

    assert entry.roles == frozenset({"readonly"})
    assert loader.calls == [1, 1]


@pytest.mark.anyio
async def test_full_cache_evicts_least_recently_used():
    loader = CountingLoader()
    cache = RoleCache(loader, max_size=2, clock=FakeClock())

    await cache.resolve(None, 1)
    await cache.resolve(None, 2)
    # Touch 1 so 2 becomes the least recently used
    await cache.resolve(None, 1)
    await cache.resolve(None, 3)

    assert len(cache) == 2
    assert 1 in cache
    assert 2 not in cache
    assert 3 in cache


@pytest.mark.anyio
async def test_sweep_removes_only_expired_entries():
    clock = FakeClock()
    cache = RoleCache(CountingLoader(), ttl_seconds=100, clock=clock)

    await cache.resolve(None, 1)
    clock.advance(60)
    await cache.resolve(None, 2)
    clock.advance(50)

    assert cache.sweep() == 1
    assert 1 not in cache
    assert 2 in cache


@pytest.mark.anyio
async def test_store_failure_propagates_and_caches_nothing():
    loader = CountingLoader()
    loader.error = OperationalError("SELECT", {}, Exception("database is gone"))
    cache = RoleCache(loader, clock=FakeClock())

    with pytest.raises(OperationalError):
        await cache.resolve(None, 7)
    assert 7 not in cache


@pytest.mark.anyio
async def test_stop_clears_entries():
    cache = RoleCache(CountingLoader(), sweep_interval=3600, clock=FakeClock())
    cache.start()
    await cache.resolve(None, 1)

    await cache.stop()

    assert len(cache) == 0


def test_max_size_must_be_positive():
    with pytest.raises(ValueError):
        RoleCache(CountingLoader(), max_size=0)
