# core/role_cache.py
"""
In-memory cache of each user's roles and permissions.

Entries are derived from the store and expire after a TTL; losing the cache
(restart, ``invalidate_all``) only costs extra queries. The cache is bounded:
when full, the least recently used entry is evicted before inserting. A
background task sweeps expired entries so one-off sessions do not pile up.
"""
import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessEntry:
    """Resolved roles and permissions of one user."""
    roles: frozenset[str] = frozenset()
    permissions: frozenset[str] = frozenset()

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return any(role in self.roles for role in roles)

    def has_all_permissions(self, permissions: Iterable[str]) -> bool:
        return all(permission in self.permissions for permission in permissions)


AccessLoader = Callable[[AsyncSession, int], Awaitable[AccessEntry]]


class RoleCache:
    """TTL + LRU cache from user id to AccessEntry."""

    def __init__(
        self,
        loader: AccessLoader,
        ttl_seconds: float = 300,
        max_size: int = 1000,
        sweep_interval: float = 600,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._loader = loader
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._sweep_interval = sweep_interval
        self._clock = clock
        # user_id -> (entry, expires_at); order is least -> most recently used
        self._entries: OrderedDict[int, tuple[AccessEntry, float]] = OrderedDict()
        # loads in progress per user, and users invalidated while one was running
        self._in_flight: dict[int, int] = {}
        self._stale: set[int] = set()
        self._sweeper: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._entries

    async def resolve(self, db: AsyncSession, user_id: int) -> AccessEntry:
        """
        Return the user's roles and permissions.

        Served from memory while the entry is fresh, otherwise reloaded from
        the store. Store errors propagate; nothing is cached on failure.
        A load overtaken by ``invalidate`` is returned but not cached.
        """
        now = self._clock()
        cached = self._entries.get(user_id)
        if cached is not None:
            entry, expires_at = cached
            if expires_at > now:
                self._entries.move_to_end(user_id)
                return entry
            del self._entries[user_id]

        self._in_flight[user_id] = self._in_flight.get(user_id, 0) + 1
        try:
            entry = await self._loader(db, user_id)
        finally:
            stale = user_id in self._stale
            remaining = self._in_flight[user_id] - 1
            if remaining:
                self._in_flight[user_id] = remaining
            else:
                del self._in_flight[user_id]
                self._stale.discard(user_id)

        logger.debug(
            "Loaded access for user %s: roles=%s permissions=%d",
            user_id, sorted(entry.roles), len(entry.permissions),
        )
        if stale:
            logger.debug("Access for user %s changed during load, not caching", user_id)
        else:
            self._store(user_id, entry, self._clock() + self._ttl)
        return entry

    def _store(self, user_id: int, entry: AccessEntry, expires_at: float) -> None:
        if user_id in self._entries:
            del self._entries[user_id]
        while len(self._entries) >= self._max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Role cache full, evicted user %s", evicted)
        self._entries[user_id] = (entry, expires_at)

    def invalidate(self, user_id: int) -> None:
        """Drop one user's entry; call after any change to their roles."""
        self._entries.pop(user_id, None)
        if user_id in self._in_flight:
            self._stale.add(user_id)

    def invalidate_all(self) -> None:
        self._entries.clear()
        self._stale.update(self._in_flight)

    def sweep(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [uid for uid, (_, expires_at) in self._entries.items() if expires_at <= now]
        for uid in expired:
            del self._entries[uid]
        if expired:
            logger.debug("Role cache sweep removed %d expired entries", len(expired))
        return len(expired)

    # ---------- lifecycle ----------

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever())

    async def stop(self) -> None:
        """Cancel the sweep task and drop every entry."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        self.invalidate_all()

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()
