from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from storefront.core.metrics import CACHE_HITS, CACHE_MISSES
from storefront.domain.models import FilterSignature, Item
from storefront.services.paginator import split_pages


@dataclass
class CachedResultSet:
    """Accumulated result set of one filter view, plus the pages built from it."""

    signature: FilterSignature
    items: list[Item]
    cursor: str | None = None
    created_at: float = field(default_factory=lambda: time.time())
    page_size: int | None = None
    pages: dict[int, list[Item]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.items)

    def page(self, number: int, limit: int) -> list[Item]:
        if self.page_size != limit:
            self.pages = split_pages(self.items, limit)
            self.page_size = limit
        return self.pages.get(number, [])


@dataclass
class _BuildSlot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class CatalogPageCache:
    """
    In-Memory Cache für akkumulierte Katalog-Ansichten, Schlüssel ist die
    FilterSignature. Älteste Ansichten werden verdrängt, sobald ``max_entries``
    überschritten wird; ``ttl_seconds=0`` deaktiviert das Ablaufen.
    """

    def __init__(self, max_entries: int = 1, ttl_seconds: int = 0) -> None:
        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._storage: OrderedDict[FilterSignature, CachedResultSet] = OrderedDict()
        self._build_locks: dict[FilterSignature, _BuildSlot] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._storage)

    def get(self, signature: FilterSignature, record: bool = True) -> CachedResultSet | None:
        entry = self._storage.get(signature)
        if entry is not None and self._ttl and (time.time() - entry.created_at) > self._ttl:
            del self._storage[signature]
            entry = None

        if entry is None:
            if record:
                CACHE_MISSES.inc()
            return None

        if record:
            CACHE_HITS.inc()
        self._storage.move_to_end(signature)
        return entry

    async def store(
        self, signature: FilterSignature, items: list[Item], cursor: str | None = None
    ) -> CachedResultSet:
        entry = CachedResultSet(signature=signature, items=items, cursor=cursor)
        async with self._lock:
            self._storage[signature] = entry
            self._storage.move_to_end(signature)
            while len(self._storage) > self._max_entries:
                self._storage.popitem(last=False)
        return entry

    async def invalidate(self, signature: FilterSignature | None = None) -> None:
        """Evicts one view, or every view when no signature is given."""
        async with self._lock:
            if signature is None:
                self._storage.clear()
            else:
                self._storage.pop(signature, None)

    @property
    def pending_builds(self) -> int:
        """Number of views with a build running or waiting."""
        return len(self._build_locks)

    @asynccontextmanager
    async def build_lock(self, signature: FilterSignature) -> AsyncIterator[None]:
        """
        Serialises concurrent builds of the same view. The lock lives while
        at least one request holds or waits for it, whether the build
        succeeds or fails.
        """
        slot = self._build_locks.setdefault(signature, _BuildSlot())
        slot.users += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.users -= 1
            if not slot.users:
                del self._build_locks[signature]
