from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from storefront.domain.models import Item
from storefront.domain.ports import CatalogSourcePort
from storefront.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

ItemPredicate = Callable[[Item], bool]


@dataclass
class AccumulationResult:
    items: list[Item] = field(default_factory=list)
    # Upstream cursor at the point accumulation stopped; None once drained
    cursor: str | None = None
    upstream_pages: int = 0


def matches_size(item: Item, size: str) -> bool:
    wanted = size.strip().lower()
    return any(
        value.strip().lower() == wanted
        for variant in item.variants
        for value in variant.option_values
    )


def matches_color(item: Item, color: str) -> bool:
    return (item.color or "").strip().lower() == color.strip().lower()


class CatalogAccumulator:
    """
    Drains the paginated item source into a deduplicated, filtered and
    stock-annotated result set.

    Every call starts cold. Upstream cursors may overlap, so items are
    deduplicated by id across pages. With a ``quota`` the loop stops as soon
    as enough stock-positive items have been collected, which trades
    completeness for latency on the unfiltered listing.
    """

    def __init__(self, source: CatalogSourcePort, inventory: InventoryService) -> None:
        self._source = source
        self._inventory = inventory

    async def accumulate(
        self,
        predicate: ItemPredicate,
        *,
        quota: int | None = None,
        in_stock_only: bool = True,
        size: str | None = None,
        color: str | None = None,
    ) -> AccumulationResult:
        result = AccumulationResult()
        seen: set[str] = set()
        cursor: str | None = None

        while True:
            page = await self._source.fetch_items_page(cursor)
            result.upstream_pages += 1

            fresh = []
            for item in page.items:
                if item.id in seen:
                    continue
                seen.add(item.id)
                if predicate(item) and self._passes_secondary(item, size, color):
                    fresh.append(item)

            if quota is not None:
                annotated = await self._inventory.annotate(fresh)
                result.items.extend(
                    item for item in annotated if item.is_in_stock or not in_stock_only
                )
            else:
                result.items.extend(fresh)

            cursor = page.cursor
            if not cursor:
                break
            if quota is not None and len(result.items) >= quota:
                break

        result.cursor = cursor
        if quota is not None:
            result.items = result.items[:quota]
        else:
            annotated = await self._inventory.annotate(result.items)
            result.items = [item for item in annotated if item.is_in_stock or not in_stock_only]

        logger.debug(
            "Accumulated %d items from %d upstream pages", len(result.items), result.upstream_pages
        )
        return result

    @staticmethod
    def _passes_secondary(item: Item, size: str | None, color: str | None) -> bool:
        if size and not matches_size(item, size):
            return False
        if color and not matches_color(item, color):
            return False
        return True
