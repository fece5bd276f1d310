from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence

from storefront.core.metrics import INVENTORY_RATE_LIMITED
from storefront.domain.models import Item
from storefront.domain.ports import CatalogSourcePort, RateLimitedError, UpstreamFetchError
from storefront.services.backoff import BackoffPolicy

logger = logging.getLogger(__name__)


def chunked(values: Sequence[str], size: int) -> list[Sequence[str]]:
    return [values[i : i + size] for i in range(0, len(values), size)]


class InventoryService:
    """
    Aggregiert Lagerbestände pro Variante über alle Standorte.

    Varianten-IDs werden in Blöcken abgefragt, jeder Block folgt seinem eigenen
    Cursor. Fehler brechen nur den betroffenen Block ab; bereits gesammelte
    Summen bleiben erhalten. ``get_stock`` wirft keine Upstream-Fehler.
    """

    def __init__(
        self,
        source: CatalogSourcePort,
        backoff: BackoffPolicy,
        chunk_size: int = 250,
        max_concurrency: int = 5,
    ) -> None:
        self._source = source
        self._backoff = backoff
        self._chunk_size = chunk_size
        self._max_concurrency = max_concurrency

    async def get_stock(self, variant_ids: Iterable[str]) -> dict[str, int]:
        unique_ids = list(dict.fromkeys(variant_ids))
        if not unique_ids:
            return {}

        totals: defaultdict[str, float] = defaultdict(float)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        await asyncio.gather(
            *(
                self._collect_chunk(chunk, totals, semaphore)
                for chunk in chunked(unique_ids, self._chunk_size)
            )
        )
        # Loyverse allows negative stock at a store; callers only see non-negative totals
        return {variant_id: max(int(stock), 0) for variant_id, stock in totals.items()}

    async def annotate(self, items: Sequence[Item]) -> list[Item]:
        """Sets total_stock on every variant and item, with a single bulk stock lookup."""
        stock = await self.get_stock(
            variant_id for item in items for variant_id in item.variant_ids
        )
        return [item.with_stock(stock) for item in items]

    async def _collect_chunk(
        self,
        chunk: Sequence[str],
        totals: defaultdict[str, float],
        semaphore: asyncio.Semaphore,
    ) -> None:
        cursor: str | None = None
        rate_limited = 0
        while True:
            try:
                async with semaphore:
                    page = await self._source.fetch_inventory_page(chunk, cursor=cursor)
            except RateLimitedError as e:
                rate_limited += 1
                if not self._backoff.should_retry(rate_limited):
                    INVENTORY_RATE_LIMITED.labels(outcome="aborted").inc()
                    logger.warning(
                        "Inventory chunk of %d variants aborted after %d rate-limited attempts",
                        len(chunk),
                        rate_limited,
                    )
                    return
                INVENTORY_RATE_LIMITED.labels(outcome="retried").inc()
                await asyncio.sleep(self._backoff.delay(rate_limited, e.retry_after))
                continue
            except UpstreamFetchError:
                logger.warning(
                    "Inventory chunk of %d variants aborted, keeping partial stock",
                    len(chunk),
                    exc_info=True,
                )
                return

            rate_limited = 0
            for level in page.inventory_levels:
                totals[level.variant_id] += level.in_stock or 0
            if not page.cursor:
                return
            cursor = page.cursor
