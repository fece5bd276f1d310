# src/storefront/services/catalog_service.py
from __future__ import annotations

import logging

from storefront.domain.models import CatalogPage, FilterSignature, Item, SearchPage, ViewKind
from storefront.domain.ports import CatalogSourcePort
from storefront.services.catalog_accumulator import CatalogAccumulator
from storefront.services.inventory_service import InventoryService
from storefront.services.page_cache import CachedResultSet, CatalogPageCache
from storefront.services.paginator import total_pages

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Service für Produktdetails, Startseiten-Listing, Kategorie-Katalog und Suche.
    Alle Listen laufen über denselben Akkumulator, parametrisiert durch die
    FilterSignature.
    """

    def __init__(
        self,
        source: CatalogSourcePort,
        inventory: InventoryService,
        accumulator: CatalogAccumulator,
        page_cache: CatalogPageCache,
        listing_quota: int = 12,
        listing_in_stock_only: bool = True,
        catalog_in_stock_only: bool = True,
        search_in_stock_only: bool = True,
    ) -> None:
        self._source = source
        self._inventory = inventory
        self._accumulator = accumulator
        self._cache = page_cache
        self._listing_quota = listing_quota
        self._in_stock_only = {
            ViewKind.LISTING: listing_in_stock_only,
            ViewKind.CATALOG: catalog_in_stock_only,
            ViewKind.SEARCH: search_in_stock_only,
        }

    async def get_item(self, item_id: str) -> Item:
        """
        Raises:
            ItemNotFoundError: Wenn der Artikel nicht existiert.
            UpstreamFetchError: Bei Fehlern der Loyverse API.
        """
        item = await self._source.fetch_item(item_id)
        [annotated] = await self._inventory.annotate([item])
        return annotated

    async def list_products(self) -> list[Item]:
        """Startseite: die ersten Artikel mit Bestand, ohne vollständigen Katalog-Durchlauf."""
        signature = FilterSignature(kind=ViewKind.LISTING)
        result = await self._accumulator.accumulate(
            signature.matches,
            quota=self._listing_quota,
            in_stock_only=self._in_stock_only[ViewKind.LISTING],
        )
        return result.items

    async def get_catalog_page(
        self,
        category: str,
        page: int = 1,
        limit: int = 10,
        color: str | None = None,
        size: str | None = None,
    ) -> CatalogPage:
        signature = FilterSignature(
            kind=ViewKind.CATALOG, category=category, color=color or None, size=size or None
        )
        entry = await self._get_or_build(signature)
        return CatalogPage(
            page=page,
            limit=limit,
            total=entry.total,
            total_pages=total_pages(entry.total, limit),
            items=entry.page(page, limit),
        )

    async def search(self, term: str, page: int = 1, limit: int = 10) -> SearchPage:
        signature = FilterSignature(kind=ViewKind.SEARCH, term=term)
        entry = await self._get_or_build(signature)
        return SearchPage(
            page=page,
            limit=limit,
            total=entry.total,
            total_pages=total_pages(entry.total, limit),
            items=entry.page(page, limit),
            cursor=entry.cursor,
        )

    async def _get_or_build(self, signature: FilterSignature) -> CachedResultSet:
        entry = self._cache.get(signature)
        if entry is not None:
            return entry

        async with self._cache.build_lock(signature):
            # Another request may have built the view while we waited
            entry = self._cache.get(signature, record=False)
            if entry is not None:
                return entry

            logger.info("Building catalog view '%s'", signature.key)
            result = await self._accumulator.accumulate(
                signature.matches,
                in_stock_only=self._in_stock_only[signature.kind],
                size=signature.size,
                color=signature.color,
            )
            return await self._cache.store(signature, result.items, result.cursor)
