# src/storefront/api/dependencies.py
from functools import lru_cache

import httpx
from fastapi import Depends

from storefront.adapters.loyverse import LoyverseAdapter
from storefront.core.config import Settings, get_settings
from storefront.domain.ports import CatalogSourcePort
from storefront.services.backoff import BackoffPolicy
from storefront.services.catalog_accumulator import CatalogAccumulator
from storefront.services.catalog_service import CatalogService
from storefront.services.email_service import SubscriptionMailer
from storefront.services.inventory_service import InventoryService
from storefront.services.page_cache import CatalogPageCache


# Shared HTTP Client (Connection Pooling)
@lru_cache
def get_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": "StorefrontCatalogProxy/1.0"},
        follow_redirects=True,
    )


def get_catalog_source(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> CatalogSourcePort:
    return LoyverseAdapter(
        http_client=client,
        base_url=settings.loyverse_api_url,
        token=settings.loyverse_token,
        page_size=settings.upstream_page_size,
        timeout=settings.upstream_timeout_seconds,
    )


def get_inventory_service(
    source: CatalogSourcePort = Depends(get_catalog_source),
    settings: Settings = Depends(get_settings),
) -> InventoryService:
    return InventoryService(
        source=source,
        backoff=BackoffPolicy.from_settings(settings),
        chunk_size=settings.inventory_chunk_size,
        max_concurrency=settings.inventory_max_concurrency,
    )


# Singleton Page Cache (prozessweit)
_page_cache: CatalogPageCache | None = None


def get_page_cache(
    settings: Settings = Depends(get_settings),
) -> CatalogPageCache:
    global _page_cache
    if _page_cache is None:
        _page_cache = CatalogPageCache(
            max_entries=settings.catalog_cache_max_entries,
            ttl_seconds=settings.catalog_cache_ttl_seconds,
        )
    return _page_cache


def get_catalog_service(
    source: CatalogSourcePort = Depends(get_catalog_source),
    inventory: InventoryService = Depends(get_inventory_service),
    page_cache: CatalogPageCache = Depends(get_page_cache),
    settings: Settings = Depends(get_settings),
) -> CatalogService:
    return CatalogService(
        source=source,
        inventory=inventory,
        accumulator=CatalogAccumulator(source=source, inventory=inventory),
        page_cache=page_cache,
        listing_quota=settings.listing_quota,
        listing_in_stock_only=settings.listing_in_stock_only,
        catalog_in_stock_only=settings.catalog_in_stock_only,
        search_in_stock_only=settings.search_in_stock_only,
    )


def get_subscription_mailer(
    settings: Settings = Depends(get_settings),
) -> SubscriptionMailer:
    return SubscriptionMailer(settings=settings)
