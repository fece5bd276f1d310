# src/storefront/adapters/loyverse.py
from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from storefront.core.metrics import EXTERNAL_API_COUNT, EXTERNAL_API_DURATION
from storefront.domain.models import InventoryLevel, InventoryPage, Item, ItemsPage
from storefront.domain.ports import (
    CatalogSourcePort,
    ItemNotFoundError,
    RateLimitedError,
    UpstreamFetchError,
)

logger = logging.getLogger(__name__)

_SOURCE = "loyverse"


def _parse_retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


class LoyverseAdapter(CatalogSourcePort):
    """
    Adapter für die Loyverse API (Artikel und Lagerbestände).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        token: str,
        page_size: int = 250,
        timeout: float = 15.0,
    ) -> None:
        self._client = http_client
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        self._page_size = page_size
        self._timeout = timeout

    async def fetch_items_page(self, cursor: str | None = None) -> ItemsPage:
        params: dict[str, Any] = {"limit": self._page_size}
        if cursor:
            params["cursor"] = cursor
        data = await self._get("/items", params)

        items = []
        for raw_item in data.get("items") or []:
            try:
                items.append(Item.model_validate(raw_item))
            except ValidationError:
                logger.warning("Skipping malformed item in Loyverse response", exc_info=True)
        return ItemsPage(items=items, cursor=data.get("cursor") or None)

    async def fetch_item(self, item_id: str) -> Item:
        try:
            data = await self._get(f"/items/{item_id}")
        except UpstreamFetchError as e:
            if e.status_code == 404:
                raise ItemNotFoundError(item_id) from e
            raise
        try:
            return Item.model_validate(data)
        except ValidationError as e:
            raise UpstreamFetchError(_SOURCE, f"Malformed item '{item_id}'") from e

    async def fetch_inventory_page(
        self, variant_ids: Sequence[str], cursor: str | None = None
    ) -> InventoryPage:
        params: dict[str, Any] = {
            "variant_ids": ",".join(variant_ids),
            "limit": self._page_size,
        }
        if cursor:
            params["cursor"] = cursor
        data = await self._get("/inventory", params)

        levels = []
        for raw_level in data.get("inventory_levels") or []:
            try:
                levels.append(InventoryLevel.model_validate(raw_level))
            except ValidationError:
                logger.warning("Skipping malformed inventory level", exc_info=True)
        return InventoryPage(inventory_levels=levels, cursor=data.get("cursor") or None)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        started = time.perf_counter()
        try:
            response = await self._client.get(
                url, params=params, headers=self._headers, timeout=self._timeout
            )
        except httpx.RequestError as e:
            EXTERNAL_API_COUNT.labels(source=_SOURCE, status="error").inc()
            raise UpstreamFetchError(_SOURCE, f"Connection error: {e}") from e
        finally:
            EXTERNAL_API_DURATION.labels(source=_SOURCE).observe(time.perf_counter() - started)

        EXTERNAL_API_COUNT.labels(source=_SOURCE, status=str(response.status_code)).inc()

        if response.status_code == 429:
            raise RateLimitedError(_SOURCE, retry_after=_parse_retry_after(response))
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(_SOURCE, str(e), status_code=response.status_code) from e

        data = response.json()
        if not isinstance(data, dict):
            raise UpstreamFetchError(_SOURCE, f"Unexpected response body from {path}")
        return data
