# src/storefront/domain/ports.py
from abc import ABC, abstractmethod
from collections.abc import Sequence

from storefront.domain.models import InventoryPage, Item, ItemsPage


class CatalogSourcePort(ABC):
    """
    Abstrakte Schnittstelle zur Katalog-/Inventar-Quelle.
    Services kennen ausschließlich dieses Interface.
    """

    @abstractmethod
    async def fetch_items_page(self, cursor: str | None = None) -> ItemsPage:
        """
        Ruft eine Seite des Artikelkatalogs ab. Ein leerer Cursor in der
        Antwort bedeutet, dass keine weiteren Seiten existieren.

        Raises:
            UpstreamFetchError: Bei Kommunikationsproblemen mit der externen API.
        """
        ...

    @abstractmethod
    async def fetch_item(self, item_id: str) -> Item:
        """
        Raises:
            ItemNotFoundError: Wenn der Artikel nicht existiert.
            UpstreamFetchError: Bei Kommunikationsproblemen mit der externen API.
        """
        ...

    @abstractmethod
    async def fetch_inventory_page(
        self, variant_ids: Sequence[str], cursor: str | None = None
    ) -> InventoryPage:
        """
        Ruft eine Seite Lagerbestände für die angegebenen Varianten ab.

        Raises:
            RateLimitedError: Bei HTTP 429.
            UpstreamFetchError: Bei allen anderen Fehlern.
        """
        ...


# ---------------------------------------------------------------------------
# Custom Domain Exceptions
# ---------------------------------------------------------------------------


class UpstreamFetchError(Exception):
    def __init__(self, source: str, detail: str, status_code: int | None = None):
        super().__init__(f"Upstream error from '{source}': {detail}")
        self.source = source
        self.detail = detail
        self.status_code = status_code


class RateLimitedError(UpstreamFetchError):
    def __init__(self, source: str, retry_after: float | None = None):
        super().__init__(source, "rate limited", status_code=429)
        self.retry_after = retry_after


class ItemNotFoundError(Exception):
    def __init__(self, item_id: str):
        super().__init__(f"Item '{item_id}' not found")
        self.item_id = item_id


class EmailDeliveryError(Exception):
    def __init__(self, detail: str):
        super().__init__(f"E-mail delivery failed: {detail}")
        self.detail = detail
