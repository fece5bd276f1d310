# src/storefront/domain/models.py
from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Catalog: Item / Variant
# Upstream fields the proxy does not interpret are passed through unchanged.
# ---------------------------------------------------------------------------


class Variant(BaseModel):
    variant_id: str
    option1_value: str | None = None
    option2_value: str | None = None
    option3_value: str | None = None
    total_stock: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="allow")

    @property
    def option_values(self) -> list[str]:
        return [
            value
            for value in (self.option1_value, self.option2_value, self.option3_value)
            if value is not None
        ]


class Item(BaseModel):
    """
    A catalog product as delivered by Loyverse, optionally annotated with stock.
    """

    id: str
    item_name: str = ""
    category_id: str | None = None
    color: str | None = None
    variants: list[Variant] = Field(default_factory=list)
    total_stock: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="allow")

    @property
    def variant_ids(self) -> list[str]:
        return [variant.variant_id for variant in self.variants]

    @property
    def is_in_stock(self) -> bool:
        return (self.total_stock or 0) > 0

    def with_stock(self, stock: dict[str, int]) -> Item:
        """Returns a copy with total_stock set on every variant and on the item."""
        variants = [
            variant.model_copy(update={"total_stock": stock.get(variant.variant_id, 0)})
            for variant in self.variants
        ]
        total = sum(variant.total_stock or 0 for variant in variants)
        return self.model_copy(update={"variants": variants, "total_stock": total})


class InventoryLevel(BaseModel):
    variant_id: str
    store_id: str | None = None
    in_stock: float | None = None

    model_config = ConfigDict(extra="allow")


class ItemsPage(BaseModel):
    items: list[Item] = Field(default_factory=list)
    cursor: str | None = None


class InventoryPage(BaseModel):
    inventory_levels: list[InventoryLevel] = Field(default_factory=list)
    cursor: str | None = None


# ---------------------------------------------------------------------------
# FilterSignature: identifies one logical view of the catalog
# ---------------------------------------------------------------------------


class ViewKind(StrEnum):
    LISTING = "listing"
    CATALOG = "catalog"
    SEARCH = "search"


class FilterSignature(BaseModel):
    kind: ViewKind
    category: str | None = None
    term: str | None = None
    color: str | None = None
    size: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> str:
        """Readable label of the view. The cache keys on the signature itself."""
        if self.kind is ViewKind.SEARCH:
            return f"{self.kind}:{self.term or ''}"
        return f"{self.kind}:{self.category or ''}|{self.color or ''}|{self.size or ''}"

    def matches(self, item: Item) -> bool:
        """Primary predicate applied while draining upstream pages."""
        if self.kind is ViewKind.CATALOG:
            return item.category_id == self.category
        if self.kind is ViewKind.SEARCH:
            return (self.term or "").lower() in item.item_name.lower()
        return True


# ---------------------------------------------------------------------------
# API Request/Response Schemas
# ---------------------------------------------------------------------------


class CatalogPage(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    items: list[Item]

    model_config = ConfigDict(populate_by_name=True)


class SearchPage(CatalogPage):
    cursor: str | None = None


class EmailSubscription(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class EmailSubscriptionResult(BaseModel):
    email: str
    mgs: str = "success"
