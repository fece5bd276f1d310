import asyncio
from collections.abc import Sequence
from unittest.mock import AsyncMock

import pytest
from fakes import FakeCatalogSource, make_item

from storefront.domain.models import InventoryLevel, InventoryPage, Item
from storefront.domain.ports import CatalogSourcePort, RateLimitedError, UpstreamFetchError
from storefront.services.backoff import BackoffPolicy
from storefront.services.inventory_service import InventoryService, chunked

_NO_WAIT = BackoffPolicy(max_attempts=5, base_delay=0, jitter=0)


def _levels(*pairs: tuple[str, float | None], cursor: str | None = None) -> InventoryPage:
    return InventoryPage(
        inventory_levels=[InventoryLevel(variant_id=v, in_stock=s) for v, s in pairs],
        cursor=cursor,
    )


@pytest.fixture
def source() -> AsyncMock:
    return AsyncMock(spec=CatalogSourcePort)


def test_chunked_splits_at_boundary() -> None:
    ids = [str(i) for i in range(251)]
    chunks = chunked(ids, 250)
    assert [len(c) for c in chunks] == [250, 1]


@pytest.mark.asyncio
async def test_sums_levels_across_locations(source: AsyncMock) -> None:
    source.fetch_inventory_page.return_value = _levels(("v1", 3), ("v1", 4), ("v2", None))
    service = InventoryService(source, _NO_WAIT)

    stock = await service.get_stock(["v1", "v2"])

    assert stock == {"v1": 7, "v2": 0}


@pytest.mark.asyncio
async def test_follows_inventory_cursor(source: AsyncMock) -> None:
    source.fetch_inventory_page.side_effect = [
        _levels(("v1", 2), cursor="next"),
        _levels(("v1", 5), ("v2", 1)),
    ]
    service = InventoryService(source, _NO_WAIT)

    stock = await service.get_stock(["v1", "v2"])

    assert stock == {"v1": 7, "v2": 1}
    assert source.fetch_inventory_page.await_count == 2
    assert source.fetch_inventory_page.await_args_list[1].kwargs["cursor"] == "next"


@pytest.mark.asyncio
async def test_chunk_boundary_issues_two_queries_and_sums_all() -> None:
    variant_ids = [f"v{i}" for i in range(251)]
    fake = FakeCatalogSource(stock={v: [1, 2] for v in variant_ids})
    service = InventoryService(fake, _NO_WAIT, chunk_size=250)

    stock = await service.get_stock(variant_ids)

    assert len(fake.inventory_calls) >= 2
    assert max(len(call) for call in fake.inventory_calls) <= 250
    assert len(stock) == 251
    assert all(value == 3 for value in stock.values())


@pytest.mark.asyncio
async def test_duplicate_ids_are_queried_once() -> None:
    fake = FakeCatalogSource(stock={"v1": [4]})
    service = InventoryService(fake, _NO_WAIT)

    stock = await service.get_stock(["v1", "v1"])

    assert stock == {"v1": 4}
    assert fake.inventory_calls == [["v1"]]


@pytest.mark.asyncio
async def test_empty_input_makes_no_upstream_call(source: AsyncMock) -> None:
    service = InventoryService(source, _NO_WAIT)

    assert await service.get_stock([]) == {}
    source.fetch_inventory_page.assert_not_awaited()


@pytest.mark.asyncio
async def test_rate_limited_six_times_gives_up_after_five_attempts(source: AsyncMock) -> None:
    source.fetch_inventory_page.side_effect = [RateLimitedError("loyverse")] * 6
    service = InventoryService(source, _NO_WAIT)

    stock = await service.get_stock(["v1"])

    assert stock == {}
    assert source.fetch_inventory_page.await_count == 5


@pytest.mark.asyncio
async def test_rate_limit_abort_keeps_partial_sums(source: AsyncMock) -> None:
    source.fetch_inventory_page.side_effect = [
        _levels(("v1", 6), cursor="page-2"),
        *[RateLimitedError("loyverse")] * 6,
    ]
    service = InventoryService(source, _NO_WAIT)

    stock = await service.get_stock(["v1", "v2"])

    assert stock == {"v1": 6}


@pytest.mark.asyncio
async def test_rate_limit_then_success_recovers(source: AsyncMock) -> None:
    source.fetch_inventory_page.side_effect = [
        RateLimitedError("loyverse"),
        RateLimitedError("loyverse"),
        _levels(("v1", 9)),
    ]
    service = InventoryService(source, _NO_WAIT)

    assert await service.get_stock(["v1"]) == {"v1": 9}


@pytest.mark.asyncio
async def test_upstream_error_aborts_only_that_chunk(source: AsyncMock) -> None:
    async def fetch(variant_ids: Sequence[str], cursor: str | None = None) -> InventoryPage:
        if "broken" in variant_ids:
            raise UpstreamFetchError("loyverse", "500", status_code=500)
        return _levels(*[(v, 2) for v in variant_ids])

    source.fetch_inventory_page.side_effect = fetch
    service = InventoryService(source, _NO_WAIT, chunk_size=1)

    stock = await service.get_stock(["ok-1", "broken", "ok-2"])

    assert stock == {"ok-1": 2, "ok-2": 2}


@pytest.mark.asyncio
async def test_negative_store_stock_is_clamped(source: AsyncMock) -> None:
    source.fetch_inventory_page.return_value = _levels(("v1", -3), ("v1", 1))
    service = InventoryService(source, _NO_WAIT)

    assert await service.get_stock(["v1"]) == {"v1": 0}


@pytest.mark.asyncio
async def test_concurrent_chunks_are_bounded() -> None:
    in_flight = 0
    peak = 0

    class SlowSource(FakeCatalogSource):
        async def fetch_inventory_page(
            self, variant_ids: Sequence[str], cursor: str | None = None
        ) -> InventoryPage:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return _levels(*[(v, 1) for v in variant_ids])

    service = InventoryService(SlowSource(), _NO_WAIT, chunk_size=1, max_concurrency=5)

    stock = await service.get_stock([f"v{i}" for i in range(20)])

    assert len(stock) == 20
    assert 1 < peak <= 5


@pytest.mark.asyncio
async def test_annotate_sets_variant_and_item_totals() -> None:
    fake = FakeCatalogSource(stock={"a-S": [2], "a-M": [3, 1]})
    service = InventoryService(fake, _NO_WAIT)
    item = Item.model_validate(make_item("a", sizes=("S", "M", "L")))

    [annotated] = await service.annotate([item])

    assert [v.total_stock for v in annotated.variants] == [2, 4, 0]
    assert annotated.total_stock == 6
    assert len(fake.inventory_calls) == 1
