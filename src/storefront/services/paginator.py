from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def total_pages(total: int, limit: int) -> int:
    if limit < 1:
        raise ValueError("limit must be >= 1")
    return math.ceil(total / limit)


def paginate(items: Sequence[T], page: int, limit: int) -> list[T]:
    """Returns the 1-based ``page`` of ``items``; pages past the end are empty."""
    if page < 1:
        raise ValueError("page must be >= 1")
    start = (page - 1) * limit
    return list(items[start : start + limit])


def split_pages(items: Sequence[T], limit: int) -> dict[int, list[T]]:
    """Builds every page 1..total_pages in one pass."""
    return {
        page: paginate(items, page, limit)
        for page in range(1, total_pages(len(items), limit) + 1)
    }
