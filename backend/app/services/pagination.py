from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * max(limit, 0)


def paginate(items: Sequence[T], page: int, limit: int) -> list[T]:
    # Non-positive limits give an empty page rather than an error.
    if limit <= 0:
        return []
    start = page_offset(page, limit)
    return list(items[start : start + limit])


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def has_more(page: int, total: int, limit: int) -> bool:
    return page < total_pages(total, limit)
