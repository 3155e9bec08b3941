# comments in English; reST docstrings strict
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PageMeta:
    """
    Output pagination metadata.

    :param total_items: Rows matching the query across all pages.
    :type total_items: int
    :param item_count: Rows in the current page.
    :type item_count: int
    :param items_per_page: Requested page size.
    :type items_per_page: int
    :param total_pages: ``ceil(total_items / items_per_page)``.
    :type total_pages: int
    :param current_page: 1-based page number.
    :type current_page: int
    """

    total_items: int
    item_count: int
    items_per_page: int
    total_pages: int
    current_page: int

    def to_dict(self) -> dict[str, Any]:
        """Public (camelCase) representation used by the response envelope."""
        return {
            "totalItems": self.total_items,
            "itemCount": self.item_count,
            "itemsPerPage": self.items_per_page,
            "totalPages": self.total_pages,
            "currentPage": self.current_page,
        }


@dataclass(frozen=True, slots=True)
class PageOut(Generic[T]):
    """
    A page of DTOs with its metadata.

    :param items: DTOs in the current page.
    :type items: Sequence[T]
    :param meta: Pagination metadata.
    :type meta: PageMeta
    """

    items: Sequence[T]
    meta: PageMeta
