"""Page arithmetic for the repository list."""

from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import Sequence, TypeVar

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    per_page: int
    has_next: bool
    has_prev: bool
    start_index: int
    end_index: int

    def slice(self, items: Sequence[T]) -> list[T]:
        """Return the items on the current page; empty when the page is out of range."""

        if self.start_index < 0 or self.start_index >= self.end_index:
            return []
        return list(items[self.start_index : self.end_index])


def calculate_pagination(total_items: int, current_page: int, per_page: int) -> Pagination:
    """Compute page bounds for ``total_items``.

    ``current_page`` is not clamped; callers keep it within
    ``1..total_pages`` themselves.
    """

    if per_page <= 0:
        raise ValueError("per_page must be positive")
    if total_items < 0:
        raise ValueError("total_items must not be negative")

    total_pages = ceil(total_items / per_page)
    return Pagination(
        current_page=current_page,
        total_pages=total_pages,
        per_page=per_page,
        has_next=current_page < total_pages,
        has_prev=current_page > 1,
        start_index=(current_page - 1) * per_page,
        end_index=min(current_page * per_page, total_items),
    )


__all__ = ["Pagination", "calculate_pagination"]
