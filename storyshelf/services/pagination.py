from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from storyshelf.services.query_errors import QueryError, invalid_page, invalid_page_size
from storyshelf.services.query_source import QuerySource

MAX_PAGE_SIZE = 200


def total_pages(total_count: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    return (max(total_count, 0) + page_size - 1) // page_size


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def validate_pagination(page: int, page_size: int, *, max_page_size: int = MAX_PAGE_SIZE) -> list[QueryError]:
    errors: list[QueryError] = []
    if page < 1:
        errors.append(invalid_page(page))
    if page_size < 1 or page_size > max_page_size:
        errors.append(invalid_page_size(page_size, max_page_size))
    return errors


@dataclass(frozen=True)
class PageSlice:
    rows: list[Any]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_count, self.page_size)


def paginate(
    source: QuerySource,
    page: int,
    page_size: int,
    *,
    checkpoint: Callable[[], None] | None = None,
) -> PageSlice:
    """Count the filtered source, then take one page of it.

    Pages past the end come back empty with the real totals; the page number
    is never clamped. ``checkpoint`` runs before each store call.
    """
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be validated before paginating")
    if checkpoint is not None:
        checkpoint()
    total = source.count()
    offset = page_offset(page, page_size)
    rows: list[Any] = []
    if offset < total:
        if checkpoint is not None:
            checkpoint()
        rows = source.slice(offset, page_size)
    return PageSlice(rows=rows, total_count=total, page=page, page_size=page_size)
