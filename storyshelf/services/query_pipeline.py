from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Sequence

from storyshelf.core.config import settings
from storyshelf.schemas.query import PagedResult, QueryRequest
from storyshelf.services.pagination import paginate, validate_pagination
from storyshelf.services.query_errors import QueryCancelled, QueryError, QueryValidationError
from storyshelf.services.query_source import QuerySource
from storyshelf.services.searching import apply_search, validate_search
from storyshelf.services.shaping import FieldProjection, shape_data
from storyshelf.services.sorting import SortMappingTable, resolve_sort_keys, sort_mappings, validate_sort

_LOG = logging.getLogger("storyshelf.query")


@dataclass(frozen=True)
class QueryProfile:
    """Everything a list endpoint declares once about its result type.

    The sort table lives in the ``sort_mappings`` registry under ``name``.
    """

    name: str
    projection: FieldProjection
    search_fields: tuple[str, ...] = ()

    @property
    def sort_table(self) -> SortMappingTable:
        return sort_mappings.get(self.name)

    @classmethod
    def build(
        cls,
        name: str,
        *,
        sort_table: SortMappingTable,
        projection: FieldProjection,
        search_fields: Sequence[str] = (),
    ) -> "QueryProfile":
        sort_mappings.register(name, sort_table)
        return cls(name=name, projection=projection, search_fields=tuple(search_fields))


def collect_query_errors(
    request: QueryRequest,
    profile: QueryProfile,
    *,
    max_page_size: int | None = None,
    max_search_length: int | None = None,
) -> list[QueryError]:
    errors: list[QueryError] = []
    errors.extend(
        validate_pagination(
            request.page,
            request.page_size,
            max_page_size=max_page_size or settings.PAGINATION_MAX_PAGE_SIZE,
        )
    )
    errors.extend(validate_search(request.search, max_length=max_search_length or settings.SEARCH_MAX_LENGTH))
    errors.extend(validate_sort(profile.sort_table, request.sort))
    errors.extend(profile.projection.validate(request.fields))
    return errors


def validate_query_request(
    request: QueryRequest,
    profile: QueryProfile,
    *,
    max_page_size: int | None = None,
    max_search_length: int | None = None,
) -> None:
    errors = collect_query_errors(
        request,
        profile,
        max_page_size=max_page_size,
        max_search_length=max_search_length,
    )
    if errors:
        _LOG.info("query_rejected profile=%s codes=%s", profile.name, ",".join(e.code for e in errors))
        raise QueryValidationError(errors)


def _checkpoint(cancel: threading.Event | None, profile: QueryProfile):
    def _check() -> None:
        if cancel is not None and cancel.is_set():
            _LOG.info("query_cancelled profile=%s", profile.name)
            raise QueryCancelled(f"{profile.name} query was cancelled")

    return _check


def run_query_pipeline(
    source: QuerySource,
    request: QueryRequest,
    profile: QueryProfile,
    *,
    cancel: threading.Event | None = None,
    max_page_size: int | None = None,
    max_search_length: int | None = None,
) -> PagedResult:
    """Validate, then search -> sort -> paginate -> shape.

    Validation runs before the store is touched. When ``cancel`` is set the
    call raises ``QueryCancelled`` and nothing partial is returned. A SQL source
    also interrupts the statement that is running at that moment.
    """
    validate_query_request(
        request,
        profile,
        max_page_size=max_page_size,
        max_search_length=max_search_length,
    )
    check = _checkpoint(cancel, profile)
    check()

    filtered = apply_search(source.bind_cancel(cancel), request.search, profile.search_fields)
    ordered = filtered.order_by(resolve_sort_keys(profile.sort_table, request.sort))
    page = paginate(ordered, request.page, request.page_size, checkpoint=check)
    check()

    items = [shape_data(profile.projection.project(row), request.fields) for row in page.rows]
    total_pages = page.total_pages
    return PagedResult(
        items=items,
        total_count=page.total_count,
        current_page=page.page,
        page_size=page.page_size,
        total_pages=total_pages,
        has_next_page=page.page < total_pages,
        has_previous_page=page.page > 1,
    )
