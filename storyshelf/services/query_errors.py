from __future__ import annotations

from dataclasses import dataclass, field

INVALID_PAGE = "Query.InvalidPage"
INVALID_PAGE_SIZE = "Query.InvalidPageSize"
INVALID_SORT_FIELD = "Query.InvalidSortField"
INVALID_SORT_DIRECTION = "Query.InvalidSortDirection"
INVALID_SHAPE_FIELD = "Query.InvalidShapeField"
SEARCH_TERM_TOO_LONG = "Query.SearchTermTooLong"
HARMFUL_SEARCH_TERM = "Query.HarmfulSearchTerm"
STORE_UNAVAILABLE = "Query.StoreUnavailable"
CANCELLED = "Query.Cancelled"


@dataclass(frozen=True)
class QueryError:
    code: str
    description: str
    fields: tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict:
        return {"code": self.code, "description": self.description, "fields": list(self.fields)}


def _plural(names: tuple[str, ...], one: str, many: str) -> str:
    return one if len(names) == 1 else many


def invalid_page(page: int) -> QueryError:
    return QueryError(INVALID_PAGE, f"Page must be greater than 0 (got {page}).", ("page",))


def invalid_page_size(page_size: int, max_page_size: int) -> QueryError:
    return QueryError(
        INVALID_PAGE_SIZE,
        f"Page size must be between 1 and {max_page_size} (got {page_size}).",
        ("page_size",),
    )


def invalid_sort_fields(names: tuple[str, ...], allowed: tuple[str, ...]) -> QueryError:
    return QueryError(
        INVALID_SORT_FIELD,
        f"Sort {_plural(names, 'field', 'fields')} {', '.join(names)} "
        f"{_plural(names, 'is', 'are')} not valid. Allowed: {', '.join(allowed)}.",
        names,
    )


def invalid_sort_directions(tokens: tuple[str, ...]) -> QueryError:
    return QueryError(
        INVALID_SORT_DIRECTION,
        f"Sort direction must be either 'asc' or 'desc' ({', '.join(tokens)}).",
        tokens,
    )


def invalid_shape_fields(names: tuple[str, ...]) -> QueryError:
    return QueryError(
        INVALID_SHAPE_FIELD,
        f"Data shaping {_plural(names, 'field', 'fields')}: {', '.join(names)} "
        f"{_plural(names, 'is', 'are')} not valid.",
        names,
    )


def search_term_too_long(length: int, max_length: int) -> QueryError:
    return QueryError(
        SEARCH_TERM_TOO_LONG,
        f"Search term must be {max_length} characters or less (got {length}).",
        ("search",),
    )


def harmful_search_term() -> QueryError:
    return QueryError(HARMFUL_SEARCH_TERM, "Search term contains potentially harmful content.", ("search",))


class QueryPipelineError(Exception):
    """Base class for every failure raised while answering a list query."""


class QueryValidationError(QueryPipelineError):
    """The request was malformed. Raised before the store is touched."""

    def __init__(self, errors: list[QueryError] | tuple[QueryError, ...]):
        self.errors = tuple(errors)
        super().__init__("; ".join(e.description for e in self.errors) or "Invalid query")

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(e.code for e in self.errors)

    def error_for(self, code: str) -> QueryError | None:
        for error in self.errors:
            if error.code == code:
                return error
        return None


class QueryStoreError(QueryPipelineError):
    """The data store failed. Never retried here."""

    code = STORE_UNAVAILABLE


class QueryCancelled(QueryPipelineError):
    code = CANCELLED
