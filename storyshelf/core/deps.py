from fastapi import Query
from storyshelf.core.config import settings
from storyshelf.schemas.query import QueryRequest


def _first_given(*values):
    for value in values:
        if value is not None:
            return value
    return None


def list_query_params(
    page: int | None = Query(None, description="1-based page number"),
    page_size: int | None = Query(None, description="Items per page"),
    page_size_camel: int | None = Query(None, alias="pageSize", include_in_schema=False),
    search: str | None = Query(None, description="Case-insensitive substring search"),
    search_short: str | None = Query(None, alias="Q", include_in_schema=False),
    sort: str | None = Query(None, description="Comma separated `field[ asc|desc]` list"),
    fields: str | None = Query(None, description="Comma separated list of fields to return"),
) -> QueryRequest:
    # Range checks are left to the query pipeline so all errors come back at once.
    return QueryRequest(
        page=_first_given(page, settings.PAGINATION_DEFAULT_PAGE),
        page_size=_first_given(page_size, page_size_camel, settings.PAGINATION_DEFAULT_PAGE_SIZE),
        search=_first_given(search, search_short),
        sort=sort,
        fields=fields,
    )
