from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional


class QueryRequest(BaseModel):
    """Paging, search, sort and shaping parameters of one list call.

    Values are stored as received; range checks happen in
    ``validate_query_request`` so every problem is reported together.
    """

    model_config = ConfigDict(frozen=True)

    page: int = 1
    page_size: int = 50
    search: Optional[str] = None
    sort: Optional[str] = None
    fields: Optional[str] = None


class PagedResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: List[dict[str, Any]] = Field(default_factory=list)
    total_count: int
    current_page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class QueryErrorItem(BaseModel):
    code: str
    description: str
    fields: List[str] = Field(default_factory=list)


class QueryErrorResponse(BaseModel):
    detail: str
    errors: List[QueryErrorItem] = Field(default_factory=list)
