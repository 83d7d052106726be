from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storyshelf.api.public.common import run_cancellable
from storyshelf.core.deps import list_query_params
from storyshelf.db.session import get_db
from storyshelf.models.author import Author
from storyshelf.models.story import Story
from storyshelf.schemas.query import PagedResult, QueryRequest
from storyshelf.services.query_pipeline import QueryProfile, run_query_pipeline
from storyshelf.services.query_source import SqlAlchemyQuerySource
from storyshelf.services.shaping import FieldProjection
from storyshelf.services.sorting import SortMapping, SortMappingTable

router = APIRouter()

AUTHOR_LIST_PROFILE = QueryProfile.build(
    "authors",
    sort_table=SortMappingTable(
        [SortMapping("name"), SortMapping("created_at"), SortMapping("updated_at")],
        default="name",
        tiebreaker="author_id",
    ),
    projection=FieldProjection(
        {
            "id": lambda row: str(row.author_id),
            "name": "name",
            "bio": lambda row: row.bio or "",
            "created_at": "created_at",
            "updated_at": "updated_at",
            "total_stories": lambda row: int(row.total_stories or 0),
            "published_stories": lambda row: int(row.published_stories or 0),
        }
    ),
    search_fields=("name", "bio"),
)


def author_query_source(db: Session) -> SqlAlchemyQuerySource:
    total_stories = (
        select(func.count(Story.id)).where(Story.owner_id == Author.id).correlate(Author).scalar_subquery()
    )
    published_stories = (
        select(func.count(Story.id))
        .where(Story.owner_id == Author.id, Story.published_at.is_not(None))
        .correlate(Author)
        .scalar_subquery()
    )
    # Only authors with at least one published story are listed.
    q = db.query(
        Author.id.label("author_id"),
        Author.name.label("name"),
        Author.bio.label("bio"),
        Author.created_at.label("created_at"),
        Author.updated_at.label("updated_at"),
        total_stories.label("total_stories"),
        published_stories.label("published_stories"),
    ).filter(Author.stories.any(Story.published_at.is_not(None)))
    return SqlAlchemyQuerySource(
        q,
        {
            "author_id": Author.id,
            "name": Author.name,
            "bio": Author.bio,
            "created_at": Author.created_at,
            "updated_at": Author.updated_at,
        },
    )


@router.get("", response_model=PagedResult)
async def list_authors(
    request: Request,
    query: QueryRequest = Depends(list_query_params),
    db: Session = Depends(get_db),
):
    def _work(cancel):
        return run_query_pipeline(author_query_source(db), query, AUTHOR_LIST_PROFILE, cancel=cancel)

    return await run_cancellable(request, _work)
