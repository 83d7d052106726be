from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storyshelf.api.public.common import run_cancellable
from storyshelf.core.deps import list_query_params
from storyshelf.db.session import get_db
from storyshelf.models.author import Author
from storyshelf.models.chapter import Chapter
from storyshelf.models.story import Story
from storyshelf.schemas.query import PagedResult, QueryRequest
from storyshelf.services.query_pipeline import QueryProfile, run_query_pipeline
from storyshelf.services.query_source import SqlAlchemyQuerySource
from storyshelf.services.shaping import FieldProjection
from storyshelf.services.sorting import SortMapping, SortMappingTable

router = APIRouter()

PUBLISHED_STORY_PROFILE = QueryProfile.build(
    "published_stories",
    sort_table=SortMappingTable(
        [SortMapping("published_at"), SortMapping("title"), SortMapping("updated_at")],
        default="published_at desc",
        tiebreaker="story_id",
    ),
    projection=FieldProjection(
        {
            "story_id": lambda row: str(row.story_id),
            "title": "title",
            "description": "description",
            "published_at": "published_at",
            "updated_at": "updated_at",
            "chapter_count": lambda row: int(row.chapter_count or 0),
            "author_id": lambda row: str(row.author_id),
            "author_name": "author_name",
        }
    ),
    search_fields=("title", "description", "author_name"),
)


def published_story_query_source(db: Session, author_id: uuid.UUID | None = None) -> SqlAlchemyQuerySource:
    chapter_count = (
        select(func.count(Chapter.id))
        .where(Chapter.story_id == Story.id)
        .correlate(Story)
        .scalar_subquery()
    )
    q = (
        db.query(
            Story.id.label("story_id"),
            Story.title.label("title"),
            Story.description.label("description"),
            Story.published_at.label("published_at"),
            Story.updated_at.label("updated_at"),
            chapter_count.label("chapter_count"),
            Author.id.label("author_id"),
            Author.name.label("author_name"),
        )
        .join(Author, Author.id == Story.owner_id)
        .filter(Story.published_at.is_not(None))
    )
    if author_id is not None:
        q = q.filter(Story.owner_id == author_id)
    return SqlAlchemyQuerySource(
        q,
        {
            "story_id": Story.id,
            "title": Story.title,
            "description": Story.description,
            "published_at": Story.published_at,
            "updated_at": Story.updated_at,
            "author_name": Author.name,
        },
    )


@router.get("/published", response_model=PagedResult)
async def list_published_stories(
    request: Request,
    author_id: uuid.UUID | None = Query(None),
    query: QueryRequest = Depends(list_query_params),
    db: Session = Depends(get_db),
):
    def _work(cancel):
        return run_query_pipeline(
            published_story_query_source(db, author_id),
            query,
            PUBLISHED_STORY_PROFILE,
            cancel=cancel,
        )

    return await run_cancellable(request, _work)
