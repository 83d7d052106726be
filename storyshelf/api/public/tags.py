from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from storyshelf.api.public.common import run_cancellable
from storyshelf.core.deps import list_query_params
from storyshelf.db.session import get_db
from storyshelf.models.story import Story, story_tags
from storyshelf.models.tag import Tag
from storyshelf.schemas.query import PagedResult, QueryRequest
from storyshelf.services.query_pipeline import QueryProfile, run_query_pipeline
from storyshelf.services.query_source import SqlAlchemyQuerySource
from storyshelf.services.shaping import FieldProjection
from storyshelf.services.sorting import SortMapping, SortMappingTable

router = APIRouter()


def _display_format(row) -> str:
    if row.subcategory is None:
        return f"{row.category}:{row.value}"
    return f"{row.category}:{row.subcategory}:{row.value}"


TAG_LIST_PROFILE = QueryProfile.build(
    "tags",
    sort_table=SortMappingTable(
        [
            SortMapping("category"),
            SortMapping("value"),
            SortMapping("usage", "story_count", reverse=True),
            SortMapping("created_at"),
        ],
        default="category",
        tiebreaker="tag_id",
    ),
    projection=FieldProjection(
        {
            "tag_id": lambda row: str(row.tag_id),
            "category": "category",
            "subcategory": "subcategory",
            "value": "value",
            "created_at": "created_at",
            "story_count": lambda row: int(row.story_count or 0),
            "display_format": _display_format,
        }
    ),
    search_fields=("category", "subcategory", "value"),
)


def tag_query_source(db: Session, category: str | None = None) -> SqlAlchemyQuerySource:
    # Only published stories count towards usage.
    usage = func.count(Story.id)
    q = (
        db.query(
            Tag.id.label("tag_id"),
            Tag.category.label("category"),
            Tag.subcategory.label("subcategory"),
            Tag.value.label("value"),
            Tag.created_at.label("created_at"),
            usage.label("story_count"),
        )
        .outerjoin(story_tags, story_tags.c.tag_id == Tag.id)
        .outerjoin(Story, and_(Story.id == story_tags.c.story_id, Story.published_at.is_not(None)))
        .group_by(Tag.id, Tag.category, Tag.subcategory, Tag.value, Tag.created_at)
    )
    category_filter = str(category or "").strip()
    if category_filter:
        q = q.filter(Tag.category.icontains(category_filter, autoescape=True))
    return SqlAlchemyQuerySource(
        q,
        {
            "tag_id": Tag.id,
            "category": Tag.category,
            "subcategory": Tag.subcategory,
            "value": Tag.value,
            "created_at": Tag.created_at,
            "story_count": usage,
        },
    )


@router.get("", response_model=PagedResult)
async def list_tags(
    request: Request,
    category: str | None = Query(None, max_length=50),
    query: QueryRequest = Depends(list_query_params),
    db: Session = Depends(get_db),
):
    def _work(cancel):
        return run_query_pipeline(tag_query_source(db, category), query, TAG_LIST_PROFILE, cancel=cancel)

    return await run_cancellable(request, _work)
