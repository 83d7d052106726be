from fastapi import APIRouter
from storyshelf.api.public import authors, stories, tags
from storyshelf.schemas.query import QueryErrorResponse

router = APIRouter(responses={400: {"model": QueryErrorResponse, "description": "Invalid list query"}})
router.include_router(tags.router, prefix="/tags", tags=["Tags"])
router.include_router(stories.router, prefix="/stories", tags=["Stories"])
router.include_router(authors.router, prefix="/authors", tags=["Authors"])
