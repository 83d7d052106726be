from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from storyshelf.core.config import settings
from storyshelf.core.errors import install_error_handlers
from storyshelf.core.http_hardening import install_http_hardening
from storyshelf.core.logging import configure_logging
from storyshelf.api.public.router import router as public_router
from storyshelf.db.session import Base, engine
import storyshelf.models.all  # noqa: F401

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DATABASE_CREATE_ALL:
        Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)
install_http_hardening(app)
install_error_handlers(app)

app.include_router(public_router, prefix="/api/public")

@app.get("/", include_in_schema=False)
def landing():
    return JSONResponse({"service": settings.APP_NAME, "status": "ok"})

@app.get("/health")
def health():
    return {"status": "ok"}
