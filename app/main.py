import logging
from fastapi import FastAPI
from app.core.config import settings
from app.core.database import engine, Base
from app.core.errors import register_error_handlers
from app.models import comment, draft_token  # noqa: F401 (tables)
from app.routers import health, drafts, posts
from app.services.live_sync import ChangeFeed

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Notion Blog API",
    version="0.1.0"
)

# Flux des changements de commentaires (abonnements des pages draft)
app.state.change_feed = ChangeFeed()

register_error_handlers(app)

# Routes
app.include_router(health.router, prefix="/health")
app.include_router(drafts.router)
app.include_router(posts.router)
