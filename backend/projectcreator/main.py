"""Project Creator API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ProjectCreatorError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and the shared Nextcloud client are initialized in the lifespan
      and closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Platform stored on app.state: one httpx connection pool per process
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from projectcreator.api.error_handlers import register_error_handlers
from projectcreator.api.routes import (
    deck_templates, health, project_content, projects, timeline, users, webhooks,
)
from projectcreator.config import get_settings
from projectcreator.infrastructure.database import init_db
from projectcreator.infrastructure.observability import setup_logging
from projectcreator.infrastructure.platform_factory import (
    build_platform, create_nextcloud_client,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_auto_create:
        await manager.create_all()

    client = create_nextcloud_client(settings)
    app.state.platform = build_platform(client, settings.nextcloud_admin_group)
    logger.info("Project Creator API started")
    yield
    logger.info("Project Creator API shutting down")
    await client.aclose()
    await manager.dispose()


app = FastAPI(
    title="Project Creator API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(projects.router)
app.include_router(project_content.router)
app.include_router(timeline.router)
app.include_router(users.router)
app.include_router(deck_templates.router)
app.include_router(webhooks.router)

register_error_handlers(app)
