"""
FastAPI application entrypoint for the TuneHub backend.

`create_app()` wires settings, the database, blob storage, middleware, error
handlers and routers. The module-level `app` is what uvicorn serves:

    uvicorn tunehub.api.main:app

Clients authenticate with `Authorization: Bearer <token>` from /auth/login.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from tunehub.api.config import Settings, configure_logging
from tunehub.api.db import Database
from tunehub.api.errors import install_error_handlers
from tunehub.api.routes_admin import router as admin_router
from tunehub.api.routes_albums import router as albums_router
from tunehub.api.routes_artist import router as artist_router
from tunehub.api.routes_auth import router as auth_router
from tunehub.api.routes_export import router as export_router
from tunehub.api.routes_follows import router as follows_router
from tunehub.api.routes_history import router as history_router
from tunehub.api.routes_likes import router as likes_router
from tunehub.api.routes_playlists import router as playlists_router
from tunehub.api.routes_recommendations import router as recommendations_router
from tunehub.api.routes_songs import router as songs_router
from tunehub.api.routes_upload import router as upload_router
from tunehub.api.routes_users import router as users_router
from tunehub.api.storage import BlobStorage, LocalBlobStorage

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Auth", "description": "Register/login and obtain JWT tokens."},
    {"name": "Users", "description": "Account self-service."},
    {"name": "Songs", "description": "Song catalog and play counting."},
    {"name": "Albums", "description": "Albums and their track lists."},
    {"name": "Playlists", "description": "User playlists with ordered entries."},
    {"name": "Likes", "description": "Liked songs."},
    {"name": "Follows", "description": "Following artists."},
    {"name": "History", "description": "Listening history and personal statistics."},
    {"name": "Recommendations", "description": "Personal, trending, similar and new songs."},
    {"name": "Artist", "description": "Artist self-service and analytics."},
    {"name": "Export", "description": "Data export (JSON, M3U, CSV)."},
    {"name": "Uploads", "description": "Audio/image uploads and media streaming."},
    {"name": "Admin", "description": "Platform administration."},
    {"name": "Health", "description": "Service health."},
]

_ROUTERS = (
    auth_router,
    users_router,
    songs_router,
    albums_router,
    playlists_router,
    likes_router,
    follows_router,
    history_router,
    recommendations_router,
    artist_router,
    export_router,
    upload_router,
    admin_router,
)


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    storage: Optional[BlobStorage] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: configuration; read from the environment when omitted.
        database: database handle; built from DATABASE_URL / POSTGRES_* when omitted.
        storage: blob storage; a LocalBlobStorage under settings.media_root when omitted.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    database = database or Database()
    storage = storage or LocalBlobStorage(settings.media_root, settings.media_base_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.auto_create_tables:
            database.create_all()
        yield
        database.dispose()

    app = FastAPI(
        title="TuneHub API",
        description=(
            "Music streaming backend: catalog, playlists, engagement, analytics and exports.\n\n"
            "Authentication: Bearer JWT (POST /auth/login)."
        ),
        version="1.0.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.storage = storage

    # credentials=true requires explicit origins (not '*') in browsers.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request: method=%s path=%s status=%s duration_ms=%.1f",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    install_error_handlers(app)

    for router in _ROUTERS:
        app.include_router(router)

    @app.get("/health", summary="Health check", description="Simple health check endpoint.", tags=["Health"])
    def health_check():
        """Return basic service health information."""
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


app = create_app()
