"""
SceneIt API — FastAPI application entry point.

Routers are registered here. Each service lives in sceneit/api/.
"""
import logging

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from sceneit.api import media, playlists, profiles, ratings, reviews, shows, users
from sceneit.core.config import settings
from sceneit.core.security import Identity
from sceneit.deps.auth import get_current_identity

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SceneIt API",
    description="Backend for the SceneIt movie and TV tracking app.",
    version="1.0.0",
    docs_url="/docs" if settings.ENABLE_DOCS else None,
    redoc_url="/redoc" if settings.ENABLE_DOCS else None,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Validation errors → 400 ───────────────────────────────────────────────────
@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in err.get("loc", ()) if part != "body") for err in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Missing or invalid fields.", "fields": [f for f in fields if f]},
    )


# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(profiles.router,  prefix="/profiles",    tags=["profiles"])
app.include_router(shows.router,     prefix="/shows",       tags=["shows"])
app.include_router(playlists.router, prefix="/playlists",   tags=["playlists"])
app.include_router(ratings.router,   prefix="/ratings",     tags=["ratings"])
app.include_router(media.router,     prefix="/media",       tags=["media"])
app.include_router(reviews.router,   prefix="/api/reviews", tags=["reviews"])
app.include_router(users.router,     prefix="/api/users",   tags=["users"])


# ── Health checks ─────────────────────────────────────────────────────────────
@app.get("/", response_class=PlainTextResponse, tags=["system"])
def root() -> str:
    return "Backend server ran successfully!"


@app.get("/health", tags=["system"])
def health_check() -> dict:
    """Liveness probe. Returns 200 when the server is up."""
    return {"ok": True, "version": app.version, "env": settings.APP_ENV}


@app.get("/private/ping", tags=["system"])
def private_ping(identity: Identity = Depends(get_current_identity)) -> dict:
    """Auth-gated smoke test."""
    return {
        "ok": True,
        "user": {"id": identity.subject_id, "email": identity.email},
    }


def run() -> None:
    """Console entry point: serve on $PORT."""
    uvicorn.run("sceneit.main:app", host="0.0.0.0", port=settings.PORT, reload=settings.is_dev)
