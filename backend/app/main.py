"""
Diary Calendar Backend: FastAPI entry point.

Endpoints:
- /api/diary         : entry list / create / update
- /api/v1/auth/*     : sign-up, sign-in, sign-out via the identity provider
- /api/v1/views/*    : calendar, month list, detail, navigation, edit form
- GET /health        : health check
"""
from __future__ import annotations

import importlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import API_PREFIX, APP_NAME, APP_VERSION, CORS_ORIGINS, DEBUG_MODE

logging.basicConfig(
    level=logging.DEBUG if DEBUG_MODE else logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Diary backend starting...")

    from app.core.db import get_session_provider
    session_provider = app.dependency_overrides.get(get_session_provider, get_session_provider)()
    session_provider.start()
    app.state.session_provider = session_provider

    yield

    session_provider.close()
    logger.info("👋 Backend shut down")


app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors: 400, not 422."""
    logger.warning(f"⚠️  Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError):
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]


# ── REST API routers ─────────────────────────────────────────────

for module_path, prefix, tag in [
    ("app.api.diary", "/api/diary", "diary"),
    ("app.api.auth", f"{API_PREFIX}/auth", "auth"),
    ("app.api.views", f"{API_PREFIX}/views", "views"),
]:
    mod = importlib.import_module(module_path)
    app.include_router(mod.router, prefix=prefix, tags=[tag])
    logger.info("✅ %s router mounted at %s", tag, prefix)


@app.get("/health")
async def health():
    session_provider = getattr(app.state, "session_provider", None)
    return {
        "status": "ok",
        "service": "diary-calendar-backend",
        "session": "started" if session_provider is not None and session_provider.started else "stopped",
    }
