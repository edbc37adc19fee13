# eyes/main.py
# EYES FastAPI application entry point
#
# Startup:  logging, realtime database handle, optional alert watcher
# Shutdown: stop the alert watcher subscription
# Routes:   /health, /api/v1/* (all endpoints via master router)

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eyes.api.v1.router import api_router
from eyes.core.config import settings
from eyes.core.errors import EyesError
from eyes.core.logging_config import configure_logging
from eyes.db.session import check_store_connection, init_store
from eyes.services.alert_watcher import AlertWatcher
from eyes.services.notification_service import get_push_sender

logger = logging.getLogger("eyes")

# pydantic prefixes messages raised from field validators
VALUE_ERROR_PREFIX = "Value error, "


# ── Lifespan ──────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s v%s [%s]", settings.app_name, settings.app_version, settings.app_env)

    store = init_store()
    if check_store_connection():
        logger.info("Realtime database: OK")
    else:
        logger.warning("Realtime database unreachable -- check FIREBASE_DATABASE_URL")

    watcher = None
    if settings.alert_watcher_enabled:
        watcher = AlertWatcher(store, get_push_sender())
        watcher.start()

    yield  # App runs here

    if watcher is not None:
        watcher.stop()
    logger.info("Shutting down")


# ── App Instance ──────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "EYES -- classroom emotion monitoring for teachers and parents. "
        "Enrollment, chat, emotion history and alerts."
    ),
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
    debug=settings.debug,
)


# ── CORS ──────────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Errors ────────────────────────────────────────────────────────────────────

@app.exception_handler(EyesError)
async def eyes_error_handler(request: Request, exc: EyesError):
    """Domain errors become {"detail": {"title", "message"}} -- the app's dialog text."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"title": exc.title, "message": exc.message}},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Request body errors use the same dialog shape; the first failing field wins."""
    first = exc.errors()[0] if exc.errors() else {}
    message = first.get("msg", "Invalid request.")
    if message.startswith(VALUE_ERROR_PREFIX):
        message = message[len(VALUE_ERROR_PREFIX):]
    else:
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        if field:
            message = f"{field}: {message}"
    return JSONResponse(
        status_code=422,
        content={"detail": {"title": "Invalid Input", "message": message}},
    )


# ── Routes ────────────────────────────────────────────────────────────────────

app.include_router(api_router, prefix="/api/v1")


# ── Health Check ──────────────────────────────────────────────────────────────

@app.get("/health", tags=["Health"], include_in_schema=False)
def health_check():
    """Returns 200 while the app runs; database status included for observability."""
    store_ok = check_store_connection()
    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
            "services": {
                "database": "ok" if store_ok else "unavailable",
            },
        },
    )


# ── Root ──────────────────────────────────────────────────────────────────────

@app.get("/", include_in_schema=False)
def root():
    return JSONResponse(
        content={
            "message": "EYES API",
            "docs": "/api/docs",
            "health": "/health",
        }
    )
