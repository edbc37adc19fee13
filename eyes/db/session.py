# eyes/db/session.py
# Realtime database handle management
#
# Two backends:
#   firebase → Firebase Realtime Database (FIREBASE_DATABASE_URL + service account)
#   memory   → in-process tree, for local development without a Firebase project
#
# FastAPI endpoints get the store via: Depends(get_store)

import logging
import threading
from typing import Optional

from eyes.core.config import settings
from eyes.db.store import FirebaseStore, MemoryStore, Store

logger = logging.getLogger("eyes.db")

_store: Optional[Store] = None
_lock = threading.Lock()


def _build_store() -> Store:
    """Create the backend named by STORE_BACKEND."""
    backend = settings.store_backend.lower()
    if backend == "memory":
        logger.info("Using in-memory realtime store")
        return MemoryStore()
    if backend == "firebase":
        logger.info("Connecting to Firebase Realtime Database at %s", settings.firebase_database_url)
        return FirebaseStore(
            credentials_path=settings.firebase_credentials_path,
            database_url=settings.firebase_database_url,
        )
    raise RuntimeError(f"Unknown STORE_BACKEND '{settings.store_backend}' (expected firebase or memory)")


def init_store(store: Optional[Store] = None) -> Store:
    """Install the process-wide store. Called once from the app lifespan."""
    global _store
    with _lock:
        _store = store or _build_store()
        return _store


# ── FastAPI Dependency ────────────────────────────────────────────────────────
def get_store() -> Store:
    """
    Dependency injected into every FastAPI endpoint that needs the database.

    Usage:
        @router.get("/example")
        def example(store: Store = Depends(get_store)):
            ...
    """
    if _store is None:
        return init_store()
    return _store


# ── Health Check Helper ───────────────────────────────────────────────────────
def check_store_connection() -> bool:
    """Used by /health to verify database connectivity."""
    try:
        return get_store().ping()
    except Exception as exc:
        logger.warning("Store connection check failed: %s", exc)
        return False
