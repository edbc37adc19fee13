# eyes/api/v1/router.py
# Master router -- registers all endpoint routers under /api/v1
# Each endpoint module registers its own router with its own prefix and tags

from fastapi import APIRouter

from eyes.api.v1.endpoints import (
    alerts,
    auth,
    chats,
    emotions,
    face,
    users,
)

api_router = APIRouter()

# Auth
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(face.router, prefix="/face", tags=["Face Enrollment"])

# Users & settings
api_router.include_router(users.router, prefix="/users", tags=["Users"])

# Messaging
api_router.include_router(chats.router, prefix="/chats", tags=["Chats"])

# Emotions & alerts
api_router.include_router(emotions.router, prefix="/emotions", tags=["Emotions"])
api_router.include_router(alerts.router, prefix="/alerts", tags=["Alerts"])
