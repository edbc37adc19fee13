# eyes/core/config.py
# All application settings loaded from environment variables / .env file
# In production: values come from the deployment environment
# In development: loaded from .env file (store_backend=memory needs no Firebase project)

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single source of truth for all EYES configuration.
    pydantic-settings automatically reads from environment variables.
    Variable names are case-insensitive.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_env: str = "development"
    app_name: str = "EYES"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "http://localhost:8081,http://localhost:19006"

    # Realtime database
    store_backend: str = "firebase"  # firebase | memory
    firebase_credentials_path: str = "./service-account.json"
    firebase_database_url: str = ""

    # The one classroom the app knows about
    class_id: str = "Class-A"

    # Identity provider (Clerk)
    identity_frontend_api_url: str = ""
    identity_jwt_public_key: str = ""
    identity_jwt_issuer: str = ""
    identity_jwt_algorithm: str = "RS256"

    # Expo push gateway
    expo_push_url: str = "https://exp.host/--/api/v2/push/send"
    push_timeout_seconds: float = 10.0

    # Face enrollment
    face_min_area_ratio: float = 0.2

    # Emotion scanning
    default_scan_interval_seconds: int = 30
    alert_emotions: str = "Angry,Sad"
    alert_watcher_enabled: bool = False

    @property
    def cors_origins(self) -> List[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def alert_emotion_set(self) -> set:
        """Emotion types that raise an alert when recorded."""
        return {e.strip() for e in self.alert_emotions.split(",") if e.strip()}


@lru_cache
def get_settings() -> Settings:
    """
    Returns a cached Settings instance.
    Use as a FastAPI dependency: settings = Depends(get_settings)
    Or import directly:         from eyes.core.config import settings
    """
    return Settings()


# Module-level singleton -- import this directly in most places
settings = get_settings()
