# bingo/settings.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel
import os


class Settings(BaseModel):
    APP_NAME: str = "anime-bingo-server"
    # Namespace for every stored key
    APP_ID: str = "default-anime-bingo-app"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = ""
    LOG_DIR: Optional[str] = None

    # WebSocket origin policy (comma-separated)
    WS_ALLOWED_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173,null"
    # Dev helper: allow any private LAN IP on port 5173
    WS_ALLOW_LAN_ORIGINS: bool = True

    # AniList
    ANILIST_API_URL: str = "https://graphql.anilist.co"
    ANILIST_TIMEOUT_SEC: float = 10.0
    ANILIST_PAGE_SIZE: int = 18


def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "anime-bingo-server"),
        APP_ID=os.getenv("APP_ID", "default-anime-bingo-app"),
        REDIS_URL=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=int(os.getenv("PORT", "8000")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        LOG_FORMAT=os.getenv("LOG_FORMAT", ""),
        LOG_DIR=os.getenv("LOG_DIR") or None,

        WS_ALLOWED_ORIGINS=os.getenv(
            "WS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,null",
        ),
        WS_ALLOW_LAN_ORIGINS=os.getenv("WS_ALLOW_LAN_ORIGINS", "true").lower()
        in ("1", "true", "yes", "y", "on"),

        ANILIST_API_URL=os.getenv("ANILIST_API_URL", "https://graphql.anilist.co"),
        ANILIST_TIMEOUT_SEC=float(os.getenv("ANILIST_TIMEOUT_SEC", "10")),
        ANILIST_PAGE_SIZE=int(os.getenv("ANILIST_PAGE_SIZE", "18")),
    )
