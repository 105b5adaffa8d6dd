# bingo/main.py
from __future__ import annotations

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from bingo.anilist.client import AniListClient
from bingo.domain.common.locks import GameLocks
from bingo.settings import get_settings
from bingo.store.redis_repo import RedisRepo
from bingo.transport.anilist import router as anilist_router
from bingo.transport.games import router as games_router
from bingo.transport.ws import router as ws_router
from bingo.transport.ws_manager import WSManager
from bingo.util.log import setup_logging

logger = structlog.get_logger()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.APP_NAME)
    allowed_origins = [o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()]
    if "null" not in allowed_origins:
        allowed_origins.append("null")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def _startup() -> None:
        log_file = setup_logging(
            level=settings.LOG_LEVEL,
            log_format=settings.LOG_FORMAT,
            log_dir=settings.LOG_DIR,
        )
        r = Redis.from_url(settings.REDIS_URL, decode_responses=False)
        app.state.redis = r
        app.state.repo = RedisRepo(r, app_id=settings.APP_ID)
        app.state.wsman = WSManager()
        app.state.locks = GameLocks()
        app.state.anilist = AniListClient(
            settings.ANILIST_API_URL,
            timeout=settings.ANILIST_TIMEOUT_SEC,
            page_size=settings.ANILIST_PAGE_SIZE,
        )
        await r.ping()
        logger.info("server started", app_id=settings.APP_ID, log_file=str(log_file) if log_file else None)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.anilist.aclose()
        r: Redis = app.state.redis
        await r.close()

    @app.get("/health")
    async def health():
        r: Redis = app.state.redis
        pong = await r.ping()
        return {"ok": True, "redis": str(pong), "locks": app.state.locks.active()}

    app.include_router(ws_router)
    app.include_router(games_router)
    app.include_router(anilist_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("bingo.main:app", host=settings.HOST, port=settings.PORT)
