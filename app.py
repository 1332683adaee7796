from contextlib import asynccontextmanager
from typing import Optional

import redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend import RedisBackend
from broadcaster import EventBroadcaster
from constants import CORS_ORIGINS, LOG_LEVEL, LOG_FILE
from errors import StoreError
from logging_config import get_logger, setup_logging
from registry import SubscriptionRegistry
from routers.messages import messages_router
from routers.rooms import rooms_router
from routers.subscribe import subscribe_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        app.state.backend.ping()
        logger.info("Redis backend reachable")
    except StoreError as e:
        logger.error(f"Redis backend unreachable at startup: {e}")
        raise
    yield
    # Unwind live sessions so their handlers close the sockets
    evicted = app.state.registry.evict_all("server shutdown")
    logger.info(f"Shutting down, cancelled {evicted} live sessions")


def create_app(redis_client: Optional[redis.Redis] = None) -> FastAPI:
    """Build the application with its own store, registry and broadcaster."""
    app = FastAPI(title="RoomRelay", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    registry = SubscriptionRegistry()
    app.state.backend = RedisBackend(redis_client)
    app.state.registry = registry
    app.state.broadcaster = EventBroadcaster(registry)

    app.include_router(rooms_router)
    app.include_router(messages_router)
    app.include_router(subscribe_router)

    @app.get("/health")
    async def health():
        try:
            redis_ok = app.state.backend.ping()
        except StoreError:
            redis_ok = False
        return {"status": "ok" if redis_ok else "degraded", "redis": redis_ok}

    logger.info("FastAPI application initialized")
    return app


# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)

# The Redis client connects lazily, so importing this module needs no server
app = create_app()
