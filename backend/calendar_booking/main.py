import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from sqlalchemy import text

from .config import Settings, get_settings
from .database import create_db_engine, create_session_factory, init_db
from .errors import register_error_handlers
from .middleware import audit_middleware
from .redis_client import create_redis_client
from .routers import admin, public, realtime
from .services import EventBroadcaster, RowLockRegistry
from .services.events import redis_relay_loop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    engine = create_db_engine(settings.resolved_database_url)
    init_db(engine)
    app.state.db_engine = engine
    app.state.session_factory = create_session_factory(engine)

    app.state.locks = RowLockRegistry(timeout=settings.lock_timeout_seconds)

    redis = create_redis_client(settings.redis_url)
    app.state.redis = redis
    app.state.broadcaster = EventBroadcaster(redis=redis, queue_size=settings.subscriber_queue_size)

    relay_task = None
    if settings.redis_url:
        relay_task = asyncio.create_task(
            redis_relay_loop(settings.redis_url, app.state.broadcaster)
        )

    logger.info(f"Startup complete (redis={'on' if redis else 'off'})")
    try:
        yield
    finally:
        if relay_task is not None:
            relay_task.cancel()
            try:
                await relay_task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Redis relay task ended with an error")
        app.state.broadcaster.close()
        if redis is not None:
            redis.close()
        engine.dispose()
        logger.info("Shutdown complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Slot Calendar Booking API", lifespan=lifespan)
    app.state.settings = settings

    app.middleware("http")(audit_middleware)
    register_error_handlers(app)

    app.include_router(public.router)
    app.include_router(admin.router)
    app.include_router(realtime.router)

    @app.get("/health")
    def health(request: Request):
        database_ok = True
        try:
            with request.app.state.db_engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Health check: database unreachable")
            database_ok = False

        redis_ok = None
        if request.app.state.redis is not None:
            try:
                redis_ok = bool(request.app.state.redis.ping())
            except Exception:
                logger.exception("Health check: redis unreachable")
                redis_ok = False

        return {
            "status": "ok" if database_ok and redis_ok is not False else "degraded",
            "database": database_ok,
            "redis": redis_ok,
        }

    return app


app = create_app()
