from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from movers.api import cur_version
from movers.api.routers import public_routers
from movers.cache._cache import redis_holder
from movers.common.constants import CORS_ALLOW_HEADERS, REQUEST_ID_HEADER
from movers.common.custom_exceptions import register_all_exceptions
from movers.common.logging_setup import get_logger, setup_logging, shutdown_logging
from movers.config.admin_config import admin_config
from movers.config.settings import get_settings
from movers.db.connection import database, init_db
from movers.metrics.custom_instrumentator import instrumentator
from movers.middlewares.request_id_middleware import RequestIdMiddleware

logger = get_logger("movers.app")


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    setup_logging()
    if admin_config.AUTO_CREATE_TABLES:
        await init_db()
    logger.info("app.startup", extra={"env": admin_config.ENV, "service": admin_config.SERVICE_NAME})

    try:
        yield
    finally:
        # new requests are no longer accepted at this point
        await database.dispose()
        await redis_holder.reset()
        logger.info("app.shutdown")
        shutdown_logging()


def create_app():
    app = FastAPI(
        title="Packers & Movers booking backend",
        version=cur_version,
        lifespan=app_lifespan)

    app.include_router(public_routers)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().CORS_ORIGINS,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
        expose_headers=[REQUEST_ID_HEADER, "Retry-After"],
    )
    app.add_middleware(RequestIdMiddleware)
    register_all_exceptions(app)

    if admin_config.METRICS_ENABLED:
        instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    return app


app = create_app()
