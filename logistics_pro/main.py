import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from logistics_pro.api import router as api_router
from logistics_pro.api import health_routes
from logistics_pro.core.config import Settings, get_settings
from logistics_pro.core.errors import register_exception_handlers
from logistics_pro.core.logging_config import setup_logging
from logistics_pro.db import Database

logger = logging.getLogger(__name__)


async def seed_super_admin(database: Database, settings: Settings):
    from logistics_pro.crud.user import ensure_super_admin

    if not (settings.super_admin_phone and settings.super_admin_password):
        logger.info("No SUPER_ADMIN_PHONE/SUPER_ADMIN_PASSWORD set; skipping admin seed")
        return

    async with database.session_factory() as db:
        await ensure_super_admin(
            db, settings.super_admin_phone, settings.super_admin_password, settings.super_admin_name
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    database: Database = app.state.db
    settings: Settings = app.state.settings

    await database.wait_until_ready(settings.db_connect_attempts, settings.db_connect_delay_seconds)
    if settings.auto_create_tables:
        await database.create_tables()
        logger.info("Database schema ensured")
    await seed_super_admin(database, settings)

    logger.info("🚀 %s ready", settings.app_name)
    yield

    await database.dispose()
    logger.info("Database connections released")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database or Database(settings.database_url, echo=settings.db_echo)

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_routes.router)
    app.include_router(api_router, prefix=settings.api_prefix)

    # ✅ Swagger Bearer token support for "Authorize" button
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        openapi_schema = get_openapi(
            title=settings.app_name,
            version="1.0.0",
            description="Shipments, driver tracking, QR scans, complaints and admin dashboard.",
            routes=app.routes,
        )
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
        }
        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi
    return app


app = create_app()
