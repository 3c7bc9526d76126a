"""
Application factory.

Builds the FastAPI app, mounts every router and seeds the permission
tables when the process starts.  The schema itself comes from the
Alembic migrations (`alembic upgrade head`), never create_all.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wms.controllers import (
    admin_controller,
    auth_controller,
    company_controller,
    delivery_controller,
    financial_controller,
    location_controller,
    message_controller,
    order_controller,
    product_controller,
    report_controller,
)
from wms.core.config import settings
from wms.core.database import SessionLocal, engine
from wms.models import Base  # noqa: F401
from wms.rbac.permission_seed import seed

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

ROUTERS = (
    auth_controller.router,
    admin_controller.router,
    company_controller.router,
    location_controller.router,
    product_controller.router,
    order_controller.router,
    message_controller.router,
    delivery_controller.router,
    financial_controller.router,
    report_controller.router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with SessionLocal() as session:
        await seed(session)
    logger.info("%s started", settings.APP_NAME)
    yield
    await engine.dispose()
    logger.info("Database engine disposed")


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        # Report downloads name their file here.
        expose_headers=["Content-Disposition"],
    )
    for router in ROUTERS:
        app.include_router(router)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
