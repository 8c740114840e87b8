import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from storefront.core.logging import setup_logging
from storefront.core.config import settings

setup_logging(debug=settings.debug)

from storefront.api.middleware.cors import setup_cors
from storefront.api.middleware.request_id import RequestIdMiddleware
from storefront.api.middleware.security_headers import SecurityHeadersMiddleware
from storefront.api.routes import cart, coupons, cron, health, orders, products, users, webhooks, wishlist
from storefront.api.routes.admin import (
    analytics as admin_analytics,
    coupons as admin_coupons,
    media as admin_media,
    orders as admin_orders,
    products as admin_products,
    users as admin_users,
)
from storefront.core.cache import close_redis
from storefront.services.scheduler import start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)

try:
    settings.validate_secrets()
except ValueError as e:
    logger.critical("Secret validation failed: %s", e)
    raise SystemExit(f"FATAL: {e}") from e


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    start_scheduler()
    yield
    stop_scheduler()
    await close_redis()


app = FastAPI(
    title="Storefront API",
    version="1.0.0",
    lifespan=lifespan,
)

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )

setup_cors(app)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

# Public routes
app.include_router(health.router, prefix="/api")
app.include_router(products.router, prefix="/api")
app.include_router(coupons.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(cart.router, prefix="/api")
app.include_router(wishlist.router, prefix="/api")
app.include_router(orders.router, prefix="/api")
app.include_router(webhooks.router, prefix="/api")
app.include_router(cron.router, prefix="/api")

# Brand dashboard and admin routes
app.include_router(admin_products.router, prefix="/api/admin")
app.include_router(admin_coupons.router, prefix="/api/admin")
app.include_router(admin_media.router, prefix="/api/admin")
app.include_router(admin_orders.router, prefix="/api/admin")
app.include_router(admin_analytics.router, prefix="/api/admin")
app.include_router(admin_users.router, prefix="/api/admin")

# Brand media library files are public, they back product imagery
_media_upload_dir = settings.upload_dir / "media"
_media_upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads/media", StaticFiles(directory=str(_media_upload_dir)), name="uploads-media")
