# marketplace/api/__init__.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.api.routers import carts, orders
from marketplace.api.routers.health import router as health_router
from marketplace.domain.exceptions import MarketplaceError
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_CATEGORY = {
    "validation": 400,
    "not_found": 404,
    "authorization": 403,
    "conflict": 409,
    "transient": 503,
}


async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    status_code = STATUS_BY_CATEGORY.get(exc.category, 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(
        title="Marketplace Cart & Order Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(MarketplaceError, marketplace_error_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app
