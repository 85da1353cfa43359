# collection_router/main.py

from fastapi import FastAPI

from collection_router.api.v1 import routes_health, routes_records, routes_routing
from collection_router.core.config import settings
from collection_router.core.logger import logger, setup_logging


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Depot collection routing and record ordering API.",
    )

    # Routers
    app.include_router(routes_health.router, prefix="", tags=["health"])
    app.include_router(routes_routing.router, prefix="", tags=["routing"])
    app.include_router(routes_records.router, prefix="", tags=["records"])

    logger.info("{} {} ready ({})", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)
    return app


app = create_app()
