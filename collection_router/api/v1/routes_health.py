# collection_router/api/v1/routes_health.py
from fastapi import APIRouter

from collection_router.api.v1.routes_routing import graph_manager
from collection_router.core.config import settings

router = APIRouter(
    prefix="/health",
    tags=["health"],
)


@router.get("/", summary="Health check")
async def health_check():
    """
    Health check plus a snapshot of the active graph generation.
    """
    gen = graph_manager.current
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "graph": {
            "version": gen.version,
            "nodes": gen.node_count,
            "edges": gen.edge_count,
            "invalidation_mode": graph_manager.invalidation_mode,
            "cache": gen.path_cache.stats(),
        },
    }
