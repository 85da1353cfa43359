# collection_router/api/v1/routes_routing.py
import math
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from collection_router.core.errors import (
    DuplicateSiteError,
    GraphNotBuiltError,
    RoutingEngineError,
    UnknownNodeError,
)
from collection_router.core.logger import logger
from collection_router.models.routing import (
    BuildRequest,
    BuildResponse,
    CollectionRequest,
    CollectionResponse,
    DistancesResponse,
    NearestResponse,
    PathResponse,
    SelectionRequest,
    SelectionResponse,
    TourRequest,
    TourResponse,
)
from collection_router.services.graph_manager import GraphManager
from collection_router.services.routing_service import RoutingService

router = APIRouter(
    prefix="/route",
    tags=["routing"],
)

# Single shared instances
graph_manager = GraphManager()
routing_service = RoutingService(graph_manager=graph_manager)


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


_STATUS_CODES = (
    (UnknownNodeError, 404),
    (DuplicateSiteError, 422),
    (GraphNotBuiltError, 409),
)


def _http_error(exc: RoutingEngineError) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@router.post(
    "/build",
    response_model=BuildResponse,
    summary="Rebuild the site graph",
)
async def build_graph(request: BuildRequest) -> BuildResponse:
    """
    Rebuild the graph from the given sites.

    Inside the validity window the current graph is kept unless force=true.
    """
    try:
        rebuilt = routing_service.build(request.sites, depot=request.depot, force=request.force)
    except DuplicateSiteError as exc:
        logger.warning("Rejected build request: {}", exc)
        raise _http_error(exc) from exc

    gen = graph_manager.current
    return BuildResponse(
        rebuilt=rebuilt,
        version=gen.version,
        node_count=gen.node_count,
        edge_count=gen.edge_count,
    )


@router.get(
    "/distances/{source}",
    response_model=DistancesResponse,
    summary="Shortest distances from one node",
)
async def get_distances(source: str) -> DistancesResponse:
    gen = graph_manager.current
    try:
        if gen.version == 0:
            raise GraphNotBuiltError()
        distances = gen.distances(source)
    except (UnknownNodeError, GraphNotBuiltError) as exc:
        raise _http_error(exc) from exc

    return DistancesResponse(
        source=source,
        version=gen.version,
        distances={node: _finite_or_none(d) for node, d in distances.items()},
    )


@router.get(
    "/path",
    response_model=PathResponse,
    summary="Shortest path between two nodes",
)
async def get_path(source: str, destination: str) -> PathResponse:
    """
    Unreachable destinations are reported with reachable=false and an empty
    node list, not as an error.
    """
    try:
        result = graph_manager.shortest_path(source, destination)
    except (UnknownNodeError, GraphNotBuiltError) as exc:
        raise _http_error(exc) from exc

    return PathResponse(
        source=result.source,
        destination=result.destination,
        nodes=result.nodes,
        distance=_finite_or_none(result.distance),
        reachable=result.reachable,
    )


@router.get(
    "/nearest",
    response_model=NearestResponse,
    summary="Nearest node within a radius",
)
async def get_nearest(
    lat: float,
    lng: float,
    max_distance: float = Query(..., gt=0),
) -> NearestResponse:
    try:
        node = graph_manager.nearest(lat, lng, max_distance)
    except GraphNotBuiltError as exc:
        raise _http_error(exc) from exc
    return NearestResponse(node=node)


@router.post(
    "/tour",
    response_model=TourResponse,
    summary="Plan a greedy visiting tour",
)
async def plan_tour(request: TourRequest) -> TourResponse:
    try:
        tour, summary = routing_service.plan_tour(request.start, request.targets)
    except (UnknownNodeError, GraphNotBuiltError) as exc:
        raise _http_error(exc) from exc
    return TourResponse(tour=tour, summary=summary)


@router.post(
    "/select",
    response_model=SelectionResponse,
    summary="Select sites by efficiency score",
)
async def select_centers(request: SelectionRequest) -> SelectionResponse:
    try:
        selected = routing_service.planner.select_optimal_centers(
            request.available,
            request.max_count,
            request.ref_lat,
            request.ref_lng,
        )
    except (UnknownNodeError, GraphNotBuiltError) as exc:
        raise _http_error(exc) from exc
    return SelectionResponse(selected=selected)


@router.post(
    "/collection",
    response_model=CollectionResponse,
    summary="Plan the depot collection route over the site directory",
)
async def collection_route(request: CollectionRequest) -> CollectionResponse:
    """
    Build (if needed) and plan a tour from the depot through every site.

    Uses the default barangay site directory when no sites are sent.
    """
    try:
        return routing_service.compute_collection_route(request)
    except (UnknownNodeError, DuplicateSiteError, GraphNotBuiltError) as exc:
        raise _http_error(exc) from exc
