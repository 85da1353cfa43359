# collection_router/models/routing.py

import math
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Site(BaseModel):
    """
    One entry of the site directory supplied by the caller.

    Only id/lat/lng reach the graph; status, guidelines and name are carried
    through for presentation.
    """
    id: str
    lat: float
    lng: float
    status: str = "Open"
    guidelines: str = "General recycling accepted"
    name: str = "Unknown"


class Node(BaseModel):
    """
    Graph node. Coordinates are planar, not geodesic.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    lat: float
    lng: float


class Edge(BaseModel):
    """
    Directed edge; weight is the Euclidean distance between both endpoints.
    """
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    weight: float


class PathResult(BaseModel):
    """
    Result of a shortest-path query.

    Unreachable destinations are a normal outcome, not an error:
    reachable=False, nodes=[] and distance=inf.
    """
    source: str
    destination: str
    nodes: List[str] = []
    distance: float = math.inf
    reachable: bool = False

    @classmethod
    def unreachable(cls, source: str, destination: str) -> "PathResult":
        return cls(source=source, destination=destination)


class TourResult(BaseModel):
    """
    Greedy nearest-neighbour tour, starting and ending at `start`.

    `unreachable` lists the targets that no path could reach; they are not
    part of `route`.
    """
    start: str
    # Graph generation the tour was planned on
    version: int = 0
    targets: List[str]
    route: List[str]
    total_distance: float
    unreachable: List[str] = []


class RouteLeg(BaseModel):
    """
    One hop of a route between two consecutive nodes.
    """
    index: int
    from_node: str
    to_node: str
    distance: float


class RouteSummary(BaseModel):
    """
    Presentation-side summary of a tour.

    `approx_km` and `approx_minutes` use a fixed degrees-to-km multiplier and
    a flat minutes-per-km rate; they are display estimates only.
    """
    route: List[str]
    legs: List[RouteLeg]
    total_distance: float
    stops: int
    approx_km: float
    approx_minutes: int
    unreachable: List[str] = []


# ---------------------------------------------------------------------- #
# API bodies
# ---------------------------------------------------------------------- #


class BuildRequest(BaseModel):
    """
    Request body for POST /route/build.
    """
    sites: List[Site]
    depot: Optional[Node] = None
    force: bool = False


class BuildResponse(BaseModel):
    rebuilt: bool
    version: int
    node_count: int
    edge_count: int


class DistancesResponse(BaseModel):
    """
    Distance map from one source. Unreachable nodes map to null.
    """
    source: str
    version: int
    distances: Dict[str, Optional[float]]


class PathResponse(BaseModel):
    source: str
    destination: str
    nodes: List[str]
    distance: Optional[float] = None
    reachable: bool


class NearestResponse(BaseModel):
    node: Optional[Node] = None


class TourRequest(BaseModel):
    """
    Request body for POST /route/tour. `start` defaults to the depot.
    """
    start: Optional[str] = None
    targets: List[str] = []


class TourResponse(BaseModel):
    tour: TourResult
    summary: RouteSummary


class SelectionRequest(BaseModel):
    available: List[str]
    max_count: int
    ref_lat: float
    ref_lng: float


class SelectionResponse(BaseModel):
    selected: List[str]


class CollectionRequest(BaseModel):
    """
    Request body for POST /route/collection.

    When `sites` is omitted the default site directory is used.
    """
    sites: Optional[List[Site]] = None
    force: bool = False
    # Only route to sites whose status is in this list (all when empty)
    statuses: List[str] = Field(default_factory=list)


class CollectionResponse(BaseModel):
    sites: List[Site]
    summary: RouteSummary
    warnings: List[str] = []
