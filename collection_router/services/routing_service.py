# collection_router/services/routing_service.py

from time import perf_counter
from typing import Iterable, List, Mapping, Optional, Tuple

from collection_router.core.config import settings
from collection_router.core.errors import GraphNotBuiltError
from collection_router.core.logger import logger
from collection_router.core.sites import DEFAULT_SITES
from collection_router.models.routing import (
    CollectionRequest,
    CollectionResponse,
    Node,
    RouteLeg,
    RouteSummary,
    Site,
    TourResult,
)
from collection_router.services.graph_manager import GraphManager, calculate_distance
from collection_router.services.route_planner import RoutePlanner


class RoutingService:
    """
    High-level collection routing service:
    - (re)builds the site graph when needed
    - plans the depot tour over the requested sites
    - turns tours into per-leg summaries for display
    """

    def __init__(
        self,
        graph_manager: GraphManager | None = None,
        planner: RoutePlanner | None = None,
    ) -> None:
        self.graph_manager = graph_manager or GraphManager()
        self.planner = planner or RoutePlanner(self.graph_manager)
        logger.info("RoutingService initialised (graph will be built on demand).")

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def build(self, sites: Iterable[Site], depot: Optional[Node] = None, force: bool = False) -> bool:
        return self.graph_manager.build(sites, depot=depot, force=force)

    def plan_tour(self, start: Optional[str], targets: List[str]) -> Tuple[TourResult, RouteSummary]:
        # Plan and summarise on the same generation
        gen = self.graph_manager.current
        if gen.version == 0:
            raise GraphNotBuiltError()
        tour = self.planner.plan_tour(start or gen.depot_id, targets, generation=gen)
        return tour, self.summarize(tour, gen.nodes)

    def compute_collection_route(self, request: CollectionRequest) -> CollectionResponse:
        """
        Main entry point for the /route/collection endpoint.

        1. Pick the sites (request or default directory, optionally by status).
        2. Ensure the graph is built for them.
        3. Plan a depot tour through every selected site.
        4. Summarise legs, distance and display estimates.
        """
        t0 = perf_counter()

        sites = list(request.sites) if request.sites is not None else list(DEFAULT_SITES)
        if request.statuses:
            wanted = set(request.statuses)
            sites = [s for s in sites if s.status in wanted]

        logger.info(
            "Received collection route request for {} site(s) (force={})",
            len(sites),
            request.force,
        )

        # 1) Ensure graph
        t_graph0 = perf_counter()
        self.graph_manager.build(sites, force=request.force)
        t_graph1 = perf_counter()
        logger.info("Graph ensured for request in {:.2f} ms", (t_graph1 - t_graph0) * 1000.0)

        # 2) Tour over the sites known to the active generation
        gen = self.graph_manager.current
        targets = [s.id for s in sites if s.id in gen.nodes]

        warnings: List[str] = []
        missing = [s.id for s in sites if s.id not in gen.nodes]
        if missing:
            # Inside the validity window the graph may predate the site list
            warnings.append(
                f"{len(missing)} site(s) not in graph generation {gen.version}, which is "
                f"still inside its {self.graph_manager.validity_s:.0f} s validity window; "
                f"rebuild with force=true to include: {', '.join(missing)}"
            )

        t_tour0 = perf_counter()
        tour, summary = self.plan_tour(gen.depot_id, targets)
        t_tour1 = perf_counter()
        logger.info(
            "Tour planned with {} stops in {:.2f} ms",
            len(tour.route),
            (t_tour1 - t_tour0) * 1000.0,
        )

        if tour.unreachable:
            warnings.append(
                f"{len(tour.unreachable)} site(s) unreachable within connection threshold "
                f"{self.graph_manager.connection_threshold}: {', '.join(tour.unreachable)}"
            )

        logger.info("Total collection routing time: {:.2f} ms", (perf_counter() - t0) * 1000.0)

        return CollectionResponse(sites=sites, summary=summary, warnings=warnings)

    def summarize(self, tour: TourResult, nodes: Optional[Mapping[str, Node]] = None) -> RouteSummary:
        """
        Per-leg breakdown of a tour plus display estimates in km / minutes.

        `nodes` should come from the generation the tour was planned on;
        defaults to the active one.
        """
        if nodes is None:
            nodes = self.graph_manager.current.nodes
        legs: List[RouteLeg] = []
        total = 0.0

        for i, (u, v) in enumerate(zip(tour.route[:-1], tour.route[1:]), start=1):
            dist = calculate_distance(nodes[u], nodes[v])
            total += dist
            legs.append(RouteLeg(index=i, from_node=u, to_node=v, distance=dist))

        approx_km = total * settings.KM_PER_UNIT

        return RouteSummary(
            route=list(tour.route),
            legs=legs,
            total_distance=total,
            stops=max(len(tour.route) - 1, 0),
            approx_km=approx_km,
            approx_minutes=int(approx_km * settings.MINUTES_PER_KM),
            unreachable=list(tour.unreachable),
        )
