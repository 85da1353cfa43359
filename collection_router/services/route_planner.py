# collection_router/services/route_planner.py
import math
from typing import Dict, List, Mapping, Optional, Sequence

from collection_router.core.config import settings
from collection_router.core.errors import GraphNotBuiltError
from collection_router.core.logger import logger
from collection_router.models.routing import Node, PathResult, TourResult
from collection_router.services.graph_manager import (
    GraphGeneration,
    GraphManager,
    calculate_distance,
)


def path_distance(nodes: Mapping[str, Node], path: Sequence[str]) -> float:
    """
    Sum of Euclidean distances between consecutive nodes of `path`.
    """
    total = 0.0
    for u, v in zip(path[:-1], path[1:]):
        total += calculate_distance(nodes[u], nodes[v])
    return total


class RoutePlanner:
    """
    Greedy planning over the active graph generation:
    - nearest-neighbour visiting tour from a start node (usually the depot)
    - capacity-limited site selection by efficiency score

    Every call takes one generation reference up front and uses it
    throughout, so a concurrent rebuild never mixes two generations into one
    answer.
    """

    def __init__(
        self,
        graph_manager: GraphManager,
        *,
        epsilon: Optional[float] = None,
        base_bonus: Optional[float] = None,
        priority_boosts: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.graph_manager = graph_manager
        self.epsilon = settings.SELECTION_EPSILON if epsilon is None else epsilon
        if self.epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        self.base_bonus = settings.SELECTION_BASE_BONUS if base_bonus is None else base_bonus
        self.priority_boosts: Dict[str, float] = dict(
            settings.PRIORITY_BOOSTS if priority_boosts is None else priority_boosts
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def plan_tour(
        self,
        start: str,
        targets: Sequence[str],
        generation: Optional[GraphGeneration] = None,
    ) -> TourResult:
        """
        Build a visiting tour that starts and ends at `start` and passes
        through every reachable target.

        At each step the unvisited target with the shortest path from the
        current position is chosen. The direct distance is a lower bound of
        the path distance, so targets whose direct distance is not below the
        best path found so far are skipped without a path query. Only a
        strictly shorter path replaces the current best, so ties go to the
        target listed first.

        Targets with no path from `start` are reported in
        TourResult.unreachable and left out of the route.
        """
        gen = generation or self._generation()
        gen.node(start)
        for target in targets:
            gen.node(target)

        if not targets:
            return TourResult(
                start=start,
                version=gen.version,
                targets=[],
                route=[start, start],
                total_distance=0.0,
            )

        # Repeated ids are visited once
        unvisited: List[str] = list(dict.fromkeys(targets))
        route: List[str] = [start]
        unreachable: List[str] = []
        current = start

        while unvisited:
            nearest: Optional[str] = None
            nearest_path: Optional[PathResult] = None
            min_distance = math.inf
            current_node = gen.node(current)

            for target in unvisited:
                direct = calculate_distance(current_node, gen.node(target))
                if direct >= min_distance:
                    continue

                path = gen.shortest_path(current, target)
                if not path.reachable:
                    continue

                distance = path_distance(gen.nodes, path.nodes)
                if distance < min_distance:
                    min_distance = distance
                    nearest = target
                    nearest_path = path

            if nearest is None:
                # Everything left lies outside the start's component
                unreachable.extend(unvisited)
                logger.warning(
                    f"Tour from '{start}': {len(unvisited)} target(s) unreachable "
                    f"in generation {gen.version}: {', '.join(unvisited)}"
                )
                break

            route.extend(nearest_path.nodes[1:])
            current = nearest
            unvisited.remove(nearest)

        route.extend(gen.shortest_path(current, start).nodes[1:])

        total = path_distance(gen.nodes, route)
        logger.info(
            f"Tour planned from '{start}': {len(route)} stops, "
            f"distance={total:.6f} (generation {gen.version})"
        )

        return TourResult(
            start=start,
            version=gen.version,
            targets=list(targets),
            route=route,
            total_distance=total,
            unreachable=unreachable,
        )

    def select_optimal_centers(
        self,
        available: Sequence[str],
        max_count: int,
        ref_lat: float,
        ref_lng: float,
    ) -> List[str]:
        """
        Pick up to `max_count` sites for a reference position, best
        efficiency score first.

        score = 1 / (distance(ref, site) + epsilon) + priority_bonus(site)

        When no more than `max_count` distinct sites are available they are
        returned as given (minus repeats). Ties keep the earlier candidate.
        Ids missing from the graph raise UnknownNodeError in either case.
        """
        candidates: List[str] = list(dict.fromkeys(available))
        if max_count <= 0 or not candidates:
            return []

        gen = self._generation()
        # Unknown ids are rejected whether or not scoring is needed
        site_nodes = [gen.node(c) for c in candidates]
        if len(candidates) <= max_count:
            return candidates

        ref = Node(id="__reference__", lat=ref_lat, lng=ref_lng)
        scores = {node.id: self.efficiency_score(ref, node) for node in site_nodes}

        selected: List[str] = []
        remaining = list(candidates)

        while len(selected) < max_count and remaining:
            best = remaining[0]
            best_score = scores[best]
            for candidate in remaining[1:]:
                if scores[candidate] > best_score:
                    best = candidate
                    best_score = scores[candidate]

            selected.append(best)
            remaining.remove(best)

        logger.debug(f"Selected {len(selected)} of {len(candidates)} sites: {selected}")
        return selected

    def efficiency_score(self, ref: Node, site: Node) -> float:
        distance = calculate_distance(ref, site)
        return 1.0 / (distance + self.epsilon) + self.priority_bonus(site.id)

    def priority_bonus(self, site_id: str) -> float:
        return self.priority_boosts.get(site_id, self.base_bonus)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _generation(self) -> GraphGeneration:
        gen = self.graph_manager.current
        if gen.version == 0:
            raise GraphNotBuiltError()
        return gen
