# collection_router/services/path_cache.py
import math
from threading import Lock
from typing import Dict, Tuple

import networkx as nx

from collection_router.core.errors import UnknownNodeError
from collection_router.core.logger import logger
from collection_router.models.routing import PathResult


class PathCache:
    """
    Memoized single-source shortest paths over one graph generation.

    Two independent memo tables are kept, as the queries are answered by
    independent searches:
      - source -> {node: distance}  (inf for unreachable nodes)
      - (source, destination) -> PathResult

    Both use networkx's Dijkstra on the 'weight' edge attribute. Callers
    always get copies, so the memoized values stay identical for the life
    of the generation.

    A cache belongs to exactly one generation and is dropped together with
    it; it is never partially invalidated.
    """

    def __init__(self, graph: nx.DiGraph, version: int = 0) -> None:
        self.graph = graph
        self.version = version
        self._distances: Dict[str, Dict[str, float]] = {}
        self._paths: Dict[Tuple[str, str], PathResult] = {}
        self._lock = Lock()
        self._hits = 0
        self._misses = 0

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def distances(self, source: str) -> Dict[str, float]:
        """
        Shortest distance from `source` to every node of the generation.
        """
        self._require_node(source)

        with self._lock:
            cached = self._distances.get(source)
            if cached is not None:
                self._hits += 1
                return dict(cached)
            self._misses += 1

        lengths = nx.single_source_dijkstra_path_length(self.graph, source, weight="weight")
        dist = {node: float(lengths.get(node, math.inf)) for node in self.graph}

        with self._lock:
            # A concurrent reader may have filled the slot first; keep theirs
            cached = self._distances.setdefault(source, dist)

        logger.debug(
            f"Distances from '{source}' computed (generation {self.version}, "
            f"{len(lengths)} reachable nodes)"
        )
        return dict(cached)

    def shortest_path(self, source: str, destination: str) -> PathResult:
        """
        Shortest path from `source` to `destination`, inclusive of both ends.

        An unreachable destination yields PathResult(reachable=False, nodes=[]),
        never a partial or destination-only path.
        """
        self._require_node(source)
        self._require_node(destination)

        key = (source, destination)
        with self._lock:
            cached = self._paths.get(key)
            if cached is not None:
                self._hits += 1
                return cached.model_copy(deep=True)
            self._misses += 1

        try:
            length, nodes = nx.single_source_dijkstra(
                self.graph, source, target=destination, weight="weight"
            )
        except nx.NetworkXNoPath:
            result = PathResult.unreachable(source, destination)
        else:
            result = PathResult(
                source=source,
                destination=destination,
                nodes=list(nodes),
                distance=float(length),
                reachable=True,
            )

        with self._lock:
            result = self._paths.setdefault(key, result)

        return result.model_copy(deep=True)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "version": self.version,
                "distance_entries": len(self._distances),
                "path_entries": len(self._paths),
                "hits": self._hits,
                "misses": self._misses,
            }

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _require_node(self, node_id: str) -> None:
        if node_id not in self.graph:
            raise UnknownNodeError(node_id, self.version)
