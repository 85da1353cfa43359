# collection_router/services/graph_manager.py
import hashlib
import math
import time
from dataclasses import dataclass
from threading import Lock
from time import perf_counter
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import networkx as nx

from collection_router.core.config import settings
from collection_router.core.errors import DuplicateSiteError, GraphNotBuiltError, UnknownNodeError
from collection_router.core.logger import logger
from collection_router.models.routing import Edge, Node, PathResult, Site
from collection_router.services.path_cache import PathCache
from collection_router.services.spatial_index import SpatialIndex

SiteLike = Union[Site, Mapping[str, Any]]


def calculate_distance(a: Node, b: Node) -> float:
    """
    Euclidean distance in raw coordinate space.

    This is the only metric of the engine; there is no geodesic correction.
    """
    return math.hypot(a.lat - b.lat, a.lng - b.lng)


def site_fingerprint(sites: Sequence[Site], depot: Node) -> str:
    """
    Digest of the depot and the (id, lat, lng) of every site, in input order.
    """
    h = hashlib.sha256()
    for item in (depot, *sites):
        h.update(f"{item.id}\x1f{item.lat!r}\x1f{item.lng!r}\x1e".encode("utf-8"))
    return h.hexdigest()


def default_depot() -> Node:
    return Node(id=settings.DEPOT_ID, lat=settings.DEPOT_LAT, lng=settings.DEPOT_LNG)


@dataclass(frozen=True)
class GraphGeneration:
    """
    One immutable build of nodes + edges, together with the spatial index
    and path cache that belong to it.

    A generation is never mutated after construction; a rebuild produces a
    new one. Readers holding a reference to an older generation keep a
    consistent (if stale) view.
    """

    version: int
    built_at: float
    fingerprint: str
    depot_id: str
    nodes: Mapping[str, Node]
    graph: nx.DiGraph
    spatial_index: SpatialIndex
    path_cache: PathCache

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    def node(self, node_id: str) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id, self.version) from None

    def edges(self) -> List[Edge]:
        return [
            Edge(source=u, target=v, weight=data["weight"])
            for u, v, data in self.graph.edges(data=True)
        ]

    def distances(self, source: str) -> Dict[str, float]:
        return self.path_cache.distances(source)

    def shortest_path(self, source: str, destination: str) -> PathResult:
        return self.path_cache.shortest_path(source, destination)

    def nearest(self, lat: float, lng: float, max_distance: float) -> Optional[Node]:
        return self.spatial_index.find_nearest(lat, lng, max_distance)


def build_generation(
    sites: Iterable[SiteLike],
    depot: Node,
    *,
    version: int,
    connection_threshold: float,
    cell_size: float,
    built_at: float,
) -> GraphGeneration:
    """
    Build a complete generation: one node per depot + site, and an edge in
    each direction between every pair closer than `connection_threshold`.
    """
    site_list = [s if isinstance(s, Site) else Site.model_validate(s) for s in sites]

    nodes: Dict[str, Node] = {depot.id: depot}
    for site in site_list:
        if site.id in nodes:
            raise DuplicateSiteError(site.id)
        nodes[site.id] = Node(id=site.id, lat=site.lat, lng=site.lng)

    G = nx.DiGraph()
    for node in nodes.values():
        G.add_node(node.id, lat=node.lat, lng=node.lng)

    ordered = list(nodes.values())
    for a in ordered:
        for b in ordered:
            if a.id == b.id:
                continue
            d = calculate_distance(a, b)
            if d < connection_threshold:
                G.add_edge(a.id, b.id, weight=d)

    nx.freeze(G)

    return GraphGeneration(
        version=version,
        built_at=built_at,
        fingerprint=site_fingerprint(site_list, depot),
        depot_id=depot.id,
        nodes=MappingProxyType(nodes),
        graph=G,
        spatial_index=SpatialIndex(ordered, cell_size=cell_size),
        path_cache=PathCache(G, version=version),
    )


def _empty_generation(depot_id: str) -> GraphGeneration:
    G = nx.freeze(nx.DiGraph())
    return GraphGeneration(
        version=0,
        built_at=-math.inf,
        fingerprint="",
        depot_id=depot_id,
        nodes=MappingProxyType({}),
        graph=G,
        spatial_index=SpatialIndex((), cell_size=settings.SPATIAL_CELL_SIZE),
        path_cache=PathCache(G, version=0),
    )


class GraphManager:
    # Owns the active graph generation and decides when to rebuild it.

    def __init__(
        self,
        *,
        depot: Optional[Node] = None,
        connection_threshold: Optional[float] = None,
        validity_s: Optional[float] = None,
        invalidation_mode: Optional[str] = None,
        cell_size: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.depot = depot or default_depot()
        self.connection_threshold = (
            settings.CONNECTION_THRESHOLD if connection_threshold is None else connection_threshold
        )
        self.validity_s = settings.GRAPH_VALIDITY_S if validity_s is None else validity_s
        self.invalidation_mode = invalidation_mode or settings.INVALIDATION_MODE
        if self.invalidation_mode not in ("time", "content"):
            raise ValueError(f"Unknown invalidation mode: {self.invalidation_mode!r}")
        self.cell_size = settings.SPATIAL_CELL_SIZE if cell_size is None else cell_size
        self._clock = clock

        # Writers serialise on this lock; readers only read self._generation
        self._write_lock = Lock()
        self._generation = _empty_generation(self.depot.id)

        logger.info(
            f"GraphManager initialised (mode={self.invalidation_mode}, "
            f"threshold={self.connection_threshold}, validity={self.validity_s:.0f} s)."
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def current(self) -> GraphGeneration:
        """
        The published generation. Take one reference and query it to get a
        consistent view across several calls.
        """
        return self._generation

    @property
    def is_built(self) -> bool:
        return self._generation.version > 0

    def build(
        self,
        sites: Iterable[SiteLike],
        depot: Optional[Node] = None,
        force: bool = False,
    ) -> bool:
        """
        (Re)build the graph from the given site list.

        The rebuild is skipped while the current generation has nodes and the
        validity window has not elapsed. In "time" mode a changed site list
        does not shorten the window: pass force=True to rebuild immediately.
        In "content" mode a changed site list (or depot) triggers a rebuild.

        `depot` applies to this build only; it defaults to the manager's depot.
        Returns True when a new generation was published.
        """
        site_list = [s if isinstance(s, Site) else Site.model_validate(s) for s in sites]
        depot = depot or self.depot

        with self._write_lock:
            now = self._clock()
            previous = self._generation

            if not force and not self._is_stale(previous, site_list, depot, now):
                logger.info(
                    f"Graph rebuild skipped: generation {previous.version} is "
                    f"{now - previous.built_at:.1f} s old (validity {self.validity_s:.0f} s)"
                )
                return False

            t0 = perf_counter()
            generation = build_generation(
                site_list,
                depot,
                version=previous.version + 1,
                connection_threshold=self.connection_threshold,
                cell_size=self.cell_size,
                built_at=now,
            )
            t1 = perf_counter()

            # Single reference swap: readers see either the old or the new generation
            self._generation = generation

        logger.info(
            f"Graph generation {generation.version} ready: {generation.node_count} nodes, "
            f"{generation.edge_count} edges in {(t1 - t0) * 1000.0:.2f} ms"
        )
        return True

    def nodes(self) -> Mapping[str, Node]:
        return self._require_built().nodes

    def distances(self, source: str) -> Dict[str, float]:
        return self._require_built().distances(source)

    def shortest_path(self, source: str, destination: str) -> PathResult:
        return self._require_built().shortest_path(source, destination)

    def nearest(self, lat: float, lng: float, max_distance: float) -> Optional[Node]:
        return self._require_built().nearest(lat, lng, max_distance)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _require_built(self) -> GraphGeneration:
        generation = self._generation
        if generation.version == 0:
            raise GraphNotBuiltError()
        return generation

    def _is_stale(
        self,
        generation: GraphGeneration,
        sites: Sequence[Site],
        depot: Node,
        now: float,
    ) -> bool:
        if not generation.nodes:
            return True
        if now - generation.built_at >= self.validity_s:
            return True
        if self.invalidation_mode == "content":
            return site_fingerprint(sites, depot) != generation.fingerprint
        return False
