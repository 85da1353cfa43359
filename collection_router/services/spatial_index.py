# collection_router/services/spatial_index.py
import math
from threading import Lock
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from collection_router.core.logger import logger
from collection_router.models.routing import Node

Cell = Tuple[int, int]


class SpatialIndex:
    """
    Uniform grid index over the nodes of one graph generation.

    Nodes are bucketed by (floor(lat / cell_size), floor(lng / cell_size)).
    The buckets are built on the first query; the node set never changes
    afterwards because a generation is immutable.
    """

    def __init__(self, nodes: Sequence[Node], cell_size: float = 0.01) -> None:
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")

        self.cell_size = float(cell_size)
        self._nodes: Tuple[Node, ...] = tuple(nodes)
        # cell -> [(insertion order, node), ...]
        self._buckets: Optional[Dict[Cell, List[Tuple[int, Node]]]] = None
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._nodes)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def find_nearest(self, lat: float, lng: float, max_distance: float) -> Optional[Node]:
        """
        Return the node closest to (lat, lng) whose distance is strictly below
        `max_distance`, or None.

        Ties on distance go to the node inserted first.
        """
        if not self._nodes or not max_distance > 0:
            return None

        best: Optional[Node] = None
        best_key: Tuple[float, int] = (max_distance, -1)

        for order, node in self._candidates(lat, lng, max_distance):
            dist = math.hypot(node.lat - lat, node.lng - lng)
            if dist >= max_distance:
                continue
            key = (dist, order)
            if best is None or key < best_key:
                best = node
                best_key = key

        return best

    def cell_of(self, lat: float, lng: float) -> Cell:
        return (math.floor(lat / self.cell_size), math.floor(lng / self.cell_size))

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _ensure_buckets(self) -> Dict[Cell, List[Tuple[int, Node]]]:
        buckets = self._buckets
        if buckets is not None:
            return buckets

        with self._lock:
            if self._buckets is None:
                built: Dict[Cell, List[Tuple[int, Node]]] = {}
                for order, node in enumerate(self._nodes):
                    built.setdefault(self.cell_of(node.lat, node.lng), []).append((order, node))
                self._buckets = built
                logger.debug(
                    "Spatial index built: {} nodes in {} cells (cell_size={})",
                    len(self._nodes),
                    len(built),
                    self.cell_size,
                )
            return self._buckets

    def _candidates(
        self, lat: float, lng: float, max_distance: float
    ) -> Iterable[Tuple[int, Node]]:
        """
        Yield every node whose cell overlaps the query square
        [lat +/- max_distance] x [lng +/- max_distance].
        """
        buckets = self._ensure_buckets()

        # Huge radii overflow the cell arithmetic; treat them like an infinite one
        reach = (max(abs(lat), abs(lng)) + max_distance) / self.cell_size
        if math.isfinite(reach):
            lat_lo, lng_lo = self.cell_of(lat - max_distance, lng - max_distance)
            lat_hi, lng_hi = self.cell_of(lat + max_distance, lng + max_distance)
            span = (lat_hi - lat_lo + 1) * (lng_hi - lng_lo + 1)
        else:
            span = math.inf

        # Large radius: cheaper to walk the occupied cells than the square
        if span > len(buckets):
            for entries in buckets.values():
                yield from entries
            return

        for i in range(lat_lo, lat_hi + 1):
            for j in range(lng_lo, lng_hi + 1):
                yield from buckets.get((i, j), ())
