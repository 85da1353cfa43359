# tests/test_spatial_index.py
import math
import random

import pytest

from collection_router.models.routing import Node
from collection_router.services.spatial_index import SpatialIndex


def brute_force_nearest(nodes, lat, lng, max_distance):
    best = None
    best_dist = max_distance
    for node in nodes:
        d = math.hypot(node.lat - lat, node.lng - lng)
        if d < best_dist:
            best, best_dist = node, d
    return best


def test_nearest_within_radius():
    nodes = [Node(id="A", lat=0.0, lng=0.0), Node(id="B", lat=1.0, lng=0.0)]
    index = SpatialIndex(nodes, cell_size=0.5)

    assert index.find_nearest(0.9, 0.0, 0.5).id == "B"
    assert index.find_nearest(0.2, 0.1, 1.0).id == "A"


def test_nothing_within_radius():
    index = SpatialIndex([Node(id="A", lat=0.0, lng=0.0)], cell_size=0.5)

    assert index.find_nearest(3.0, 3.0, 1.0) is None
    assert index.find_nearest(0.0, 0.0, 0.0) is None


def test_radius_is_exclusive():
    index = SpatialIndex([Node(id="A", lat=0.0, lng=0.0)], cell_size=1.0)

    assert index.find_nearest(2.0, 0.0, 2.0) is None
    assert index.find_nearest(2.0, 0.0, 2.0001).id == "A"


def test_ties_go_to_first_inserted_node():
    nodes = [Node(id="P", lat=1.0, lng=0.0), Node(id="Q", lat=-1.0, lng=0.0)]

    assert SpatialIndex(nodes).find_nearest(0.0, 0.0, 5.0).id == "P"
    assert SpatialIndex(list(reversed(nodes))).find_nearest(0.0, 0.0, 5.0).id == "Q"


def test_far_longitude_is_pruned():
    # Same latitude band, far longitude: must not be returned
    nodes = [Node(id="near", lat=0.0, lng=0.3), Node(id="far", lat=0.0, lng=50.0)]
    index = SpatialIndex(nodes, cell_size=0.1)

    assert index.find_nearest(0.0, 49.0, 0.5) is None
    assert index.find_nearest(0.0, 49.8, 0.5).id == "far"


def test_infinite_radius_scans_everything():
    nodes = [Node(id="A", lat=10.0, lng=10.0), Node(id="B", lat=-30.0, lng=40.0)]
    index = SpatialIndex(nodes, cell_size=0.01)

    assert index.find_nearest(-29.0, 39.0, math.inf).id == "B"


def test_huge_finite_radius_scans_everything():
    index = SpatialIndex([Node(id="A", lat=0.0, lng=0.0)], cell_size=0.01)

    assert index.find_nearest(0.0, 0.0, 1e307).id == "A"
    assert index.find_nearest(5.0, -5.0, 1e300).id == "A"


@pytest.mark.parametrize("cell_size", [0.005, 0.05, 1.0])
def test_matches_brute_force(cell_size):
    rng = random.Random(11)
    nodes = [
        Node(id=f"N{i}", lat=10.6 + rng.random() * 0.1, lng=122.9 + rng.random() * 0.1)
        for i in range(200)
    ]
    index = SpatialIndex(nodes, cell_size=cell_size)

    for _ in range(100):
        lat = 10.58 + rng.random() * 0.14
        lng = 122.88 + rng.random() * 0.14
        radius = rng.choice([0.001, 0.01, 0.05, 1.0])
        expected = brute_force_nearest(nodes, lat, lng, radius)
        found = index.find_nearest(lat, lng, radius)
        assert (found.id if found else None) == (expected.id if expected else None)


def test_empty_index_and_bad_cell_size():
    assert SpatialIndex([]).find_nearest(0.0, 0.0, 10.0) is None
    with pytest.raises(ValueError):
        SpatialIndex([], cell_size=0.0)
