# tests/test_route_planner.py
import random

import pytest

from collection_router.core.errors import GraphNotBuiltError, UnknownNodeError
from collection_router.models.routing import Node, Site
from collection_router.services.graph_manager import GraphManager
from collection_router.services.route_planner import RoutePlanner, path_distance


def test_tour_on_line(planner):
    tour = planner.plan_tour("D", ["A", "B", "C"])

    assert tour.route == ["D", "A", "B", "C", "D"]
    assert tour.total_distance == pytest.approx(12.0)
    assert tour.unreachable == []
    assert tour.version == 1


def test_target_order_does_not_change_nearest_choice(planner):
    tour = planner.plan_tour("D", ["C", "B", "A"])
    assert tour.route == ["D", "A", "B", "C", "D"]


def test_empty_targets_round_trip(planner):
    tour = planner.plan_tour("D", [])
    assert tour.route == ["D", "D"]
    assert tour.total_distance == 0.0


def test_ties_keep_first_listed_target(clock):
    manager = GraphManager(depot=Node(id="D", lat=0.0, lng=0.0), clock=clock)
    manager.build([Site(id="N", lat=1.0, lng=0.0), Site(id="S", lat=-1.0, lng=0.0)])
    planner = RoutePlanner(manager)

    assert planner.plan_tour("D", ["N", "S"]).route[:2] == ["D", "N"]
    assert planner.plan_tour("D", ["S", "N"]).route[:2] == ["D", "S"]


def test_tour_visits_every_target(clock):
    rng = random.Random(5)
    sites = [Site(id=f"S{i}", lat=rng.uniform(0, 3), lng=rng.uniform(0, 3)) for i in range(25)]
    manager = GraphManager(
        depot=Node(id="D", lat=1.5, lng=1.5),
        clock=clock,
        connection_threshold=1.0,
    )
    manager.build(sites)
    planner = RoutePlanner(manager)
    targets = [s.id for s in sites]

    tour = planner.plan_tour("D", targets)
    gen = manager.current
    reachable = {n for n, d in gen.distances("D").items() if d != float("inf")}

    assert tour.route[0] == "D"
    assert tour.route[-1] == "D"
    assert set(t for t in targets if t in reachable) <= set(tour.route)
    assert set(tour.unreachable) == set(targets) - reachable
    # Consecutive stops are joined by edges
    for u, v in zip(tour.route[:-1], tour.route[1:]):
        assert gen.graph.has_edge(u, v)
    assert tour.total_distance == pytest.approx(path_distance(gen.nodes, tour.route))


def test_unreachable_targets_are_reported(clock, depot, line_sites):
    manager = GraphManager(depot=depot, clock=clock)
    manager.build(line_sites + [Site(id="FAR", lat=100.0, lng=100.0)])
    planner = RoutePlanner(manager)

    tour = planner.plan_tour("D", ["FAR", "A"])

    assert tour.route == ["D", "A", "D"]
    assert tour.unreachable == ["FAR"]
    assert tour.total_distance == pytest.approx(2.0)


def test_repeated_and_start_targets(planner):
    tour = planner.plan_tour("D", ["B", "B", "D"])
    assert tour.route == ["D", "B", "D"]
    assert tour.targets == ["B", "B", "D"]


def test_tour_rejects_unknown_ids(planner):
    with pytest.raises(UnknownNodeError):
        planner.plan_tour("D", ["A", "nope"])
    with pytest.raises(UnknownNodeError):
        planner.plan_tour("nope", [])


def test_tour_requires_built_graph(manager):
    with pytest.raises(GraphNotBuiltError):
        RoutePlanner(manager).plan_tour("D", ["A"])


def test_tour_on_pinned_generation(built, line_sites):
    planner = RoutePlanner(built)
    old = built.current
    built.build(line_sites[:1], force=True)

    tour = planner.plan_tour("D", ["A", "B"], generation=old)

    assert tour.version == old.version
    assert tour.route == ["D", "A", "B", "D"]


# ---------------------------------------------------------------------- #
# Site selection
# ---------------------------------------------------------------------- #


@pytest.fixture
def centers(clock):
    manager = GraphManager(depot=Node(id="DEPOT", lat=0.0, lng=0.0), clock=clock)
    manager.build(
        [
            Site(id="C1", lat=5.0, lng=0.0),
            Site(id="C2", lat=1.0, lng=0.0),
            Site(id="C3", lat=2.0, lng=0.0),
            Site(id="C4", lat=0.0, lng=3.0),
        ]
    )
    return manager


def test_selection_returns_available_when_small_enough(centers):
    planner = RoutePlanner(centers)
    assert planner.select_optimal_centers(["C3", "C1"], 2, 0.0, 0.0) == ["C3", "C1"]
    assert planner.select_optimal_centers(["C3", "C3", "C1"], 2, 0.0, 0.0) == ["C3", "C1"]


def test_selection_prefers_close_and_priority_sites(centers):
    planner = RoutePlanner(centers)

    # C1 is far but carries the default priority boost (+1 over base)
    selected = planner.select_optimal_centers(["C1", "C2", "C3", "C4"], 2, 0.0, 0.0)

    assert selected == ["C1", "C2"]


def test_selection_without_boosts_is_by_distance(centers):
    planner = RoutePlanner(centers, priority_boosts={})

    selected = planner.select_optimal_centers(["C1", "C2", "C3", "C4"], 3, 0.0, 0.0)

    assert selected == ["C2", "C3", "C4"]


def test_configurable_boost_table(centers):
    planner = RoutePlanner(centers, priority_boosts={"C4": 10.0, "C3": 5.0})

    selected = planner.select_optimal_centers(["C1", "C2", "C3", "C4"], 2, 0.0, 0.0)

    assert selected == ["C4", "C3"]
    assert planner.priority_bonus("C4") == 10.0
    assert planner.priority_bonus("C2") == planner.base_bonus


def test_selection_score_ties_keep_first_candidate(clock):
    manager = GraphManager(depot=Node(id="DEPOT", lat=0.0, lng=0.0), clock=clock)
    manager.build([Site(id="E", lat=1.0, lng=0.0), Site(id="W", lat=-1.0, lng=0.0)])
    planner = RoutePlanner(manager, priority_boosts={})

    assert planner.select_optimal_centers(["W", "E"], 1, 0.0, 5.0) == ["W"]
    assert planner.select_optimal_centers(["E", "W"], 1, 0.0, 5.0) == ["E"]


def test_selection_bounds(centers):
    planner = RoutePlanner(centers)
    available = ["C1", "C2", "C3", "C4"]

    assert planner.select_optimal_centers(available, 0, 0.0, 0.0) == []
    assert planner.select_optimal_centers(available, -3, 0.0, 0.0) == []
    assert planner.select_optimal_centers([], 2, 0.0, 0.0) == []

    for k in range(1, 6):
        selected = planner.select_optimal_centers(available, k, 1.0, 1.0)
        assert len(selected) <= k
        assert len(set(selected)) == len(selected)
        assert set(selected) <= set(available)


def test_selection_with_zero_distance(centers):
    planner = RoutePlanner(centers, priority_boosts={})
    # Reference exactly on C2: epsilon keeps the score finite
    assert planner.select_optimal_centers(["C1", "C2", "C3"], 1, 1.0, 0.0) == ["C2"]


def test_selection_rejects_unknown_ids_in_both_branches(centers):
    planner = RoutePlanner(centers)

    # Fewer candidates than max_count: nothing to score, still validated
    with pytest.raises(UnknownNodeError):
        planner.select_optimal_centers(["C1", "nope"], 5, 0.0, 0.0)
    with pytest.raises(UnknownNodeError):
        planner.select_optimal_centers(["C1", "C2", "nope"], 1, 0.0, 0.0)


def test_selection_rejects_bad_epsilon(centers):
    with pytest.raises(ValueError):
        RoutePlanner(centers, epsilon=0.0)
