# tests/conftest.py
import os
import sys

import pytest

# Add the project root directory to sys.path so that "import collection_router" works
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from collection_router.models.routing import Node, Site  # noqa: E402
from collection_router.services.graph_manager import GraphManager  # noqa: E402
from collection_router.services.route_planner import RoutePlanner  # noqa: E402


class FakeClock:
    """
    Manually advanced monotonic clock for rebuild-window tests.
    """

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def depot() -> Node:
    return Node(id="D", lat=-1.0, lng=0.0)


@pytest.fixture
def line_sites() -> list:
    # A(0,0), B(1,0), C(5,0) on one axis
    return [
        Site(id="A", lat=0.0, lng=0.0),
        Site(id="B", lat=1.0, lng=0.0),
        Site(id="C", lat=5.0, lng=0.0),
    ]


@pytest.fixture
def manager(depot, clock) -> GraphManager:
    return GraphManager(depot=depot, clock=clock, connection_threshold=20.0, validity_s=300.0)


@pytest.fixture
def built(manager, line_sites) -> GraphManager:
    manager.build(line_sites)
    return manager


@pytest.fixture
def planner(built) -> RoutePlanner:
    return RoutePlanner(built)
