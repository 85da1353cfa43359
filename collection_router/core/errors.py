# collection_router/core/errors.py


class RoutingEngineError(Exception):
    """
    Base class for every error raised by the route engine.
    """


class UnknownNodeError(RoutingEngineError, KeyError):
    """
    A query referenced a node id that is not part of the current graph generation.
    """

    def __init__(self, node_id: str, version: int | None = None) -> None:
        self.node_id = node_id
        self.version = version
        super().__init__(node_id)

    def __str__(self) -> str:
        if self.version is None:
            return f"Unknown node '{self.node_id}'"
        return f"Unknown node '{self.node_id}' in graph generation {self.version}"


class DuplicateSiteError(RoutingEngineError, ValueError):
    """
    Two sites (or a site and the depot) share the same id.
    """

    def __init__(self, site_id: str) -> None:
        self.site_id = site_id
        super().__init__(f"Duplicate site id '{site_id}'")


class GraphNotBuiltError(RoutingEngineError, RuntimeError):
    """
    A query was issued before any graph generation was built.
    """

    def __init__(self) -> None:
        super().__init__("Graph not built. Call GraphManager.build() first.")
