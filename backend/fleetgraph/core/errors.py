class FleetGraphError(Exception):
    """Base class for layout errors."""


class CenterNotFoundError(FleetGraphError):
    def __init__(self, center_id: str):
        super().__init__(f"Bike not found: {center_id}")
        self.center_id = center_id


class DanglingLinkError(FleetGraphError, ValueError):
    """A link endpoint does not resolve to a node of the graph."""

    def __init__(self, source: str, target: str, missing: str):
        super().__init__(f"Link {source} -> {target} references unknown node {missing}")
        self.source = source
        self.target = target
        self.missing = missing
