from typing import Optional, Sequence

from fleetgraph.core.config import DEFAULT_CONFIG, LayoutConfig
from fleetgraph.engines.graph_builder import build
from fleetgraph.engines.simulation import simulate
from fleetgraph.models.fleet import Bike, Delivery, Issue
from fleetgraph.models.graph import Bounds, Graph, Layout, LayoutNode, Pin


def compute_bounds(nodes: Sequence[LayoutNode], padding: float) -> Bounds:
    """Padded bounding box of every node's circle; all zeros when empty."""
    if not nodes:
        return Bounds()
    return Bounds(
        min_x=min(n.x - n.radius for n in nodes) - padding,
        max_x=max(n.x + n.radius for n in nodes) + padding,
        min_y=min(n.y - n.radius for n in nodes) - padding,
        max_y=max(n.y + n.radius for n in nodes) + padding,
    )


def extract(graph: Graph, config: LayoutConfig = DEFAULT_CONFIG) -> Layout:
    nodes = [
        LayoutNode(
            id=node.id,
            kind=node.kind,
            label=node.label,
            x=node.position[0],
            y=node.position[1],
            radius=node.radius,
            payload=node.payload,
        )
        for node in graph.nodes
    ]
    return Layout(
        nodes=nodes,
        links=list(graph.links),
        center=(0.0, 0.0),
        bounds=compute_bounds(nodes, config.bounds_padding),
    )


def compute(
    center: Bike,
    primaries: Sequence[Delivery],
    secondaries: Sequence[Issue],
    config: LayoutConfig = DEFAULT_CONFIG,
    pin: Optional[Pin] = None,
) -> Layout:
    """Build, simulate and extract in one pass."""
    graph = build(center, primaries, secondaries, config)
    simulate(graph, pin, config)
    return extract(graph, config)


def recompute(
    center: Bike,
    primaries: Sequence[Delivery],
    secondaries: Sequence[Issue],
    dragged_node_id: str,
    x: float,
    y: float,
    config: LayoutConfig = DEFAULT_CONFIG,
) -> Layout:
    """
    Rebuild the layout with `dragged_node_id` pinned at (x, y).

    An id that is not in the graph is ignored and the normal layout comes back.
    """
    return compute(center, primaries, secondaries, config, Pin(node_id=dragged_node_id, x=x, y=y))
