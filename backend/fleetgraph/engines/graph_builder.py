"""
Graph Builder

Turns a bike, its deliveries and its issues into a typed node/link set with
deterministic radial starting positions:

                      bike (center, pinned at origin)
                        |
        +---------------+---------------+
        |               |               |
    delivery 1      delivery 2      delivery 3     ring of primary_distance
        |                               |
     issue 1                         issue 2       offset secondary_distance

Issues without a delivery sit on an outer ring, rotated by pi/4 so they fall
between the delivery spokes.
"""
import logging
import math
from typing import List, Sequence

from fleetgraph.core.config import DEFAULT_CONFIG, LayoutConfig
from fleetgraph.models.fleet import Bike, Delivery, Issue
from fleetgraph.models.graph import (
    CenterPayload,
    Graph,
    Link,
    Node,
    NodeKind,
    PrimaryPayload,
    SecondaryPayload,
)

logger = logging.getLogger(__name__)


def ring_position(index: int, count: int, distance: float, offset: float = 0.0):
    """Position of the index-th of `count` points evenly spaced on a ring."""
    if count <= 0:
        return (0.0, 0.0)
    angle = (index / count) * 2.0 * math.pi + offset
    return (distance * math.cos(angle), distance * math.sin(angle))


def _secondary_node(issue: Issue, position, config: LayoutConfig) -> Node:
    return Node(
        id=issue.id,
        kind=NodeKind.SECONDARY,
        label=issue.category.value,
        radius=config.radius_for(NodeKind.SECONDARY),
        position=position,
        payload=SecondaryPayload(
            category=issue.category,
            resolved=issue.resolved,
            reporter=issue.reporter_type,
        ),
    )


def build(
    center: Bike,
    primaries: Sequence[Delivery],
    secondaries: Sequence[Issue],
    config: LayoutConfig = DEFAULT_CONFIG,
) -> Graph:
    """
    Build the graph for one layout computation.

    Node order: center, primaries in input order, secondaries owned by a
    primary (input order), then standalone secondaries. The center node is
    marked fixed at the origin. Pure: identical inputs give an identical Graph.
    """
    nodes: List[Node] = []
    links: List[Link] = []

    nodes.append(Node(
        id=center.id,
        kind=NodeKind.CENTER,
        label=center.name,
        radius=config.radius_for(NodeKind.CENTER),
        position=(0.0, 0.0),
        fixed=True,
        payload=CenterPayload(name=center.name, status=center.status),
    ))

    primary_positions = {}
    count = len(primaries)
    for i, delivery in enumerate(primaries):
        position = ring_position(i, count, config.primary_distance)
        primary_positions[delivery.id] = position
        nodes.append(Node(
            id=delivery.id,
            kind=NodeKind.PRIMARY,
            label=delivery.customer_name,
            radius=config.radius_for(NodeKind.PRIMARY),
            position=position,
            payload=PrimaryPayload(
                status=delivery.status,
                customer=delivery.customer_name,
                rating=delivery.rating,
            ),
        ))
        links.append(Link(source=center.id, target=delivery.id, strength=config.link_strength))

    # The angle uses the issue's index among *all* secondaries, so siblings
    # under one delivery fan out instead of stacking.
    linked = [(i, issue) for i, issue in enumerate(secondaries) if issue.delivery_id is not None]
    standalone = [issue for issue in secondaries if issue.delivery_id is None]

    for global_index, issue in linked:
        anchor = primary_positions.get(issue.delivery_id)
        owner = issue.delivery_id
        strength = config.link_strength * 0.8
        if anchor is None:
            logger.warning(
                "Issue %s references delivery %s outside this graph; attaching to %s",
                issue.id, issue.delivery_id, center.id,
            )
            anchor = (config.primary_distance, 0.0)
            owner = center.id
            strength = config.link_strength * 0.5

        angle = global_index * config.secondary_angle_step
        position = (
            anchor[0] + config.secondary_distance * math.cos(angle),
            anchor[1] + config.secondary_distance * math.sin(angle),
        )
        nodes.append(_secondary_node(issue, position, config))
        links.append(Link(source=owner, target=issue.id, strength=strength))

    outer = config.primary_distance + config.secondary_distance
    for i, issue in enumerate(standalone):
        position = ring_position(i, len(standalone), outer, offset=math.pi / 4.0)
        nodes.append(_secondary_node(issue, position, config))
        links.append(Link(source=center.id, target=issue.id, strength=config.link_strength * 0.5))

    return Graph(nodes=nodes, links=links)
