"""
Force Simulation Engine

Fixed-length velocity Verlet style solver in the manner of d3-force:

    for each tick:
        alpha += (alpha_target - alpha) * alpha_decay
        center -> repulsion -> collision -> links      (velocities only)
        pinned nodes: position = pin, velocity = 0
        free nodes:   velocity *= 1 - velocity_decay; position += velocity

Positions and velocities live in an index-stable numpy arena; node ids are
resolved to indices once per computation. Exactly `config.ticks` ticks are
run so the same graph and pin always give the same coordinates.
"""
import logging
from typing import List, Optional, Tuple

import numpy as np

from fleetgraph.core.config import DEFAULT_CONFIG, LayoutConfig
from fleetgraph.engines.graph_engine import GraphEngine
from fleetgraph.models.graph import Graph, Pin

logger = logging.getLogger(__name__)

# Separation used instead of a random jiggle for coincident nodes.
JIGGLE = 1e-6


class Arena:
    """Contiguous simulation state for one computation."""

    def __init__(self, positions, radii, pinned, pins):
        self.pos = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        self.vel = np.zeros_like(self.pos)
        self.radii = np.asarray(radii, dtype=np.float64)
        self.pinned = np.asarray(pinned, dtype=bool)
        self.pins = np.asarray(pins, dtype=np.float64).reshape(-1, 2)
        self.alpha = 1.0

    def __len__(self):
        return self.pos.shape[0]


def _jiggle(i: int, j: int) -> float:
    return JIGGLE * (j - i)


def apply_center(arena: Arena, strength: float):
    """Pull every free node toward the origin in proportion to its offset."""
    free = ~arena.pinned
    arena.vel[free] -= arena.pos[free] * (strength * arena.alpha)


def apply_repulsion(arena: Arena, strength: float, distance_min: float = 1.0):
    """Pairwise many-body force; negative strength repels."""
    n = len(arena)
    if n < 2:
        return
    # delta[i, j] = pos[j] - pos[i]
    delta = arena.pos[np.newaxis, :, :] - arena.pos[:, np.newaxis, :]
    idx = np.arange(n)
    coincident = (delta[:, :, 0] == 0) & (delta[:, :, 1] == 0)
    np.fill_diagonal(coincident, False)
    if coincident.any():
        delta[:, :, 0] = np.where(coincident, JIGGLE * (idx[np.newaxis, :] - idx[:, np.newaxis]), delta[:, :, 0])

    l2 = delta[:, :, 0] ** 2 + delta[:, :, 1] ** 2
    min2 = distance_min * distance_min
    l2 = np.where(l2 < min2, np.sqrt(min2 * l2), l2)
    np.fill_diagonal(l2, np.inf)
    weight = (strength * arena.alpha) / l2
    arena.vel += (delta * weight[:, :, np.newaxis]).sum(axis=1)


def apply_collision(arena: Arena, margin: float, iterations: int, strength: float = 1.0):
    """
    Separate overlapping nodes using their predicted positions.

    Each node collides with radius + margin. The correction is split in
    proportion to the other node's squared radius; a pinned node takes none.
    """
    n = len(arena)
    pos, vel, pinned = arena.pos, arena.vel, arena.pinned
    radii = arena.radii + margin
    for _ in range(iterations):
        for i in range(n):
            xi = pos[i, 0] + vel[i, 0]
            yi = pos[i, 1] + vel[i, 1]
            ri = radii[i]
            ri2 = ri * ri
            for j in range(i + 1, n):
                if pinned[i] and pinned[j]:
                    continue
                rj = radii[j]
                r = ri + rj
                dx = xi - pos[j, 0] - vel[j, 0]
                dy = yi - pos[j, 1] - vel[j, 1]
                l2 = dx * dx + dy * dy
                if l2 >= r * r:
                    continue
                if dx == 0 and dy == 0:
                    dx = _jiggle(j, i)
                    l2 = dx * dx
                l = np.sqrt(l2)
                l = (r - l) / l * strength
                dx *= l
                dy *= l
                rj2 = rj * rj
                if pinned[i]:
                    wi, wj = 0.0, 1.0
                elif pinned[j]:
                    wi, wj = 1.0, 0.0
                else:
                    wi = rj2 / (ri2 + rj2)
                    wj = 1.0 - wi
                vel[i, 0] += dx * wi
                vel[i, 1] += dy * wi
                vel[j, 0] -= dx * wj
                vel[j, 1] -= dy * wj


def apply_links(arena: Arena, links: List[Tuple[int, int, float, float]], counts: List[int], iterations: int):
    """
    Spring every (source, target, strength, rest_length) link toward its rest length.

    The correction is biased toward the endpoint with fewer links; a pinned
    endpoint takes none.
    """
    pos, vel, pinned = arena.pos, arena.vel, arena.pinned
    for _ in range(iterations):
        for s, t, strength, distance in links:
            if pinned[s] and pinned[t]:
                continue
            dx = pos[t, 0] + vel[t, 0] - pos[s, 0] - vel[s, 0]
            dy = pos[t, 1] + vel[t, 1] - pos[s, 1] - vel[s, 1]
            if dx == 0 and dy == 0:
                dx = _jiggle(s, t)
            l = np.sqrt(dx * dx + dy * dy)
            l = (l - distance) / l * arena.alpha * strength
            dx *= l
            dy *= l
            if pinned[s]:
                bias = 1.0
            elif pinned[t]:
                bias = 0.0
            else:
                bias = counts[s] / (counts[s] + counts[t])
            vel[t, 0] -= dx * bias
            vel[t, 1] -= dy * bias
            vel[s, 0] += dx * (1.0 - bias)
            vel[s, 1] += dy * (1.0 - bias)


def integrate(arena: Arena, velocity_decay: float):
    pinned = arena.pinned
    free = ~pinned
    arena.vel[free] *= 1.0 - velocity_decay
    arena.pos[free] += arena.vel[free]
    arena.pos[pinned] = arena.pins[pinned]
    arena.vel[pinned] = 0.0


def tick(arena: Arena, links, counts, config: LayoutConfig):
    arena.alpha += (config.alpha_target - arena.alpha) * config.decay()
    apply_center(arena, config.center_strength)
    apply_repulsion(arena, config.repulsion_strength, config.distance_min)
    apply_collision(arena, config.collision_margin, config.collision_iterations)
    apply_links(arena, links, counts, config.link_iterations)
    integrate(arena, config.velocity_decay)


def resolve_pins(graph: Graph, index, fixed_override: Optional[Pin]):
    """
    Pinned flags and coordinates per node.

    Nodes already marked fixed keep their current position. The override,
    when its node exists, pins that node at the requested coordinate; this
    also releases the center's origin pin when the center is the dragged node.
    """
    pinned = [node.fixed for node in graph.nodes]
    pins = [node.position for node in graph.nodes]
    if fixed_override is not None:
        i = index.get(fixed_override.node_id)
        if i is None:
            logger.warning("Pin target %s not in graph; ignoring", fixed_override.node_id)
        else:
            pinned[i] = True
            pins[i] = (fixed_override.x, fixed_override.y)
    return pinned, pins


def simulate(graph: Graph, fixed_override: Optional[Pin] = None, config: LayoutConfig = DEFAULT_CONFIG) -> Graph:
    """
    Run the fixed-length simulation on `graph`, updating node positions in place.

    `fixed_override` defaults to `graph.pinned`. Returns the same Graph object
    with node order unchanged. Raises DanglingLinkError on unresolved links.
    """
    if fixed_override is None:
        fixed_override = graph.pinned
    engine = GraphEngine().build_graph(graph)
    n = len(graph.nodes)
    if n == 0:
        return graph

    pinned, pins = resolve_pins(graph, engine.index, fixed_override)
    arena = Arena(
        positions=[node.position for node in graph.nodes],
        radii=[node.radius for node in graph.nodes],
        pinned=pinned,
        pins=pins,
    )
    arena.alpha = config.alpha
    arena.pos[arena.pinned] = arena.pins[arena.pinned]

    kinds = [node.kind for node in graph.nodes]
    links = []
    for link in graph.links:
        s = engine.index[link.source]
        t = engine.index[link.target]
        links.append((s, t, link.strength, config.spring_length(kinds[s], kinds[t])))
    counts = engine.link_counts()

    for _ in range(config.ticks):
        tick(arena, links, counts, config)

    logger.debug(
        "Simulated %d nodes / %d links for %d ticks (alpha=%.4f, pinned=%s)",
        n, len(links), config.ticks, arena.alpha, np.flatnonzero(arena.pinned).tolist(),
    )

    for i, node in enumerate(graph.nodes):
        node.position = (float(arena.pos[i, 0]), float(arena.pos[i, 1]))
        node.velocity = (float(arena.vel[i, 0]), float(arena.vel[i, 1]))
        node.fixed = bool(arena.pinned[i])
    return graph
