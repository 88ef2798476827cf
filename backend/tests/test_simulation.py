"""
Force Simulation Tests

Individual forces on a tiny arena, then whole-graph properties: pinning,
determinism and degenerate inputs.
"""
import logging
import math

import numpy as np
import pytest
from pydantic import ValidationError

from fleetgraph.core.config import LayoutConfig
from fleetgraph.core.errors import DanglingLinkError
from fleetgraph.engines.graph_builder import build
from fleetgraph.engines.simulation import (
    Arena,
    apply_center,
    apply_collision,
    apply_links,
    apply_repulsion,
    integrate,
    simulate,
)
from fleetgraph.models.graph import CenterPayload, Graph, Link, Node, NodeKind, Pin


def make_arena(positions, radii=None, pinned=None):
    n = len(positions)
    return Arena(
        positions=positions,
        radii=radii or [10.0] * n,
        pinned=pinned or [False] * n,
        pins=positions,
    )


def positions(graph):
    return [n.position for n in graph.nodes]


class TestForces:

    def test_center_pulls_free_nodes_only(self):
        arena = make_arena([(100.0, 0.0), (0.0, 50.0)], pinned=[False, True])
        apply_center(arena, 0.05)

        assert arena.vel[0].tolist() == pytest.approx([-5.0, 0.0])
        assert arena.vel[1].tolist() == [0.0, 0.0]

    def test_repulsion_is_symmetric(self):
        arena = make_arena([(0.0, 0.0), (10.0, 0.0)])
        apply_repulsion(arena, -300.0)

        assert arena.vel[0].tolist() == pytest.approx([-30.0, 0.0])
        assert arena.vel[1].tolist() == pytest.approx([30.0, 0.0])

    def test_repulsion_separates_coincident_nodes(self):
        arena = make_arena([(5.0, 5.0), (5.0, 5.0)])
        apply_repulsion(arena, -300.0)

        assert np.all(np.isfinite(arena.vel))
        assert arena.vel[0, 0] < 0 < arena.vel[1, 0]

    def test_collision_pinned_node_absorbs_nothing(self):
        arena = make_arena([(0.0, 0.0), (5.0, 0.0)], pinned=[True, False])
        apply_collision(arena, margin=0.0, iterations=1)

        assert arena.vel[0].tolist() == [0.0, 0.0]
        assert arena.vel[1].tolist() == pytest.approx([15.0, 0.0])

    def test_collision_split_by_radius(self):
        """Both free: the smaller node moves further."""
        arena = make_arena([(0.0, 0.0), (10.0, 0.0)], radii=[20.0, 10.0])
        apply_collision(arena, margin=0.0, iterations=1)

        assert arena.vel[0, 0] < 0 < arena.vel[1, 0]
        assert abs(arena.vel[1, 0]) > abs(arena.vel[0, 0])
        assert arena.vel[1, 0] - arena.vel[0, 0] == pytest.approx(20.0)

    def test_collision_ignores_separated_nodes(self):
        arena = make_arena([(0.0, 0.0), (100.0, 0.0)])
        apply_collision(arena, margin=5.0, iterations=2)
        assert not arena.vel.any()

    def test_link_pulls_to_rest_length(self):
        arena = make_arena([(0.0, 0.0), (200.0, 0.0)], pinned=[True, False])
        apply_links(arena, [(0, 1, 1.0, 120.0)], counts=[1, 1], iterations=1)

        assert arena.vel[0].tolist() == [0.0, 0.0]
        assert arena.vel[1].tolist() == pytest.approx([-80.0, 0.0])

    def test_integrate_resets_pinned(self):
        arena = make_arena([(1.0, 1.0), (2.0, 2.0)], pinned=[True, False])
        arena.pins[0] = (7.0, -3.0)
        arena.vel[:] = 10.0
        integrate(arena, velocity_decay=0.4)

        assert arena.pos[0].tolist() == [7.0, -3.0]
        assert arena.vel[0].tolist() == [0.0, 0.0]
        assert arena.pos[1].tolist() == pytest.approx([8.0, 8.0])


class TestSimulate:

    def test_center_stays_at_origin(self, unit_scenario):
        graph = simulate(build(*unit_scenario))
        assert graph.nodes[0].position == (0.0, 0.0)

    def test_nodes_move_and_settle(self, unit_scenario):
        initial = build(*unit_scenario)
        before = positions(initial)
        graph = simulate(initial)

        assert positions(graph) != before
        assert all(math.isfinite(x) and math.isfinite(y) for x, y in positions(graph))

    def test_deterministic(self, unit_scenario):
        first = simulate(build(*unit_scenario))
        second = simulate(build(*unit_scenario))
        assert positions(first) == positions(second)

    def test_pin_override_exact(self, unit_scenario):
        graph = simulate(build(*unit_scenario), Pin(node_id="D2", x=33.5, y=-71.25))

        node = next(n for n in graph.nodes if n.id == "D2")
        assert node.position == (33.5, -71.25)
        assert node.fixed
        assert graph.nodes[0].position == (0.0, 0.0)

    def test_graph_pinned_field_used_by_default(self, unit_scenario):
        graph = build(*unit_scenario)
        graph.pinned = Pin(node_id="I1", x=10.0, y=10.0)
        simulate(graph)
        assert graph.nodes[4].position == (10.0, 10.0)

    def test_dragging_center_releases_origin(self, unit_scenario):
        graph = simulate(build(*unit_scenario), Pin(node_id="U1", x=50.0, y=-30.0))
        assert graph.nodes[0].position == (50.0, -30.0)
        assert sum(n.fixed for n in graph.nodes) == 1

    def test_unknown_pin_ignored(self, unit_scenario, caplog):
        plain = simulate(build(*unit_scenario))
        with caplog.at_level(logging.WARNING, logger="fleetgraph.engines.simulation"):
            pinned = simulate(build(*unit_scenario), Pin(node_id="NOPE", x=1.0, y=2.0))
        assert any(r.levelno == logging.WARNING and "NOPE" in r.getMessage() for r in caplog.records)
        assert positions(plain) == positions(pinned)

    def test_no_overlap_after_collision(self, unit_scenario):
        graph = simulate(build(*unit_scenario))
        nodes = graph.nodes
        for i in range(len(nodes)):
            for j in range(i + 1, len(nodes)):
                a, b = nodes[i], nodes[j]
                distance = math.dist(a.position, b.position)
                assert distance >= a.radius + b.radius - 1.0, (a.id, b.id, distance)

    def test_node_order_unchanged(self, unit_scenario):
        graph = build(*unit_scenario)
        ids = [n.id for n in graph.nodes]
        assert [n.id for n in simulate(graph).nodes] == ids

    def test_alpha_min_controls_cooling(self, unit_scenario):
        default = simulate(build(*unit_scenario))
        slow = simulate(build(*unit_scenario), config=LayoutConfig(alpha_min=0.5))
        assert positions(default) != positions(slow)

    def test_zero_ticks_keeps_initial_positions(self, unit_scenario):
        graph = build(*unit_scenario)
        before = positions(graph)
        simulate(graph, config=LayoutConfig(ticks=0))
        assert positions(graph) == before

    def test_empty_graph(self):
        graph = simulate(Graph(nodes=[], links=[]))
        assert graph.nodes == []

    def test_coincident_nodes(self):
        payload = CenterPayload(name="u", status="available")
        nodes = [
            Node(id="a", kind=NodeKind.CENTER, label="a", radius=10, fixed=True, payload=payload),
            Node(id="b", kind=NodeKind.PRIMARY, label="b", radius=10, position=(30.0, 0.0), payload=payload),
            Node(id="c", kind=NodeKind.PRIMARY, label="c", radius=10, position=(30.0, 0.0), payload=payload),
        ]
        graph = simulate(Graph(nodes=nodes, links=[]))

        b, c = graph.nodes[1].position, graph.nodes[2].position
        assert all(math.isfinite(v) for v in b + c)
        assert b != c

    def test_dangling_link_rejected(self, factory):
        graph = build(factory.bike(), [], [])
        graph.links.append(Link(source="U1", target="ghost", strength=0.5))
        with pytest.raises(DanglingLinkError):
            simulate(graph)

    def test_link_strength_bounds(self):
        with pytest.raises(ValidationError):
            Link(source="a", target="b", strength=0)
        with pytest.raises(ValidationError):
            Link(source="a", target="b", strength=1.5)
        assert Link(source="a", target="b", strength=1).strength == 1

    def test_pin_rejects_non_finite(self):
        with pytest.raises(ValidationError):
            Pin(node_id="a", x=float("nan"), y=0.0)
        with pytest.raises(ValidationError):
            Pin(node_id="a", x=0.0, y=float("inf"))
