from typing import Dict, List

import networkx as nx

from fleetgraph.core.errors import DanglingLinkError
from fleetgraph.models.graph import Graph


class GraphEngine:
    """
    networkx view of a layout Graph.

    Nodes are keyed by id and carry their arena index; links become edges
    (multi-edges are kept so link degree matches the link list).
    """

    def __init__(self):
        self.G = nx.MultiDiGraph()
        self.index: Dict[str, int] = {}

    def build_graph(self, graph: Graph):
        """
        Replace internal state with `graph`.

        Raises DanglingLinkError when a link endpoint is not a node id and
        ValueError on duplicate node ids.
        """
        self.G = nx.MultiDiGraph()
        self.index = {}
        for i, node in enumerate(graph.nodes):
            if node.id in self.index:
                raise ValueError(f"Duplicate node id {node.id}")
            self.index[node.id] = i
            self.G.add_node(node.id, index=i, kind=node.kind)
        for link in graph.links:
            for endpoint in (link.source, link.target):
                if endpoint not in self.index:
                    raise DanglingLinkError(link.source, link.target, endpoint)
            self.G.add_edge(link.source, link.target, strength=link.strength)
        return self

    def link_counts(self) -> List[int]:
        """Number of links touching each node, in arena order."""
        counts = [0] * len(self.index)
        for node_id, degree in self.G.degree():
            counts[self.index[node_id]] = degree
        return counts
