"""
Graph data structures for FSM replay.

This module defines the value types that flow through the replay pipeline:
- Node: a visible FSM state with a 2-D position
- Transition: an immutable (source, dest, trigger) triple
- TimeMarker: the playback time at which a node becomes visible
- ObservationBatch: one batch of observed state names keyed by its origin
- Edge: a materialized transition carrying its parallel-edge offset
- FSMGraph: a read-only snapshot of visible nodes and edges with export helpers
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Sequence, Tuple

import networkx as nx


@dataclass(frozen=True)
class Node:
    """
    A state of the finite-state machine placed on the canvas.

    Nodes are immutable; the layout engine produces repositioned copies via
    `moved_to`. Provenance metadata is carried in `meta` and does not take part
    in equality.

    Attributes:
        id: Identifier, unique within the visible set
        x: Horizontal canvas position
        y: Vertical canvas position
        label: Display string
        meta: Provenance such as the source batch and observation time
    """

    id: str
    """Identifier, unique within the visible set."""

    x: float = 0.0
    """Horizontal canvas position."""

    y: float = 0.0
    """Vertical canvas position."""

    label: str = ""
    """Display string; defaults to the identifier."""

    meta: Dict[str, Any] = field(default_factory=dict, compare=False)
    """Provenance metadata (batch, observed_at, t)."""

    def __post_init__(self):
        if not self.label:
            object.__setattr__(self, "label", self.id)

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def moved_to(self, x: float, y: float) -> "Node":
        """Return a copy of this node at (x, y)."""
        return replace(self, x=float(x), y=float(y))


@dataclass(frozen=True)
class Transition:
    """
    A directed FSM transition.

    Two transitions with identical (source, dest, trigger) triples are the same
    transition regardless of where they were read from.
    """

    source: str
    dest: str
    trigger: str

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.source, self.dest, self.trigger)


@dataclass(frozen=True)
class TimeMarker:
    """The playback time (seconds from the timeline anchor) at which `node` appears."""

    time: float
    node: Node


@dataclass(frozen=True)
class ObservationBatch:
    """State names observed together in one recording session.

    `origin_key` is the session/folder identifier whose prefix encodes the
    batch timestamp (``YYYYMMDD_HHMMSS``).
    """

    origin_key: str
    states: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Edge:
    """
    A transition made visible by the edge materializer.

    Attributes:
        id: Identifier, stable only within a single materialization call
        source: Source node id
        target: Destination node id
        label: Trigger label
        offset: Perpendicular offset fanning out parallel edges (0 for singletons)
    """

    id: str
    source: str
    target: str
    label: str
    offset: float = 0.0


class FSMGraph:
    """
    Snapshot of the currently visible FSM graph.

    Built from the visible node list and the materialized edge list. Provides
    conversion to NetworkX for export and simple statistics for monitoring.

    Attributes:
        nodes: Dictionary mapping node IDs to Node objects, in visibility order
        edges: List of materialized edges
    """

    def __init__(self, nodes: Sequence[Node] = (), edges: Sequence[Edge] = ()):
        self.nodes: Dict[str, Node] = {n.id: n for n in nodes}
        self.edges: List[Edge] = list(edges)

    def to_networkx(self) -> "nx.MultiDiGraph":
        """
        Convert the snapshot to a NetworkX MultiDiGraph.

        A multigraph is used so that parallel transitions between the same
        ordered pair are kept as distinct edges.

        Returns:
            NetworkX MultiDiGraph keyed by edge id
        """
        G = nx.MultiDiGraph()

        for node_id, node in self.nodes.items():
            node_attrs: Dict[str, Any] = {"label": node.label, "x": node.x, "y": node.y}
            for k, v in node.meta.items():
                # GraphML only accepts scalar attribute values
                if isinstance(v, (str, int, float, bool)):
                    node_attrs[f"meta_{k}"] = v
            G.add_node(node_id, **node_attrs)

        for edge in self.edges:
            G.add_edge(edge.source, edge.target, key=edge.id, label=edge.label, offset=edge.offset)

        return G

    def export_graphml(self, filepath: str) -> None:
        """
        Export the snapshot to GraphML.

        Args:
            filepath: Path where to save the GraphML file
        """
        nx.write_graphml(self.to_networkx(), filepath)

    def get_graph_statistics(self) -> Dict[str, Any]:
        """
        Summarize the snapshot for logging and the CLI.

        Returns:
            Dictionary with node/edge counts, parallel group sizes and the
            bounding box of node positions (None when empty)
        """
        groups: Dict[Tuple[str, str], int] = {}
        for e in self.edges:
            groups[(e.source, e.target)] = groups.get((e.source, e.target), 0) + 1

        bbox = None
        if self.nodes:
            xs = [n.x for n in self.nodes.values()]
            ys = [n.y for n in self.nodes.values()]
            bbox = {"min_x": min(xs), "min_y": min(ys), "max_x": max(xs), "max_y": max(ys)}

        return {
            "nodes": len(self.nodes),
            "edges": len(self.edges),
            "edge_groups": len(groups),
            "parallel_groups": sum(1 for n in groups.values() if n > 1),
            "largest_group": max(groups.values()) if groups else 0,
            "bounding_box": bbox,
        }
