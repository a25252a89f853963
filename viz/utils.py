"""
Lightweight visualization utilities decoupled from any rendering toolkit to enable testing.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from fsm_core.graph import Edge, Node


def build_cytoscape_elements(nodes: Iterable[Node], edges: Iterable[Edge]) -> List[Dict[str, Any]]:
    """Convert visible nodes and materialized edges into Cytoscape-compatible elements.

    Node data carries provenance when present:
    - t: playback time the node was revealed at
    - batch: origin key of the observation batch
    - inserted: True for nodes added by hand

    Edge data carries the parallel-edge `offset` so the surface can fan out
    edges sharing a source/target pair.
    """
    elements: List[Dict[str, Any]] = []

    for node in nodes:
        data: Dict[str, Any] = {"id": node.id, "label": node.label}
        for key in ("t", "batch", "inserted"):
            if key in node.meta:
                data[key] = node.meta[key]
        elements.append({
            "data": data,
            "position": {"x": float(node.x), "y": float(node.y)},
        })

    for e in edges:
        elements.append({
            "data": {
                "id": e.id,
                "source": e.source,
                "target": e.target,
                "label": e.label,
                "offset": float(e.offset),
            }
        })

    return elements


def split_elements(elements: Iterable[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Separate a flat element list into {"nodes": [...], "edges": [...]}."""
    out: Dict[str, List[Dict[str, Any]]] = {"nodes": [], "edges": []}
    for el in elements:
        out["edges" if "source" in el["data"] else "nodes"].append(el)
    return out
