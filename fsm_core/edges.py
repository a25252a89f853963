"""
Edge materialization.

Computes the visible edge set from scratch: keep transitions whose endpoints
are both visible, group them by ordered (source, dest) pair and give each
member of a group a symmetric offset centered on zero so parallel edges fan
out instead of stacking. Edge ids are sequential and only stable within one
call; consumers replace their whole edge list every time.
"""

from __future__ import annotations

from typing import Collection, Dict, Iterable, List, Tuple

from .graph import Edge, Transition

Pair = Tuple[str, str]


def group_offsets(n: int, step: float = 0.5) -> List[float]:
    """Offsets for a group of `n` parallel edges, e.g. n=3 -> [-step, 0, step]."""
    center = (n - 1) / 2.0
    return [(i - center) * step for i in range(n)]


def materialize(visible_ids: Collection[str], transitions: Iterable[Transition], step: float = 0.5) -> List[Edge]:
    """
    Build the edges that can be drawn for the current visible node set.

    Args:
        visible_ids: Identifiers of the visible nodes
        transitions: Deduplicated transitions
        step: Offset between neighbouring parallel edges

    Returns:
        One Edge per drawable transition, in input order
    """
    visible = set(visible_ids)
    drawable = [t for t in transitions if t.source in visible and t.dest in visible]

    # Direction matters: (A, B) and (B, A) are separate groups
    groups: Dict[Pair, List[int]] = {}
    for idx, t in enumerate(drawable):
        groups.setdefault((t.source, t.dest), []).append(idx)

    offsets: Dict[int, float] = {}
    for members in groups.values():
        for idx, off in zip(members, group_offsets(len(members), step)):
            offsets[idx] = off

    return [
        Edge(id=f"e-{idx}", source=t.source, target=t.dest, label=t.trigger, offset=offsets[idx])
        for idx, t in enumerate(drawable)
    ]


def edge_groups(edges: Iterable[Edge]) -> Dict[Pair, List[Edge]]:
    """Group materialized edges by ordered (source, target) pair."""
    groups: Dict[Pair, List[Edge]] = {}
    for e in edges:
        groups.setdefault((e.source, e.target), []).append(e)
    return groups
