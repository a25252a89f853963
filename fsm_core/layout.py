"""
Pairwise repulsion layout.

Keeps newly inserted nodes from overlapping previously placed ones. This is
not a force-directed solver: each pass walks every unordered pair and pushes
pairs closer than the minimum separation apart symmetrically so that the pair
ends exactly at that distance. Corrections are applied immediately, so later
pairs in a pass see earlier corrections (Gauss-Seidel style).

The pass count is capped; the cap bounds the O(K * n^2) cost of a call rather
than guaranteeing convergence.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .config import LayoutConfig
from .graph import Node

logger = logging.getLogger(__name__)

# Direction used to separate coincident nodes
_FALLBACK_DIRECTION = np.array([1.0, 0.0])


@dataclass(frozen=True)
class RelaxResult:
    points: np.ndarray
    iterations: int
    converged: bool


def relax(points: np.ndarray, min_distance: float = 250.0, max_iterations: int = 64) -> RelaxResult:
    """
    Run repulsion passes over an (n, 2) array of positions.

    Args:
        points: Node positions; not modified
        min_distance: Separation every pair should end up with
        max_iterations: Maximum number of passes

    Returns:
        RelaxResult with the new positions, the number of passes run and
        whether the final pass made no correction
    """
    out = np.array(points, dtype=float, copy=True).reshape(-1, 2)
    n = len(out)

    for iteration in range(1, max_iterations + 1):
        changed = False
        for i in range(n):
            for j in range(i + 1, n):
                delta = out[j] - out[i]
                dist = math.hypot(delta[0], delta[1])
                if dist >= min_distance:
                    continue
                unit = delta / dist if dist > 0 else _FALLBACK_DIRECTION
                push = unit * ((min_distance - dist) / 2.0)
                out[i] -= push
                out[j] += push
                changed = True
        if not changed:
            return RelaxResult(points=out, iterations=iteration, converged=True)

    logger.debug("Repulsion hit the %d pass cap with overlaps remaining (%d nodes)", max_iterations, n)
    return RelaxResult(points=out, iterations=max_iterations, converged=False)


def repel(nodes: Sequence[Node], config: LayoutConfig | None = None) -> List[Node]:
    """
    Return a copy of `nodes` with pairwise minimum separation enforced.

    The input sequence and its nodes are left untouched; order and identifiers
    are preserved.
    """
    cfg = config or LayoutConfig()
    if not nodes:
        return []

    points = np.array([n.position for n in nodes], dtype=float)
    result = relax(points, cfg.min_distance, cfg.max_iterations)
    return [n.moved_to(x, y) for n, (x, y) in zip(nodes, result.points)]


def grid_position(index: int, config: LayoutConfig | None = None) -> Tuple[float, float]:
    """Initial placement for the `index`-th distinct state, row by row."""
    cfg = config or LayoutConfig()
    col = index % cfg.grid_columns
    row = index // cfg.grid_columns
    return (float(col * cfg.grid_spacing_x), float(row * cfg.grid_spacing_y))


def min_pairwise_distance(nodes: Sequence[Node]) -> float:
    """Smallest distance between any two nodes (inf for fewer than two)."""
    if len(nodes) < 2:
        return math.inf
    points = np.array([n.position for n in nodes], dtype=float)
    diffs = points[:, None, :] - points[None, :, :]
    dists = np.sqrt((diffs ** 2).sum(axis=-1))
    iu = np.triu_indices(len(nodes), k=1)
    return float(dists[iu].min())
