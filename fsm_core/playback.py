"""
Clock-driven playback synchronizer.

The synchronizer owns the only mutable state of a replay: the set of fired
marker indices and the visible node list. Every clock update fires the pending
markers whose time has been reached, in ascending time order, exactly once
each. Visibility is append-only unless the `RETRACT` scrub policy is selected,
in which case seeking backward hides nodes whose marker lies after the clock.

Phase progression: IDLE (no markers) -> ARMED (markers loaded, none fired) ->
PROGRESSING -> COMPLETE. `reset` is the only way back to ARMED under the
default policy.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, FrozenSet, List, Optional, Sequence, Set

from .config import PlaybackConfig
from .enums import PlaybackPhase, ScrubPolicy
from .errors import DuplicateNodeError, UnknownNodeError
from .graph import Node, TimeMarker

logger = logging.getLogger(__name__)

LayoutFn = Callable[[List[Node]], List[Node]]


class PlaybackSynchronizer:
    """
    Fires time markers against an external playback clock.

    Attributes:
        config: Playback policy settings
    """

    def __init__(self, config: PlaybackConfig | None = None):
        self.config = config or PlaybackConfig()
        self._markers: List[TimeMarker] = []
        self._fired: Set[int] = set()
        self._visible: List[Node] = []
        self._clock: Optional[float] = None
        # node id -> marker index, for nodes that came from a marker
        self._origin: dict = {}

    # --- loading ----------------------------------------------------------
    def load(self, markers: Sequence[TimeMarker]) -> None:
        """Load markers and arm the synchronizer, discarding any previous session."""
        self._markers = list(markers)
        self.reset()

    def reset(self) -> None:
        """Explicit reinitialization: nothing fired, nothing visible, markers kept."""
        self._fired = set()
        self._visible = []
        self._origin = {}
        self._clock = None

    # --- properties -------------------------------------------------------
    @property
    def markers(self) -> List[TimeMarker]:
        return list(self._markers)

    @property
    def fired(self) -> FrozenSet[int]:
        return frozenset(self._fired)

    @property
    def pending(self) -> List[int]:
        return [i for i in range(len(self._markers)) if i not in self._fired]

    @property
    def visible(self) -> List[Node]:
        return list(self._visible)

    @property
    def visible_ids(self) -> Set[str]:
        return {n.id for n in self._visible}

    @property
    def clock(self) -> Optional[float]:
        return self._clock

    @property
    def phase(self) -> PlaybackPhase:
        if not self._markers:
            return PlaybackPhase.IDLE
        if not self._fired:
            return PlaybackPhase.ARMED
        if len(self._fired) < len(self._markers):
            return PlaybackPhase.PROGRESSING
        return PlaybackPhase.COMPLETE

    # --- clock ------------------------------------------------------------
    def tick(self, t: float) -> List[Node]:
        """
        Advance (or move) the clock to `t` and fire every due marker.

        Args:
            t: Playback position in seconds

        Returns:
            Nodes that became visible on this update, in firing order

        Raises:
            ValueError: If `t` is negative, NaN or infinite
        """
        t = float(t)
        if not math.isfinite(t) or t < 0:
            raise ValueError(f"Clock value must be a finite non-negative number, got {t!r}")

        if (
            self.config.scrub_policy is ScrubPolicy.RETRACT
            and self._clock is not None
            and t < self._clock
        ):
            self.retract_after(t)
        self._clock = t

        due = sorted(
            (i for i in range(len(self._markers)) if i not in self._fired and self._markers[i].time <= t),
            key=lambda i: (self._markers[i].time, i),
        )
        fresh: List[Node] = []
        for i in due:
            node = self._markers[i].node
            self._fired.add(i)
            if node.id in self.visible_ids:
                # Already inserted by hand; the marker counts as fired
                logger.debug("Marker %d for visible node %s fired without insertion", i, node.id)
                continue
            self._visible.append(node)
            self._origin[node.id] = i
            fresh.append(node)

        if fresh:
            logger.debug("t=%.3f fired %d marker(s): %s", t, len(fresh), ", ".join(n.id for n in fresh))
        return fresh

    def retract_after(self, t: float) -> List[Node]:
        """
        Un-fire markers later than `t` and hide their nodes.

        Only used by the RETRACT scrub policy; returns the removed nodes.
        """
        late = {i for i in self._fired if self._markers[i].time > t}
        if not late:
            return []
        removed = [n for n in self._visible if self._origin.get(n.id) in late]
        removed_ids = {n.id for n in removed}
        self._visible = [n for n in self._visible if n.id not in removed_ids]
        for nid in removed_ids:
            del self._origin[nid]
        self._fired -= late
        logger.debug("t=%.3f retracted %d node(s)", t, len(removed))
        return removed

    def marker_index(self, node_id: str) -> Optional[int]:
        """Index of the marker that revealed `node_id`, or None for inserted nodes."""
        return self._origin.get(node_id)

    # --- direct manipulation -------------------------------------------------
    def insert(self, node: Node) -> None:
        """Make a node visible outside the timeline (user insertion)."""
        if node.id in self.visible_ids:
            raise DuplicateNodeError(node.id)
        self._visible.append(node)

    def move(self, node_id: str, x: float, y: float) -> Node:
        """Record a manual drag; the new position is the baseline for the next relayout."""
        for idx, node in enumerate(self._visible):
            if node.id == node_id:
                moved = node.moved_to(x, y)
                self._visible[idx] = moved
                return moved
        raise UnknownNodeError(node_id)

    def relayout(self, layout: LayoutFn) -> List[Node]:
        """Replace visible positions with `layout(visible)`; ids and order must be preserved."""
        laid_out = list(layout(list(self._visible)))
        if [n.id for n in laid_out] != [n.id for n in self._visible]:
            raise ValueError("Layout function must preserve node identifiers and order")
        self._visible = laid_out
        return list(laid_out)
