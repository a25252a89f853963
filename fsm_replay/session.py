"""
Playback session: the single point where replay state changes.

A session wires the core algorithms together. Every external signal (clock
tick, node insertion, drag) is recorded in an append-only event history,
applied to the `PlaybackSynchronizer`, followed by a repulsion relayout of the
whole visible node list and a fresh materialization of the edge set. The
resulting `SessionFrame` is what a rendering surface draws.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from fsm_core.config import ReplayConfig
from fsm_core.edges import materialize
from fsm_core.errors import TimelineConfigError, UnknownNodeError
from fsm_core.graph import Edge, FSMGraph, Node, TimeMarker, Transition
from fsm_core.layout import repel
from fsm_core.playback import PlaybackSynchronizer
from fsm_core.timeline import TimelineBuilder
from fsm_core.transitions import dedupe, unknown_endpoints

from fsm_replay.adapters.base import ObservationSource, TransitionSource, load_observations, load_transitions
from fsm_replay.adapters.json_files import JsonObservationSource, JsonTransitionSource
from fsm_replay.models.events import (
    Event,
    TimelineLoaded,
    ClockTick,
    NodeRevealed,
    NodeRetracted,
    NodeInserted,
    NodeMoved,
    TransitionAdded,
    SessionReset,
    SessionFrame,
)

logger = logging.getLogger(__name__)


class PlaybackSession:
    """
    Drives a progressively revealed FSM graph from clock ticks and user input.

    Attributes:
        config: Replay configuration
        transitions: Deduplicated transitions
        sync: The playback synchronizer owning fired markers and visible nodes
        history: Append-only log of every event applied to this session
        unknown_states: Transition endpoints never mentioned by the observations
        dropped_keys: Origin keys dropped while building the timeline
        config_error: Set when observations were supplied but none had a valid origin key
    """

    def __init__(
        self,
        markers: Sequence[TimeMarker],
        transitions: Iterable[Transition],
        config: ReplayConfig | None = None,
        dropped_keys: Sequence[str] = (),
        config_error: Optional[TimelineConfigError] = None,
    ):
        self.config = config or ReplayConfig()
        self.transitions: List[Transition] = dedupe(transitions)
        self.sync = PlaybackSynchronizer(self.config.playback)
        self.sync.load(markers)
        self.dropped_keys = list(dropped_keys)
        self.config_error = config_error
        self.unknown_states = unknown_endpoints(self.transitions, {m.node.id for m in markers})
        self.history: List[Event] = []
        self._edges: List[Edge] = []

        self.history.append(
            TimelineLoaded(
                markers=len(markers),
                transitions=len(self.transitions),
                dropped_keys=tuple(self.dropped_keys),
                unknown_states=tuple(self.unknown_states),
            )
        )

    # --- construction -----------------------------------------------------
    @classmethod
    def from_sources(
        cls,
        observations: ObservationSource,
        transitions: TransitionSource,
        config: ReplayConfig | None = None,
    ) -> "PlaybackSession":
        """Load both external sources and build a session from whatever loaded cleanly."""
        cfg = config or ReplayConfig()
        batches = load_observations(observations)
        records = load_transitions(transitions)

        builder = TimelineBuilder(cfg.timeline, cfg.layout)
        markers = builder.build(batches)
        return cls(
            markers,
            records,
            config=cfg,
            dropped_keys=builder.dropped_keys,
            config_error=builder.config_error,
        )

    @classmethod
    def from_files(cls, observations_path: str, transitions_path: str, config: ReplayConfig | None = None) -> "PlaybackSession":
        return cls.from_sources(
            JsonObservationSource(observations_path),
            JsonTransitionSource(transitions_path),
            config=config,
        )

    # --- accessors --------------------------------------------------------
    @property
    def nodes(self) -> List[Node]:
        return self.sync.visible

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    @property
    def duration(self) -> float:
        """Time of the last marker (0 for an empty timeline)."""
        markers = self.sync.markers
        return max((m.time for m in markers), default=0.0)

    def frame(self, revealed: Optional[List[str]] = None) -> SessionFrame:
        return SessionFrame(
            t=self.sync.clock,
            phase=self.sync.phase,
            nodes=self.sync.visible,
            edges=list(self._edges),
            revealed=list(revealed or []),
        )

    def graph(self) -> FSMGraph:
        return FSMGraph(self.sync.visible, self._edges)

    # --- signals ----------------------------------------------------------
    def tick(self, t: float) -> SessionFrame:
        """Apply a clock update and return the resulting frame."""
        before = {n.id: self.sync.marker_index(n.id) for n in self.sync.visible}
        fresh = self.sync.tick(t)
        t = float(t)
        self.history.append(ClockTick(t=t))

        after = self.sync.visible_ids
        for nid in (nid for nid in before if nid not in after):
            self.history.append(NodeRetracted(node_id=nid, t=t, marker_index=before[nid]))
        for node in fresh:
            self.history.append(NodeRevealed(node_id=node.id, t=t, marker_index=self.sync.marker_index(node.id)))

        if fresh or len(after) != len(before):
            self._refresh()
        return self.frame(revealed=[n.id for n in fresh])

    def add_node(self, node_id: Optional[str] = None, label: Optional[str] = None, x: float = 0.0, y: float = 0.0) -> Node:
        """Insert a node by hand; defaults to ``state-<n>`` at the origin."""
        if node_id is None:
            taken = self.sync.visible_ids
            n = len(taken) + 1
            while f"state-{n}" in taken:
                n += 1
            node_id = f"state-{n}"

        node = Node(id=node_id, x=float(x), y=float(y), label=label or node_id, meta={"inserted": True})
        self.sync.insert(node)
        self.history.append(NodeInserted(node_id=node.id, x=node.x, y=node.y, label=label))
        self._refresh()
        return next(n for n in self.sync.visible if n.id == node_id)

    def move_node(self, node_id: str, x: float, y: float) -> Node:
        """Feed a manual drag back in as the baseline for the next repulsion pass."""
        self.sync.move(node_id, x, y)
        self.history.append(NodeMoved(node_id=node_id, x=float(x), y=float(y)))
        self._refresh()
        return next(n for n in self.sync.visible if n.id == node_id)

    def add_transition(self, source: str, dest: str, trigger: str) -> bool:
        """
        Connect two visible nodes with a new transition.

        Args:
            source: Id of the visible source node
            dest: Id of the visible destination node
            trigger: Transition label

        Returns:
            True if the transition was added, False if the same triple already existed

        Raises:
            UnknownNodeError: If either endpoint is not visible
        """
        visible = self.sync.visible_ids
        for nid in (source, dest):
            if nid not in visible:
                raise UnknownNodeError(nid)

        transition = Transition(source, dest, trigger)
        if any(t.key == transition.key for t in self.transitions):
            logger.debug("Transition %s already known", transition.key)
            return False
        self.transitions.append(transition)
        self.history.append(TransitionAdded(source=source, dest=dest, trigger=trigger))
        self._refresh()
        return True

    def reset(self, reason: Optional[str] = None) -> SessionFrame:
        """Explicit reinitialization: nothing fired, nothing visible."""
        self.sync.reset()
        self._edges = []
        self.history.append(SessionReset(reason=reason))
        return self.frame()

    def replay(self, events: Iterable[Event]) -> SessionFrame:
        """
        Re-apply a recorded event log to this session.

        Only input events (clock ticks, insertions, moves, connections, resets) are applied;
        derived events (reveals, retractions, timeline loads) are regenerated.
        """
        for ev in events:
            if isinstance(ev, ClockTick):
                self.tick(ev.t)
            elif isinstance(ev, NodeInserted):
                self.add_node(ev.node_id, label=ev.label, x=ev.x, y=ev.y)
            elif isinstance(ev, NodeMoved):
                self.move_node(ev.node_id, ev.x, ev.y)
            elif isinstance(ev, TransitionAdded):
                self.add_transition(ev.source, ev.dest, ev.trigger)
            elif isinstance(ev, SessionReset):
                self.reset(ev.reason)
        return self.frame()

    # --- internals --------------------------------------------------------
    def _refresh(self) -> None:
        # append-then-relayout, then rebuild every edge
        self.sync.relayout(lambda nodes: repel(nodes, self.config.layout))
        self._edges = materialize(self.sync.visible_ids, self.transitions, self.config.edges.step)
        logger.debug("Refreshed: %d nodes, %d edges", len(self.sync.visible), len(self._edges))
