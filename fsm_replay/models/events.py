from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from fsm_core.enums import PlaybackPhase
from fsm_core.graph import Edge, Node


@dataclass(frozen=True)
class TimelineLoaded:
    markers: int
    transitions: int
    dropped_keys: Tuple[str, ...] = ()
    unknown_states: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ClockTick:
    t: float


@dataclass(frozen=True)
class NodeRevealed:
    node_id: str
    t: float
    marker_index: int


@dataclass(frozen=True)
class NodeRetracted:
    node_id: str
    t: float
    marker_index: Optional[int] = None


@dataclass(frozen=True)
class NodeInserted:
    node_id: str
    x: float = 0.0
    y: float = 0.0
    label: Optional[str] = None


@dataclass(frozen=True)
class NodeMoved:
    node_id: str
    x: float
    y: float


@dataclass(frozen=True)
class TransitionAdded:
    source: str
    dest: str
    trigger: str


@dataclass(frozen=True)
class SessionReset:
    reason: Optional[str] = None


Event = Union[
    TimelineLoaded,
    ClockTick,
    NodeRevealed,
    NodeRetracted,
    NodeInserted,
    NodeMoved,
    TransitionAdded,
    SessionReset,
]


@dataclass(frozen=True)
class SessionFrame:
    """What the rendering surface receives after each clock or user signal."""

    t: Optional[float]
    phase: PlaybackPhase
    nodes: List[Node]
    edges: List[Edge]
    revealed: List[str] = field(default_factory=list)
