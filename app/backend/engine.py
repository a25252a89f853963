from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from fsm_core.config import ReplayConfig, load_config
from fsm_replay.models.events import SessionFrame
from fsm_replay.session import PlaybackSession
from viz.utils import build_cytoscape_elements, split_elements

logger = logging.getLogger(__name__)

CONFIG_ENV = "FSM_REPLAY_CONFIG"
# Frames buffered per websocket client before new frames are dropped
SUBSCRIBER_QUEUE_SIZE = 64


@dataclass
class PlaybackState:
    phase: str
    clock: Optional[float]
    duration: float
    fired: List[int] = field(default_factory=list)
    visible: List[str] = field(default_factory=list)
    unknown_states: List[str] = field(default_factory=list)
    dropped_keys: List[str] = field(default_factory=list)
    config_error: Optional[str] = None


class InMemoryPlaybackEngine:
    """
    Holds one `PlaybackSession` for the service and fans frames out to subscribers.

    - tick(): applies a clock update
    - add_node() / move_node() / add_transition(): user interaction from the rendering surface
    - reset(): explicit reinitialization
    - subscribe(): returns an asyncio.Queue receiving every new frame
    """

    def __init__(self, session: PlaybackSession | None = None, config: ReplayConfig | None = None) -> None:
        self._session = session or self._build_default_session(config)
        self._lock = asyncio.Lock()
        self._subscribers: Set[asyncio.Queue] = set()

    # --- session -----------------------------------------------------------
    @staticmethod
    def _build_default_session(config: ReplayConfig | None) -> PlaybackSession:
        cfg = config or load_config(os.environ.get(CONFIG_ENV))
        if cfg.sources.observations and cfg.sources.transitions:
            return PlaybackSession.from_files(cfg.sources.observations, cfg.sources.transitions, config=cfg)
        logger.warning("No observation/transition sources configured; starting with an empty timeline")
        return PlaybackSession([], [], config=cfg)

    @property
    def session(self) -> PlaybackSession:
        return self._session

    def graph(self) -> Dict[str, List[Dict[str, Any]]]:
        return split_elements(build_cytoscape_elements(self._session.nodes, self._session.edges))

    def state(self) -> PlaybackState:
        s = self._session
        return PlaybackState(
            phase=s.sync.phase.name,
            clock=s.sync.clock,
            duration=s.duration,
            fired=sorted(s.sync.fired),
            visible=[n.id for n in s.nodes],
            unknown_states=list(s.unknown_states),
            dropped_keys=list(s.dropped_keys),
            config_error=str(s.config_error) if s.config_error else None,
        )

    # --- pubsub ------------------------------------------------------------
    def subscribe(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        self._subscribers.add(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        self._subscribers.discard(q)

    async def _broadcast(self, frame: SessionFrame) -> None:
        for q in list(self._subscribers):
            try:
                q.put_nowait(frame)
            except asyncio.QueueFull:
                logger.debug("Dropping frame for a full subscriber queue")

    # --- signals -----------------------------------------------------------
    async def tick(self, t: float) -> SessionFrame:
        async with self._lock:
            frame = self._session.tick(t)
        await self._broadcast(frame)
        return frame

    async def add_node(self, node_id: Optional[str] = None, label: Optional[str] = None) -> SessionFrame:
        async with self._lock:
            self._session.add_node(node_id, label=label)
            frame = self._session.frame()
        await self._broadcast(frame)
        return frame

    async def move_node(self, node_id: str, x: float, y: float) -> SessionFrame:
        async with self._lock:
            self._session.move_node(node_id, x, y)
            frame = self._session.frame()
        await self._broadcast(frame)
        return frame

    async def add_transition(self, source: str, dest: str, trigger: str) -> Tuple[bool, SessionFrame]:
        async with self._lock:
            added = self._session.add_transition(source, dest, trigger)
            frame = self._session.frame()
        if added:
            await self._broadcast(frame)
        return added, frame

    async def reset(self) -> SessionFrame:
        async with self._lock:
            frame = self._session.reset(reason="api")
        await self._broadcast(frame)
        return frame


def frame_payload(frame: SessionFrame) -> Dict[str, Any]:
    """JSON-ready representation of a frame for HTTP and websocket clients."""
    return {
        "t": frame.t,
        "phase": frame.phase.name,
        "revealed": list(frame.revealed),
        **split_elements(build_cytoscape_elements(frame.nodes, frame.edges)),
    }
