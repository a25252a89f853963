"""
FSM Replay Core Package.

This package contains the pure algorithms that turn a timeline of state
observations and a list of transition records into a progressively revealed
finite-state-machine graph:

- Core data structures (Node, Transition, TimeMarker, Edge, FSMGraph)
- Pairwise repulsion layout (repel)
- Transition deduplication (dedupe)
- State timeline construction (build_timeline)
- Clock-driven playback synchronization (PlaybackSynchronizer)
- Parallel edge materialization (materialize)

Nothing in here performs I/O except configuration loading; malformed input is
filtered by the boundary layer in `fsm_replay.adapters` before it gets here.
"""

# FSM Replay Core Package

__version__ = "0.1.0"

from .enums import PlaybackPhase, ScrubPolicy
from .errors import (
    FSMError,
    ConfigError,
    OriginKeyError,
    TimelineConfigError,
    DuplicateNodeError,
    UnknownNodeError,
    SourceError,
)
from .graph import Node, Transition, TimeMarker, Edge, ObservationBatch, FSMGraph
from .config import ReplayConfig, load_config
from .layout import repel, relax, grid_position
from .transitions import dedupe
from .timeline import build_timeline, TimelineBuilder, parse_origin_key
from .playback import PlaybackSynchronizer
from .edges import materialize
