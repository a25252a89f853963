from .events import (
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
