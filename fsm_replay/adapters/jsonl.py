from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Iterable, Iterator

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
)

logger = logging.getLogger(__name__)


_TYPE_MAP = {
    "TimelineLoaded": TimelineLoaded,
    "ClockTick": ClockTick,
    "NodeRevealed": NodeRevealed,
    "NodeRetracted": NodeRetracted,
    "NodeInserted": NodeInserted,
    "NodeMoved": NodeMoved,
    "TransitionAdded": TransitionAdded,
    "SessionReset": SessionReset,
}

# Fields stored as tuples in the dataclasses but as lists in JSON
_TUPLE_FIELDS = ("dropped_keys", "unknown_states")


class JsonlEventLog:
    """Session event log persisted as one JSON object per line."""

    def __init__(self, path: str):
        self.path = path

    def write(self, events: Iterable[Event], append: bool = False) -> int:
        count = 0
        with open(self.path, "a" if append else "w", encoding="utf-8") as f:
            for ev in events:
                obj = {"type": type(ev).__name__, **asdict(ev)}
                f.write(json.dumps(obj) + "\n")
                count += 1
        return count

    def stream_events(self) -> Iterator[Event]:
        """Yield events in file order; malformed lines are logged and skipped."""
        with open(self.path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                    if not isinstance(obj, dict):
                        raise ValueError(f"expected an object, got {type(obj).__name__}")
                    typ = obj.pop("type", None)
                    cls = _TYPE_MAP.get(typ)
                    if cls is None:
                        logger.debug("Skipping unknown event type %r", typ)
                        continue
                    for key in _TUPLE_FIELDS:
                        if key in obj:
                            obj[key] = tuple(obj[key])
                    event = cls(**obj)
                except (ValueError, TypeError) as exc:
                    logger.warning("Dropping event log line %d in %s: %s", lineno, self.path, exc)
                    continue
                yield event
