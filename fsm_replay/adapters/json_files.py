"""
JSON file sources for observation batches and transition records.

Observation files are either a list of records

    [{"session": "20240101_000000_a", "states": ["A", "B"]}, ...]

(the key may also be spelled "origin_key", "folder" or "t") or an object
mapping origin key to its list of states.

Transition files are either a list of {"trigger", "source", "dest"} records
("destination" and "target" are accepted for "dest") or an FSM definition
object with a "transitions" list.

Malformed records are dropped with a warning. A file that cannot be read or
has the wrong top-level shape raises, which `load_observations` /
`load_transitions` turn into an empty collection.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator, List, Optional, Tuple

from fsm_core.errors import SourceError
from fsm_core.graph import ObservationBatch, Transition

from fsm_replay.adapters.base import ObservationSource, TransitionSource

logger = logging.getLogger(__name__)

_ORIGIN_KEYS = ("origin_key", "session", "folder", "t")
_DEST_KEYS = ("dest", "destination", "target")


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _states_from(raw: Any, where: str) -> Optional[Tuple[str, ...]]:
    if not isinstance(raw, list):
        logger.warning("Dropping %s: 'states' is not a list", where)
        return None
    states = [s for s in raw if isinstance(s, str) and s]
    if len(states) != len(raw):
        logger.warning("%s: ignored %d non-string or empty state name(s)", where, len(raw) - len(states))
    return tuple(states)


class JsonObservationSource(ObservationSource):
    def __init__(self, path: str):
        self.path = path

    def __repr__(self) -> str:
        return f"JsonObservationSource({self.path!r})"

    def stream_batches(self) -> Iterator[ObservationBatch]:
        data = _read_json(self.path)

        if isinstance(data, dict):
            for key, raw_states in data.items():
                states = _states_from(raw_states, f"batch {key!r}")
                if states is not None:
                    yield ObservationBatch(origin_key=key, states=states)
            return

        if not isinstance(data, list):
            raise SourceError(f"{self.path}: expected a list or object of observation batches")

        for idx, rec in enumerate(data):
            if not isinstance(rec, dict):
                logger.warning("Dropping observation record %d: not an object", idx)
                continue
            key = next((rec[k] for k in _ORIGIN_KEYS if k in rec), None)
            if not isinstance(key, str):
                logger.warning("Dropping observation record %d: missing origin key", idx)
                continue
            states = _states_from(rec.get("states"), f"record {idx} ({key})")
            if states is not None:
                yield ObservationBatch(origin_key=key, states=states)


class JsonTransitionSource(TransitionSource):
    def __init__(self, path: str):
        self.path = path

    def __repr__(self) -> str:
        return f"JsonTransitionSource({self.path!r})"

    def stream_transitions(self) -> Iterator[Transition]:
        data = _read_json(self.path)
        if isinstance(data, dict):
            data = data.get("transitions")
        if not isinstance(data, list):
            raise SourceError(f"{self.path}: expected a list of transitions")

        for idx, rec in enumerate(data):
            t = self._parse_record(idx, rec)
            if t is not None:
                yield t

    @staticmethod
    def _parse_record(idx: int, rec: Any) -> Optional[Transition]:
        if not isinstance(rec, dict):
            logger.warning("Dropping transition record %d: not an object", idx)
            return None
        dest = next((rec[k] for k in _DEST_KEYS if k in rec), None)
        fields: List[Any] = [rec.get("source"), dest, rec.get("trigger")]
        if not all(isinstance(v, str) and v for v in fields):
            logger.warning("Dropping transition record %d: needs string source, dest and trigger", idx)
            return None
        return Transition(source=fields[0], dest=fields[1], trigger=fields[2])
