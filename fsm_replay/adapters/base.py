from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Iterator, List, TypeVar

from fsm_core.errors import FSMError
from fsm_core.graph import ObservationBatch, Transition

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ObservationSource(ABC):
    @abstractmethod
    def stream_batches(self) -> Iterator[ObservationBatch]:
        ...


class TransitionSource(ABC):
    @abstractmethod
    def stream_transitions(self) -> Iterator[Transition]:
        ...


class InMemoryObservationSource(ObservationSource):
    def __init__(self, batches: Iterable[ObservationBatch]):
        self.batches = list(batches)

    def stream_batches(self) -> Iterator[ObservationBatch]:
        return iter(self.batches)


class InMemoryTransitionSource(TransitionSource):
    def __init__(self, transitions: Iterable[Transition]):
        self.transitions = list(transitions)

    def stream_transitions(self) -> Iterator[Transition]:
        return iter(self.transitions)


def _collect(name: str, stream: Callable[[], Iterator[T]]) -> List[T]:
    # Drain the whole stream before handing anything over: a source that fails
    # half way yields nothing rather than a partial collection.
    try:
        return list(stream())
    except (OSError, json.JSONDecodeError, UnicodeDecodeError, FSMError) as exc:
        logger.error("Failed to load %s: %s", name, exc)
        return []


def load_observations(source: ObservationSource) -> List[ObservationBatch]:
    """Read every batch from `source`, or return [] if the source cannot be read."""
    return _collect(f"observations from {source!r}", source.stream_batches)


def load_transitions(source: TransitionSource) -> List[Transition]:
    """Read every transition from `source`, or return [] if the source cannot be read."""
    return _collect(f"transitions from {source!r}", source.stream_transitions)
