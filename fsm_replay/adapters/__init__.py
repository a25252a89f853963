from .base import ObservationSource, TransitionSource, load_observations, load_transitions
from .json_files import JsonObservationSource, JsonTransitionSource
from .jsonl import JsonlEventLog
