"""
Enumerations for the FSM replay core.

This module defines the lifecycle phases of the playback synchronizer and the
policies it can apply when the clock moves backward.
"""

from enum import Enum, auto


class PlaybackPhase(Enum):
    """
    Lifecycle of a `PlaybackSynchronizer`.

    - IDLE: no markers loaded
    - ARMED: markers loaded, nothing fired yet
    - PROGRESSING: some but not all markers fired
    - COMPLETE: every marker fired
    """

    IDLE = auto()
    """No markers loaded."""

    ARMED = auto()
    """Markers loaded and waiting for the clock."""

    PROGRESSING = auto()
    """At least one marker fired, at least one still pending."""

    COMPLETE = auto()
    """All markers fired."""


class ScrubPolicy(Enum):
    """
    What happens to fired markers when the clock moves backward.

    - APPEND_ONLY: fired nodes stay visible for the rest of the session
    - RETRACT: markers later than the new clock value are un-fired
    """

    APPEND_ONLY = auto()
    """Visibility only ever grows (default)."""

    RETRACT = auto()
    """Seeking backward hides nodes whose marker time is after the clock."""
