"""
Exception hierarchy for the FSM replay packages.

Core algorithms do not raise for malformed domain data; these exceptions mark
contract violations (duplicate ids, unknown nodes) and boundary problems
(unparsable origin keys, bad configuration) that callers are expected to
catch and log.
"""

from __future__ import annotations


class FSMError(Exception):
    """Base class for every error raised by `fsm_core` and `fsm_replay`."""


class ConfigError(FSMError):
    """Configuration file or mapping could not be turned into a `ReplayConfig`."""


class OriginKeyError(FSMError, ValueError):
    """An observation batch origin key does not start with a parsable timestamp."""

    def __init__(self, key: object):
        super().__init__(f"Unparsable origin key: {key!r}")
        self.key = key


class TimelineConfigError(FSMError):
    """Observation batches were supplied but none of them carried a valid origin key."""


class DuplicateNodeError(FSMError, ValueError):
    """A node with the same identifier is already visible."""

    def __init__(self, node_id: str):
        super().__init__(f"Node already visible: {node_id!r}")
        self.node_id = node_id


class UnknownNodeError(FSMError, KeyError):
    """The referenced node identifier is not in the visible set."""

    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Node not visible: {self.node_id!r}"


class SourceError(FSMError):
    """An external observation or transition source could not be read as a whole."""
