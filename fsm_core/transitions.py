"""
Transition deduplication and namespace checks.
"""

from __future__ import annotations

import logging
from typing import Collection, Iterable, List, Set

from .graph import Transition

logger = logging.getLogger(__name__)


def dedupe(transitions: Iterable[Transition]) -> List[Transition]:
    """
    Drop repeated transitions, keeping the first occurrence of each triple.

    The key is the exact (source, dest, trigger) triple: no case folding or
    whitespace trimming.
    """
    seen: Set[tuple] = set()
    result: List[Transition] = []
    for t in transitions:
        if t.key in seen:
            continue
        seen.add(t.key)
        result.append(t)
    return result


def endpoints(transitions: Iterable[Transition]) -> Set[str]:
    """All state identifiers referenced as a source or destination."""
    ids: Set[str] = set()
    for t in transitions:
        ids.add(t.source)
        ids.add(t.dest)
    return ids


def unknown_endpoints(transitions: Iterable[Transition], known_ids: Collection[str]) -> List[str]:
    """
    Identifiers used by `transitions` that the observation source never mentions.

    Both sources must share one namespace; transitions touching an unknown id
    can never be materialized.

    Returns:
        Unknown identifiers in first-seen order
    """
    known = set(known_ids)
    missing: List[str] = []
    for t in transitions:
        for nid in (t.source, t.dest):
            if nid not in known and nid not in missing:
                missing.append(nid)
    if missing:
        logger.warning("Transitions reference %d state(s) never observed: %s", len(missing), ", ".join(missing))
    return missing
