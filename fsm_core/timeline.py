"""
State timeline construction.

Turns observation batches (state names observed together in one recording
session) into time markers: each distinct state appears once, at the playback
time of the earliest batch that observed it. Playback time is measured in
seconds from the earliest parsable batch.

Batches whose origin key cannot be parsed are dropped and logged; if none can
be parsed the timeline is empty and the builder records a
`TimelineConfigError` for its caller.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Iterable, List, Optional, Set, Tuple

from .config import LayoutConfig, TimelineConfig
from .errors import OriginKeyError, TimelineConfigError
from .graph import Node, ObservationBatch, TimeMarker
from .layout import grid_position

logger = logging.getLogger(__name__)


def parse_origin_key(key: str, config: TimelineConfig | None = None) -> datetime:
    """
    Extract the timestamp prefix of a session/folder identifier.

    Example: ``20240101_000005_run2`` -> ``datetime(2024, 1, 1, 0, 0, 5)``

    Raises:
        OriginKeyError: If the key does not start with a parsable timestamp
    """
    cfg = config or TimelineConfig()
    if not isinstance(key, str):
        raise OriginKeyError(key)
    m = re.match(cfg.origin_key_pattern, key)
    if m is None:
        raise OriginKeyError(key)
    try:
        return datetime.strptime(m.group(1), cfg.origin_key_format)
    except ValueError as exc:
        raise OriginKeyError(key) from exc


def _unique_in_order(states: Iterable[str]) -> List[str]:
    seen: Set[str] = set()
    out: List[str] = []
    for s in states:
        if s not in seen:
            seen.add(s)
            out.append(s)
    return out


class TimelineBuilder:
    """
    Builds time markers from observation batches.

    After `build` returns, `dropped_keys` lists the origin keys that failed to
    parse and `config_error` is set when batches were supplied but none parsed.
    """

    def __init__(self, config: TimelineConfig | None = None, layout: LayoutConfig | None = None):
        self.config = config or TimelineConfig()
        self.layout = layout or LayoutConfig()
        self.dropped_keys: List[str] = []
        self.config_error: Optional[TimelineConfigError] = None
        self.anchor: Optional[datetime] = None

    def _parse_batches(self, batches: Iterable[ObservationBatch]) -> List[Tuple[datetime, ObservationBatch]]:
        parsed = []
        for batch in batches:
            try:
                ts = parse_origin_key(batch.origin_key, self.config)
            except OriginKeyError as exc:
                logger.warning("Dropping observation batch: %s", exc)
                self.dropped_keys.append(batch.origin_key)
                continue
            parsed.append((ts, batch))
        return parsed

    def build(self, batches: Iterable[ObservationBatch]) -> List[TimeMarker]:
        self.dropped_keys = []
        self.config_error = None
        self.anchor = None

        batches = list(batches)
        parsed = self._parse_batches(batches)
        if not parsed:
            if batches:
                self.config_error = TimelineConfigError(
                    f"None of {len(batches)} observation batches has a parsable origin key"
                )
                logger.error("%s", self.config_error)
            return []

        # sorted() is stable, so batches with equal timestamps keep input order
        parsed = sorted(parsed, key=lambda item: item[0])
        self.anchor = parsed[0][0]

        markers: List[TimeMarker] = []
        seen: Set[str] = set()
        for ts, batch in parsed:
            rel = (ts - self.anchor).total_seconds()
            for state in _unique_in_order(batch.states):
                if state in seen:
                    continue
                x, y = grid_position(len(seen), self.layout)
                seen.add(state)
                node = Node(
                    id=state,
                    x=x,
                    y=y,
                    label=state,
                    meta={"batch": batch.origin_key, "observed_at": ts.isoformat(), "t": rel},
                )
                markers.append(TimeMarker(time=rel, node=node))

        logger.info(
            "Timeline built: %d markers from %d batches (%d dropped)",
            len(markers),
            len(parsed),
            len(self.dropped_keys),
        )
        return markers


def build_timeline(
    batches: Iterable[ObservationBatch],
    config: TimelineConfig | None = None,
    layout: LayoutConfig | None = None,
) -> List[TimeMarker]:
    """Convenience wrapper around `TimelineBuilder.build`."""
    return TimelineBuilder(config, layout).build(batches)
