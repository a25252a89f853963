#!/usr/bin/env python3
"""
FSM Replay CLI

Usage modes:
- Default run: load observations + transitions, advance the clock, print the
  visible graph summary or write JSON
- Ticks: apply a comma separated list of clock values in order
- Replay: re-apply a recorded JSONL event log to a fresh session
- Export: write GraphML or the JSONL event log for external tools
- Utility: list bundled sample data, show version
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from glob import glob
from pathlib import Path
from typing import Any, Dict, List

from fsm_core import __version__
from fsm_core.config import ReplayConfig, load_config
from fsm_core.enums import ScrubPolicy
from fsm_core.errors import ConfigError, FSMError
from fsm_replay.adapters.jsonl import JsonlEventLog
from fsm_replay.session import PlaybackSession
from viz.utils import build_cytoscape_elements


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Replay an FSM observation timeline and dump the visible graph",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Utilities / meta
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v, -vv)")
    p.add_argument("--list-samples", action="store_true", help="List bundled sample JSON sources and exit")

    # Primary input
    p.add_argument("observations", nargs="?", help="Observation batches JSON (e.g., scripts/sample_observations.json)")
    p.add_argument("transitions", nargs="?", help="Transition records JSON (e.g., scripts/sample_transitions.json)")
    p.add_argument("--config", type=str, default="", help="YAML configuration file")

    # Playback
    p.add_argument("--at", type=float, default=None, help="Clock value to advance to (default: end of timeline)")
    p.add_argument("--ticks", type=str, default="", help="Comma separated clock values applied in order")
    p.add_argument("--retract", action="store_true", help="Hide nodes again when the clock moves backward")
    p.add_argument("--replay", type=str, default="", help="Re-apply a JSONL event log (from --events) before any ticks")

    # Output / export
    p.add_argument("--out", type=str, default="", help="Optional output JSON file path")
    p.add_argument("--elements", action="store_true", help="Emit Cytoscape elements instead of a summary")
    p.add_argument("--export-graphml", type=str, default="", help="Export the visible graph to GraphML at given path")
    p.add_argument("--events", type=str, default="", help="Write the session event log as JSONL to given path")

    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> ReplayConfig:
    cfg = load_config(args.config or None)
    if args.retract:
        cfg.playback.scrub_policy = ScrubPolicy.RETRACT
    return cfg


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def find_sample_sources() -> List[str]:
    # Search relative to repo root and this script location
    here = Path(__file__).resolve()
    repo_root = here.parent.parent
    candidates = []
    for base in [repo_root, here.parent]:
        candidates.extend(sorted(glob(str(base / "sample_*.json"))))
        candidates.extend(sorted(glob(str(base / "scripts" / "sample_*.json"))))
    # Deduplicate while preserving order
    seen = set()
    result = []
    for c in candidates:
        if c not in seen:
            seen.add(c)
            result.append(c)
    return result


def parse_ticks(raw: str) -> List[float]:
    return [float(part) for part in raw.split(",") if part.strip()]


def summarize(session: PlaybackSession) -> Dict[str, Any]:
    g = session.graph()
    return {
        "t": session.sync.clock,
        "phase": session.sync.phase.name,
        "duration": session.duration,
        "nodes": {n.id: {"x": n.x, "y": n.y, "label": n.label} for n in session.nodes},
        "edges": [
            {"id": e.id, "source": e.source, "target": e.target, "label": e.label, "offset": e.offset}
            for e in session.edges
        ],
        "stats": g.get_graph_statistics(),
        "unknown_states": session.unknown_states,
        "dropped_keys": session.dropped_keys,
    }


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.version:
        print(__version__)
        return 0

    if args.list_samples:
        print(json.dumps(find_sample_sources(), indent=2))
        return 0

    try:
        cfg = build_config(args)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    obs_path = args.observations or cfg.sources.observations
    tr_path = args.transitions or cfg.sources.transitions
    if not obs_path or not tr_path:
        print("error: missing observation/transition paths (try --list-samples)", file=sys.stderr)
        return 2

    try:
        ticks = parse_ticks(args.ticks)
    except ValueError:
        print(f"error: invalid --ticks value: {args.ticks!r}", file=sys.stderr)
        return 2

    logging.info("Loading observations from %s and transitions from %s", obs_path, tr_path)
    session = PlaybackSession.from_files(obs_path, tr_path, config=cfg)
    if session.config_error is not None:
        print(f"error: {session.config_error}", file=sys.stderr)
        return 1

    if args.replay and not os.path.exists(args.replay):
        print(f"error: event log not found: {args.replay}", file=sys.stderr)
        return 2

    if args.at is not None:
        ticks = ticks or [args.at]
    elif not ticks and not args.replay:
        ticks = [session.duration]
    try:
        if args.replay:
            logging.info("Replaying events from %s", args.replay)
            session.replay(JsonlEventLog(args.replay).stream_events())
        for t in ticks:
            session.tick(t)
    except (ValueError, FSMError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.export_graphml:
        logging.info("Exporting GraphML to %s", args.export_graphml)
        session.graph().export_graphml(args.export_graphml)

    if args.events:
        n = JsonlEventLog(args.events).write(session.history)
        logging.info("Wrote %d events to %s", n, args.events)

    if args.elements:
        result: Any = build_cytoscape_elements(session.nodes, session.edges)
    else:
        result = summarize(session)

    if args.out:
        out_dir = os.path.dirname(os.path.abspath(args.out))
        os.makedirs(out_dir, exist_ok=True)
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2)
    else:
        print(json.dumps(result, indent=2))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
