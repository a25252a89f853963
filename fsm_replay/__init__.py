"""
FSM replay boundary and orchestration package.

This package provides:
- JSON adapters that load observation batches and transition records
- An append-only event log protocol and its JSONL persistence
- `PlaybackSession`, which drives the core algorithms from clock ticks and
  user interaction and hands frames to a rendering surface
"""

__all__ = [
    # Subpackages will be imported lazily by users
]
