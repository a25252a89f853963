"""
Tests Package.

This package contains test suites for the FSM replay implementation: unit
tests for the pure core algorithms (layout, deduplication, timeline, playback,
edge materialization) and integration tests for the boundary adapters, the
playback session, the CLI and the HTTP service.
"""

# Tests Package
