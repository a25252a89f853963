"""
Visualization Package.

This package turns replay frames into payloads for an external rendering
surface. Drawing, pan/zoom and dragging live in that surface; only the element
format is produced here.
"""

# Visualization Package
