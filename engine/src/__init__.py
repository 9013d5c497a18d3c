"""
Energy-flow reconciliation engine.

Takes energy readings for grid, solar, battery, home and two auxiliary
devices, derives a conservation-respecting decomposition of the flows between
them, and computes the animation and low-carbon parameters the card renders.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""
