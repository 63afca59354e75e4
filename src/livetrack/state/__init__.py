"""State/store layer.

This package is the single source of truth for how normalized webhook
events are merged into per-order tracking state.
"""
