"""Geometric value types, tolerances and kernel primitives."""
