from __future__ import annotations

"""
Wire Repair Contract

Single source of truth for the tolerances and unit factors used while joining
curve segments into wires. All modules should import from here instead of
hardcoding.
"""

import math

# Lengths are in resolved model length units (metres after unit scaling)

# Base precision of a model when none is configured
DEFAULT_PRECISION = 1e-5

# Gaps
GAP_INSERT_FACTOR = 1000.0  # gaps above factor * precision get a connector edge
DEDUPE_FACTOR = 10.0  # points closer than factor * precision are duplicates
SHORT_SEGMENT_FACTOR = 2.0  # cartesian trims closer than factor * precision are skipped

# Loops
MIN_CLOSED_LOOP_POINTS = 3
MIN_OPEN_LOOP_POINTS = 2

# Plane angle unit hypotheses
RADIANS = 1.0
DEGREES = math.pi / 180.0  # 0.0174532925199433

# Sampling of non-linear edges for area / intersection tests
ARC_SAMPLES_PER_TURN = 64
MIN_ARC_SAMPLES = 4
