"""
Degenerate point cleanup for polygon-style inputs.

Removes points that nearly coincide with their predecessor before edges are
built from a point sequence, so that no zero-length edges reach the wire.
"""

from __future__ import annotations

from typing import Sequence

from ifcwire import reporting
from ifcwire.exceptions import InsufficientPointsError
from ifcwire.geometry.contract import MIN_CLOSED_LOOP_POINTS, MIN_OPEN_LOOP_POINTS
from ifcwire.geometry.primitives import Point, PointLoop
from ifcwire.reporting import ReportLog, ReportSink
from ifcwire.settings import WireSettings


def remove_duplicate_points(points: Sequence[Point], *, closed: bool, eps: float) -> list[Point]:
    """Drop every point within ``eps`` of the last kept point.

    When ``closed`` the sequence wraps, so a trailing point that nearly
    coincides with the first one is dropped as well.
    """
    kept: list[Point] = []
    for point in points:
        if kept and point.distance(kept[-1]) < eps:
            continue
        kept.append(point)
    while closed and len(kept) > 1 and kept[-1].distance(kept[0]) < eps:
        kept.pop()
    return kept


def is_closed_by_proximity(points: Sequence[Point], eps: float) -> bool:
    """True when the declared last point repeats the first one."""
    return len(points) >= 2 and points[0].distance(points[-1]) < eps


class DegenerateLoopCleaner:
    def __init__(self, settings: WireSettings, sink: ReportSink | None = None) -> None:
        self.settings = settings
        self.sink = sink if sink is not None else ReportLog()

    @property
    def epsilon(self) -> float:
        return self.settings.dedupe_epsilon

    def clean(
        self,
        points: Sequence[Point],
        *,
        treat_as_closed: bool,
        entity: str | None = None,
    ) -> PointLoop:
        eps = self.epsilon
        remaining = list(points)

        # The repeated closing point is not a degenerate point
        if treat_as_closed and is_closed_by_proximity(remaining, eps):
            remaining.pop()

        cleaned = remove_duplicate_points(remaining, closed=treat_as_closed, eps=eps)
        removed = len(remaining) - len(cleaned)
        if removed:
            reporting.warning(self.sink, f"{removed} points removed", entity, removed=removed)

        minimum = MIN_CLOSED_LOOP_POINTS if treat_as_closed else MIN_OPEN_LOOP_POINTS
        if len(cleaned) < minimum:
            raise InsufficientPointsError(
                f"Not enough edges: {len(cleaned)} points left, {minimum} required",
                {"entity": entity or "", "points": str(len(cleaned))},
            )

        return PointLoop(tuple(cleaned), closed=treat_as_closed)
