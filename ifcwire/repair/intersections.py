from __future__ import annotations

from typing import Sequence

from ifcwire import reporting
from ifcwire.geometry.kernel import GeometryKernel, ShapelyKernel
from ifcwire.geometry.primitives import Loop
from ifcwire.reporting import ReportLog, ReportSink


def select_largest(cycles: Sequence[Loop], kernel: GeometryKernel) -> Loop:
    """Cycle with the largest area; the first one wins ties."""
    best = cycles[0]
    best_area = kernel.measure(best)
    for cycle in cycles[1:]:
        area = kernel.measure(cycle)
        if area > best_area:
            best, best_area = cycle, area
    return best


class SelfIntersectionResolver:
    """Keeps the dominant cycle of a self-intersecting closed loop."""

    def __init__(self, sink: ReportSink | None = None, kernel: GeometryKernel | None = None) -> None:
        self.sink = sink if sink is not None else ReportLog()
        self.kernel = kernel if kernel is not None else ShapelyKernel()

    def resolve(self, loop: Loop, entity: str | None = None) -> Loop:
        cycles = self.kernel.self_intersections(loop)
        if not cycles:
            return loop

        largest = select_largest(cycles, self.kernel)
        discarded = len(cycles) - 1
        reporting.warning(
            self.sink,
            f"Self-intersections with {len(cycles)} cycles detected, {discarded} discarded",
            entity,
            cycles=len(cycles),
            discarded=discarded,
        )
        return largest
