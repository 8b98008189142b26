"""
Gap resolution between adjacent curve segments.

For one pair of segments the resolver decides how the end of the first is
connected to the start of the second:

- gaps below the precision are ignored,
- gaps above ``gap_insert_factor`` times the precision get a connector edge,
- gaps in between are closed by moving the end point of whichever adjacent
  edge is linear, or by a connector edge when neither is.

Moving the *next* segment's start is deferred: the resolver hands the point
back in its decision and the caller passes it into the following call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ifcwire import reporting
from ifcwire.geometry.kernel import straight_edge
from ifcwire.geometry.primitives import Edge, Point, Segment
from ifcwire.reporting import ReportLog, ReportSink
from ifcwire.settings import WireSettings


class GapAction(str, Enum):
    JOINED = "joined"
    ADJUSTED = "adjusted"
    DEFERRED = "deferred"
    CONNECTOR = "connector"
    INCONSISTENT = "inconsistent"


@dataclass(frozen=True)
class GapDecision:
    """What to append for one pair, and the override for the next pair."""
    segment: Segment
    connector: Edge | None
    action: GapAction
    distance: float
    override: Point | None = None

    @property
    def edges(self) -> tuple[Edge, ...]:
        if self.connector is None:
            return self.segment.edges
        return (*self.segment.edges, self.connector)


class GapResolver:
    def __init__(
        self,
        settings: WireSettings,
        sink: ReportSink | None = None,
        entity: str | None = None,
    ) -> None:
        self.settings = settings
        self.sink = sink if sink is not None else ReportLog()
        self.entity = entity

    @staticmethod
    def apply_override(segment: Segment, override: Point | None) -> Segment:
        """Move the segment's start onto a point requested by the previous pair."""
        if override is None:
            return segment
        return segment.with_start(override)

    def resolve(
        self,
        previous: Segment,
        following: Segment,
        *,
        is_closing_pair: bool = False,
        override: Point | None = None,
    ) -> GapDecision:
        previous = self.apply_override(previous, override)

        p1 = previous.end
        p2 = following.start
        dist = p1.distance(p2)

        if dist < self.settings.join_threshold:
            return GapDecision(previous, None, GapAction.JOINED, dist)

        if dist > self.settings.gap_insert_threshold:
            return self._connect(previous, p1, p2, dist)

        if previous.incident_edges(p1) != 1 or following.incident_edges(p2) != 1:
            reporting.error(self.sink, "Internal error, inconsistent wire segments", self.entity, distance=dist)
            return GapDecision(previous, None, GapAction.INCONSISTENT, dist)

        if previous.last_edge.is_linear:
            reporting.warning(
                self.sink, f"Adjusted edge end-point with distance {dist:g}", self.entity, distance=dist
            )
            return GapDecision(previous.with_end(p2), None, GapAction.ADJUSTED, dist)

        # The first segment of the loop has already been appended when closing
        if following.first_edge.is_linear and not is_closing_pair:
            reporting.warning(
                self.sink, f"Adjusted edge end-point with distance {dist:g}", self.entity, distance=dist
            )
            return GapDecision(previous, None, GapAction.DEFERRED, dist, override=p1)

        return self._connect(previous, p1, p2, dist)

    def _connect(self, previous: Segment, p1: Point, p2: Point, dist: float) -> GapDecision:
        reporting.warning(
            self.sink,
            f"Added additional segment to close gap with length {dist:g}",
            self.entity,
            distance=dist,
        )
        return GapDecision(previous, straight_edge(p1, p2, synthetic=True), GapAction.CONNECTOR, dist)
