"""
Loop assembly

Drives the gap resolver over an ordered list of segments and collects the
outcome into a wire. ``assemble_loop``, ``assemble_composite`` and
``assemble_edge_loop`` are the boundaries of this layer: nothing below them
escapes as an exception, every failure becomes an ``AssemblyResult`` with a
reason plus an error report.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from loguru import logger

from ifcwire import reporting
from ifcwire.curves.convert import convert_curve
from ifcwire.curves.models import CompositeCurve, CurveDescription, EdgeLoop
from ifcwire.exceptions import (
    CurveConversionError,
    DegenerateSegmentError,
    GeometryError,
    IfcWireError,
    InconsistentSegmentsError,
)
from ifcwire.geometry.kernel import WireBuilder, WireStatus
from ifcwire.geometry.primitives import Edge, Loop, Segment
from ifcwire.repair.gaps import GapAction, GapDecision, GapResolver
from ifcwire.reporting import ReportLog, ReportSink
from ifcwire.settings import WireSettings


SegmentConverter = Callable[[CurveDescription, WireSettings, ReportSink], Segment]


@dataclass(frozen=True)
class AssemblyResult:
    """Outcome of assembling one wire."""

    ok: bool
    loop: Loop | None = None
    reason: str | None = None
    hypothesis: str | None = None

    @property
    def closed(self) -> bool:
        return self.ok and self.loop is not None and self.loop.closed

    @classmethod
    def success(cls, loop: Loop, hypothesis: str | None = None) -> "AssemblyResult":
        return cls(ok=True, loop=loop, hypothesis=hypothesis)

    @classmethod
    def failure(cls, reason: str) -> "AssemblyResult":
        return cls(ok=False, reason=reason)


class LoopAssembler:
    def __init__(
        self,
        settings: WireSettings,
        sink: ReportSink | None = None,
        entity: str | None = None,
    ) -> None:
        self.settings = settings
        self.sink = sink if sink is not None else ReportLog()
        self.entity = entity

    def assemble(self, segments: Sequence[Segment], *, force_close: bool = False) -> Loop:
        """Join segments into one wire.

        Args:
            segments: Converted segments in curve order.
            force_close: Also resolve the gap between the last and the first
                segment, as required for curves bounding a profile.

        Returns:
            The assembled loop; ``closed`` reflects whether its ends meet.

        Raises:
            GeometryError: When there is nothing to assemble.
            InconsistentSegmentsError: When a junction had more than one
                candidate edge. The rest of the wire is still processed so
                that every problem gets reported.
        """
        segments = list(segments)
        if not segments:
            raise GeometryError("No segments to assemble", {"entity": self.entity or ""})

        resolver = GapResolver(self.settings, self.sink, self.entity)
        builder = WireBuilder(self.settings.join_threshold)
        override = None
        inconsistent = 0

        for previous, following in zip(segments, segments[1:]):
            decision = resolver.resolve(previous, following, override=override)
            override = decision.override
            inconsistent += decision.action is GapAction.INCONSISTENT
            self._append(builder, decision)

        last = segments[-1]
        if force_close:
            decision = resolver.resolve(last, segments[0], is_closing_pair=True, override=override)
            inconsistent += decision.action is GapAction.INCONSISTENT
            self._append(builder, decision)
        else:
            self._add(builder, resolver.apply_override(last, override).edges)

        if inconsistent:
            raise InconsistentSegmentsError(
                "Inconsistent wire segments",
                {"entity": self.entity or "", "junctions": str(inconsistent)},
            )
        return builder.wire()

    def _append(self, builder: WireBuilder, decision: GapDecision) -> None:
        self._add(builder, decision.segment.edges)
        if decision.connector is not None:
            self._add(builder, (decision.connector,))

    def _add(self, builder: WireBuilder, edges: Sequence[Edge]) -> None:
        status = builder.add(edges)
        if status is WireStatus.NON_MANIFOLD:
            reporting.error(self.sink, "Non-manifold curve segments", self.entity)
        elif status is WireStatus.DISCONNECTED:
            reporting.error(self.sink, "Failed to join curve segments", self.entity)


def assemble_loop(
    segments: Sequence[Segment],
    settings: WireSettings,
    *,
    force_close: bool = False,
    sink: ReportSink | None = None,
    entity: str | None = None,
) -> AssemblyResult:
    """Assemble segments into a loop, turning every failure into a result."""
    sink = sink if sink is not None else ReportLog()
    try:
        loop = LoopAssembler(settings, sink, entity).assemble(segments, force_close=force_close)
    except IfcWireError as exc:
        reporting.error(sink, exc.message, entity)
        return AssemblyResult.failure(exc.message)
    except Exception as exc:
        logger.debug("Wire assembly raised {}: {}", type(exc).__name__, exc)
        reason = f"Failed to assemble wire: {exc}"
        reporting.error(sink, reason, entity)
        return AssemblyResult.failure(reason)
    return AssemblyResult.success(loop)


def convert_segments(
    curve: CompositeCurve,
    settings: WireSettings,
    sink: ReportSink,
    convert: SegmentConverter = convert_curve,
) -> list[Segment]:
    """Convert every composite segment, honouring its sense.

    Segments that collapse below the tolerance are skipped with a warning;
    any other conversion failure fails the composite.
    """
    segments: list[Segment] = []
    for item in curve.segments:
        entity = getattr(item.curve, "entity", None) or curve.entity
        try:
            segment = convert(item.curve, settings, sink)
        except DegenerateSegmentError as exc:
            reporting.warning(sink, exc.message, entity)
            continue
        except CurveConversionError as exc:
            raise CurveConversionError(
                f"Failed to convert curve: {exc.message}", {"entity": entity or ""}
            ) from exc
        if not item.same_sense:
            segment = segment.reversed()
        segments.append(segment)
    return segments


def assemble_composite(
    curve: CompositeCurve,
    settings: WireSettings,
    *,
    sink: ReportSink | None = None,
    convert: SegmentConverter = convert_curve,
) -> AssemblyResult:
    """Convert and join the segments of a composite curve under fixed units."""
    sink = sink if sink is not None else ReportLog()
    try:
        segments = convert_segments(curve, settings, sink, convert)
    except IfcWireError as exc:
        reporting.error(sink, exc.message, curve.entity)
        return AssemblyResult.failure(exc.message)
    except Exception as exc:
        logger.debug("Segment conversion raised {}: {}", type(exc).__name__, exc)
        reason = f"Failed to convert curve segments: {exc}"
        reporting.error(sink, reason, curve.entity)
        return AssemblyResult.failure(reason)
    return assemble_loop(
        segments,
        settings,
        force_close=curve.bounds_profile,
        sink=sink,
        entity=curve.entity,
    )


def convert_edges(
    curve: EdgeLoop,
    settings: WireSettings,
    sink: ReportSink,
    convert: SegmentConverter = convert_curve,
) -> list[Segment]:
    """Convert every oriented edge of a loop; edges that fail are skipped."""
    segments: list[Segment] = []
    for item in curve.edges:
        try:
            segments.append(convert(item, settings, sink))
        except IfcWireError as exc:
            reporting.warning(sink, f"Skipping edge: {exc.message}", item.entity or curve.entity)
    return segments


def assemble_edge_loop(
    curve: EdgeLoop,
    settings: WireSettings,
    *,
    sink: ReportSink | None = None,
    convert: SegmentConverter = convert_curve,
) -> AssemblyResult:
    """Chain the oriented edges of an edge loop into a closed wire."""
    sink = sink if sink is not None else ReportLog()
    try:
        segments = convert_edges(curve, settings, sink, convert)
    except Exception as exc:
        logger.debug("Edge conversion raised {}: {}", type(exc).__name__, exc)
        reason = f"Failed to convert edges: {exc}"
        reporting.error(sink, reason, curve.entity)
        return AssemblyResult.failure(reason)
    return assemble_loop(segments, settings, force_close=True, sink=sink, entity=curve.entity)
