"""
Wire pipeline

Entry point of the component: takes one curve description and returns an
``AssemblyResult``. Composite curves go through the loop assembler, under
unit resolution when the plane angle unit is undeclared; edge loops are
chained and closed by the assembler; open profiles stand for their curve;
every other curve is converted straight into a loop. No exception escapes
``build_wire``.
"""

from __future__ import annotations

from loguru import logger

from ifcwire import reporting
from ifcwire.curves.convert import convert_curve
from ifcwire.curves.models import CompositeCurve, CurveDescription, EdgeLoop, OpenProfile
from ifcwire.exceptions import IfcWireError
from ifcwire.geometry.primitives import Loop
from ifcwire.repair.assembler import AssemblyResult, SegmentConverter, assemble_composite, assemble_edge_loop
from ifcwire.repair.units import UnitAmbiguityResolver
from ifcwire.reporting import ReportLog, ReportSink
from ifcwire.settings import WireSettings


def build_composite(
    curve: CompositeCurve,
    settings: WireSettings,
    sink: ReportSink | None = None,
    convert: SegmentConverter = convert_curve,
) -> AssemblyResult:
    sink = sink if sink is not None else ReportLog()
    if not settings.angle_unit_declared:
        return UnitAmbiguityResolver(settings, sink, convert).resolve(curve)
    return assemble_composite(curve, settings, sink=sink, convert=convert)


def build_wire(
    curve: CurveDescription,
    settings: WireSettings | None = None,
    sink: ReportSink | None = None,
) -> AssemblyResult:
    """Build the wire for one curve description.

    Args:
        curve: Description of the curve to convert.
        settings: Tolerances and units of the model. Defaults apply if None.
        sink: Receives every repair and failure report.

    Returns:
        AssemblyResult with the loop on success, or the failure reason.
    """
    settings = settings if settings is not None else WireSettings()
    sink = sink if sink is not None else ReportLog()
    if isinstance(curve, OpenProfile):
        return build_wire(curve.curve, settings, sink)
    entity = getattr(curve, "entity", None)

    try:
        if isinstance(curve, CompositeCurve):
            return build_composite(curve, settings, sink)
        if isinstance(curve, EdgeLoop):
            return assemble_edge_loop(curve, settings, sink=sink)
        segment = convert_curve(curve, settings, sink)
    except IfcWireError as exc:
        reporting.error(sink, exc.message, entity)
        return AssemblyResult.failure(exc.message)
    except Exception as exc:
        logger.debug("Wire conversion raised {}: {}", type(exc).__name__, exc)
        reason = f"Failed to convert curve: {exc}"
        reporting.error(sink, reason, entity)
        return AssemblyResult.failure(reason)

    closed = segment.end.distance(segment.start) <= settings.join_threshold
    return AssemblyResult.success(Loop(segment.edges, closed=closed))
