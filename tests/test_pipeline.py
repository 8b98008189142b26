from __future__ import annotations

from ifcwire import build_wire
from ifcwire.curves.models import (
    CompositeCurve,
    CompositeCurveSegment,
    Line,
    PolyLoop,
    Polyline,
    Trim,
    TrimmedCurve,
)
from ifcwire.geometry.primitives import Point
from ifcwire.reporting import ReportLog, Severity
from ifcwire.settings import WireSettings


DECLARED = WireSettings(precision=1e-5, plane_angle_unit="radians")


def polyline(*coords, entity=None) -> Polyline:
    return Polyline(tuple(Point(*c) for c in coords), entity)


def composite(*curves, bounds_profile=True, entity="#1=IfcCompositeCurve") -> CompositeCurve:
    return CompositeCurve(tuple(CompositeCurveSegment(c) for c in curves), bounds_profile, entity)


def test_closed_polyline_gives_closed_loop():
    result = build_wire(polyline((0, 0), (2, 0), (2, 1), (0, 1), (0, 0)), DECLARED, ReportLog(echo=False))

    assert result.ok
    assert result.closed
    assert len(result.loop) == 4
    assert result.hypothesis is None


def test_open_polyline_gives_open_loop():
    result = build_wire(polyline((0, 0), (2, 0), (2, 1)), DECLARED)
    assert result.ok
    assert not result.closed


def test_conversion_failure_becomes_result():
    log = ReportLog(echo=False)
    result = build_wire(PolyLoop((Point(0, 0), Point(1, 0)), "#5=IfcPolyLoop"), DECLARED, log)

    assert not result.ok
    assert result.reason == "Not enough edges"
    assert log.by_severity(Severity.ERROR)[0].entity == "#5=IfcPolyLoop"


def test_unbounded_line_fails():
    result = build_wire(Line(Point(0, 0), (1.0, 0.0, 0.0)), DECLARED, ReportLog(echo=False))
    assert not result.ok
    assert result.reason == "Unbounded line cannot form a segment"


def test_profile_composite_is_forced_closed():
    log = ReportLog(echo=False)
    curve = composite(
        polyline((0, 0), (1, 0), entity="#2=IfcPolyline"),
        polyline((1, 0), (1, 1), entity="#3=IfcPolyline"),
        polyline((1, 1), (0, 0.5), entity="#4=IfcPolyline"),
    )

    result = build_wire(curve, DECLARED, log)

    assert result.ok
    assert result.closed
    assert result.loop.connector_count == 1
    assert result.loop.edges[-1].end == Point(0, 0)
    assert log.messages() == ["Added additional segment to close gap with length 0.5"]


def test_undeclared_unit_resolves_on_straight_composite():
    log = ReportLog(echo=False)
    curve = composite(polyline((0, 0), (1, 0)), polyline((1, 0), (0, 1)), polyline((0, 1), (0, 0)))

    result = build_wire(curve, WireSettings(), log)

    assert result.ok
    assert result.hypothesis == "radians"
    assert log.messages()[-1] == "Used radians to create composite curve"


def test_degenerate_segment_is_skipped():
    log = ReportLog(echo=False)
    tiny = TrimmedCurve(
        Line(Point(1, 0), (1.0, 0.0, 0.0)),
        Trim(point=Point(1, 0)),
        Trim(point=Point(1, 0.000001)),
        entity="#6=IfcTrimmedCurve",
    )
    curve = composite(polyline((0, 0), (1, 0)), tiny, polyline((1, 0), (0, 1)), polyline((0, 1), (0, 0)))

    result = build_wire(curve, DECLARED, log)

    assert result.ok
    assert len(result.loop) == 3
    warning = log.by_severity(Severity.WARNING)[0]
    assert warning.message == "Skipping segment with length below tolerance level"
    assert warning.entity == "#6=IfcTrimmedCurve"


def test_failed_segment_fails_composite():
    log = ReportLog(echo=False)
    curve = composite(polyline((0, 0), (1, 0)), Line(Point(0, 0), (1.0, 0.0, 0.0), entity="#7=IfcLine"))

    result = build_wire(curve, DECLARED, log)

    assert not result.ok
    assert result.reason == "Failed to convert curve: Unbounded line cannot form a segment"
    assert len(log.by_severity(Severity.ERROR)) == 1


def test_reversed_segment_is_flipped():
    curve = CompositeCurve(
        (
            CompositeCurveSegment(polyline((0, 0), (1, 0))),
            CompositeCurveSegment(polyline((0, 1), (1, 0)), same_sense=False),
            CompositeCurveSegment(polyline((0, 1), (0, 0))),
        ),
        bounds_profile=True,
    )

    result = build_wire(curve, DECLARED, ReportLog(echo=False))

    assert result.ok
    assert result.closed
    assert result.loop.edges[1].start == Point(1, 0)
    assert result.loop.connector_count == 0


def test_nested_composite():
    inner = composite(polyline((0, 0), (1, 0)), polyline((1, 0), (1, 1)), bounds_profile=False, entity="#8=IfcCompositeCurve")
    outer = composite(inner, polyline((1, 1), (0, 0)))

    result = build_wire(outer, DECLARED, ReportLog(echo=False))

    assert result.ok
    assert result.closed
    assert len(result.loop) == 3


def test_failing_nested_composite_is_reported_once():
    log = ReportLog(echo=False)
    inner = composite(
        polyline((0, 0), (1, 0)),
        Line(Point(0, 0), (1.0, 0.0, 0.0), entity="#9=IfcLine"),
        bounds_profile=False,
        entity="#8=IfcCompositeCurve",
    )
    outer = composite(inner, polyline((1, 0), (0, 0)))

    result = build_wire(outer, DECLARED, log)

    assert not result.ok
    assert result.reason.endswith("Unbounded line cannot form a segment")
    errors = log.by_severity(Severity.ERROR)
    assert len(errors) == 1
    assert errors[0].entity == "#1=IfcCompositeCurve"
