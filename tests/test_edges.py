from __future__ import annotations

import math

import pytest

from ifcwire import build_wire
from ifcwire.curves.convert import convert_curve
from ifcwire.curves.models import (
    Circle,
    CurveEdge,
    EdgeLoop,
    Line,
    OpenProfile,
    OrientedEdge,
    Placement,
    PolyLoop,
    Polyline,
    Subedge,
    VertexEdge,
)
from ifcwire.geometry.primitives import CurveKind, Point
from ifcwire.reporting import ReportLog, Severity
from ifcwire.settings import WireSettings


SETTINGS = WireSettings(precision=1e-5, plane_angle_unit="radians")
UNIT_CIRCLE = Circle(Placement(), 1.0, "#10=IfcCircle")
R = math.sqrt(0.5)


def close_to(point: Point, x: float, y: float, z: float = 0.0) -> bool:
    return point.distance(Point(x, y, z)) < 1e-9


def midpoint(edge):
    return edge.sample(3)[1]


def vertex_edge(a, b, entity=None) -> OrientedEdge:
    return OrientedEdge(VertexEdge(Point(*a), Point(*b)), True, entity)


def test_vertex_edge_is_straight():
    segment = convert_curve(VertexEdge(Point(0, 0), Point(2, 1), "#20=IfcEdge"), SETTINGS)

    assert len(segment) == 1
    assert segment.first_edge.kind is CurveKind.LINEAR
    assert segment.start == Point(0, 0) and segment.end == Point(2, 1)
    assert segment.entity == "#20=IfcEdge"


def test_oriented_edge_against_orientation_is_reversed():
    edge = OrientedEdge(VertexEdge(Point(0, 0), Point(2, 1)), False, "#21=IfcOrientedEdge")

    segment = convert_curve(edge, SETTINGS)

    assert segment.start == Point(2, 1) and segment.end == Point(0, 0)
    assert segment.entity == "#21=IfcOrientedEdge"


def test_curve_edge_on_circle_follows_the_short_arc():
    edge = CurveEdge(Point(1, 0), Point(0, 1), UNIT_CIRCLE, entity="#22=IfcEdgeCurve")

    segment = convert_curve(edge, SETTINGS)

    assert segment.first_edge.kind is CurveKind.CIRCULAR
    assert close_to(segment.start, 1, 0) and close_to(segment.end, 0, 1)
    assert close_to(midpoint(segment.first_edge), R, R)


def test_curve_edge_against_sense_runs_clockwise():
    edge = CurveEdge(Point(1, 0), Point(0, 1), UNIT_CIRCLE, same_sense=False)

    segment = convert_curve(edge, SETTINGS)

    assert close_to(segment.start, 1, 0) and close_to(segment.end, 0, 1)
    assert close_to(midpoint(segment.first_edge), -R, -R)


def test_curve_edge_on_line_joins_its_vertices():
    line = Line(Point(0, 0), (1.0, 0.0, 0.0), "#23=IfcLine")

    segment = convert_curve(CurveEdge(Point(1, 0), Point(3, 0), line), SETTINGS)

    assert segment.first_edge.kind is CurveKind.LINEAR
    assert segment.start == Point(1, 0) and segment.end == Point(3, 0)


def test_curve_edge_on_polyline_is_anchored_to_its_vertices():
    polyline = Polyline((Point(0, 0), Point(1, 0), Point(1, 1)), "#24=IfcPolyline")
    edge = CurveEdge(Point(0, 0.001), Point(1.001, 1), polyline)

    segment = convert_curve(edge, SETTINGS)

    assert len(segment) == 2
    assert segment.start == Point(0, 0.001)
    assert segment.end == Point(1.001, 1)
    assert segment.edges[0].end == Point(1, 0)


def test_reversed_curve_edge_on_polyline():
    polyline = Polyline((Point(0, 0), Point(1, 0), Point(1, 1)))
    edge = CurveEdge(Point(1, 1), Point(0, 0), polyline, same_sense=False)

    segment = convert_curve(edge, SETTINGS)

    assert [e.start for e in segment.edges] == [Point(1, 1), Point(1, 0)]
    assert segment.end == Point(0, 0)


def test_subedge_bounds_the_parent_arc():
    parent = CurveEdge(Point(1, 0), Point(0, 1), UNIT_CIRCLE)
    start = Point(math.cos(math.pi / 6), math.sin(math.pi / 6))
    end = Point(math.cos(math.pi / 3), math.sin(math.pi / 3))

    segment = convert_curve(Subedge(start, end, parent, "#25=IfcSubedge"), SETTINGS)

    assert segment.start == start and segment.end == end
    assert segment.first_edge.kind is CurveKind.CIRCULAR
    assert close_to(midpoint(segment.first_edge), R, R)
    assert segment.entity == "#25=IfcSubedge"


def test_subedge_of_vertex_edge_is_straight():
    parent = VertexEdge(Point(0, 0), Point(4, 0))

    segment = convert_curve(Subedge(Point(1, 0), Point(2, 0), parent), SETTINGS)

    assert segment.start == Point(1, 0) and segment.end == Point(2, 0)
    assert segment.first_edge.is_linear


def test_edge_loop_gives_closed_wire():
    loop = EdgeLoop(
        (vertex_edge((0, 0), (1, 0)), vertex_edge((1, 0), (0, 1)), vertex_edge((0, 1), (0, 0))),
        "#30=IfcEdgeLoop",
    )
    log = ReportLog(echo=False)

    result = build_wire(loop, SETTINGS, log)

    assert result.ok
    assert result.closed
    assert len(result.loop) == 3
    assert log.by_severity(Severity.ERROR) == []


def test_edge_loop_with_reversed_edge():
    loop = EdgeLoop(
        (
            vertex_edge((0, 0), (2, 0)),
            OrientedEdge(VertexEdge(Point(0, 2), Point(2, 0)), False),
            vertex_edge((0, 2), (0, 0)),
        )
    )

    result = build_wire(loop, SETTINGS, ReportLog(echo=False))

    assert result.closed
    assert result.loop.edges[1].start == Point(2, 0)
    assert result.loop.connector_count == 0


def test_failing_edge_is_skipped_and_gap_bridged():
    broken = OrientedEdge(
        CurveEdge(Point(1, 1), Point(0, 1), PolyLoop((Point(1, 1), Point(0, 1)))),
        True,
        "#31=IfcOrientedEdge",
    )
    loop = EdgeLoop(
        (vertex_edge((0, 0), (1, 0)), vertex_edge((1, 0), (1, 1)), broken, vertex_edge((0, 1), (0, 0))),
        "#32=IfcEdgeLoop",
    )
    log = ReportLog(echo=False)

    result = build_wire(loop, SETTINGS, log)

    assert result.ok
    assert result.closed
    assert result.loop.connector_count == 1
    skipped = log.by_severity(Severity.WARNING)[0]
    assert skipped.message == "Skipping edge: Not enough edges"
    assert skipped.entity == "#31=IfcOrientedEdge"


def test_edge_loop_segment_is_closed_with_connector():
    loop = EdgeLoop((vertex_edge((0, 0), (1, 0)), vertex_edge((1, 0), (1, 1))), "#33=IfcEdgeLoop")

    segment = convert_curve(loop, SETTINGS, ReportLog(echo=False))

    assert len(segment) == 3
    assert segment.end == segment.start
    assert segment.edges[-1].synthetic
    assert segment.entity == "#33=IfcEdgeLoop"


def test_open_profile_stays_open():
    profile = OpenProfile(Polyline((Point(0, 0), Point(2, 0), Point(2, 1)), "#40=IfcPolyline"), "#41=IfcArbitraryOpenProfileDef")

    result = build_wire(profile, SETTINGS, ReportLog(echo=False))

    assert result.ok
    assert not result.closed
    assert len(result.loop) == 2


def test_open_profile_segment_carries_profile_entity():
    profile = OpenProfile(Polyline((Point(0, 0), Point(2, 0))), "#42=IfcArbitraryOpenProfileDef")

    segment = convert_curve(profile, SETTINGS)

    assert segment.entity == "#42=IfcArbitraryOpenProfileDef"


@pytest.mark.parametrize("orientation", [True, False])
def test_oriented_edge_keeps_inner_entity_when_unnamed(orientation):
    edge = OrientedEdge(VertexEdge(Point(0, 0), Point(1, 0), "#43=IfcEdge"), orientation)

    assert convert_curve(edge, SETTINGS).entity == "#43=IfcEdge"
