"""
Reference segment converter.

Turns one curve description into a ``Segment``. Trim parameters of conics
are scaled by the plane angle unit in the settings, all other lengths by the
length unit. Failures raise ``CurveConversionError``; callers decide whether
a failed segment is fatal.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from ifcwire.curves.models import (
    ArcIndex,
    BasisCurve,
    Circle,
    CompositeCurve,
    CurveDescription,
    CurveEdge,
    EdgeLoop,
    Ellipse,
    IndexedPolyCurve,
    Line,
    LineIndex,
    OpenProfile,
    OrientedEdge,
    Placement,
    PolyLoop,
    Polyline,
    Subedge,
    TrimmedCurve,
    UNBOUNDED_CURVES,
    VertexEdge,
)
from ifcwire.exceptions import CurveConversionError, DegenerateSegmentError, InsufficientPointsError
from ifcwire.geometry.contract import MIN_CLOSED_LOOP_POINTS, RADIANS, SHORT_SEGMENT_FACTOR
from ifcwire.geometry.kernel import make_polygon, straight_edge
from ifcwire.geometry.primitives import CurveKind, Edge, Point, Segment
from ifcwire.repair.intersections import SelfIntersectionResolver
from ifcwire.repair.points import DegenerateLoopCleaner, is_closed_by_proximity
from ifcwire.reporting import ReportLog, ReportSink
from ifcwire.settings import WireSettings


TWO_PI = 2.0 * math.pi
_ANGLE_EPS = 1e-9


@dataclass(frozen=True)
class ConicArc:
    """Arc of a circle or ellipse between two parameter values.

    ``t1`` may be smaller than ``t0`` for reversed arcs.
    """
    center: tuple[float, float, float]
    u: tuple[float, float, float]
    v: tuple[float, float, float]
    r1: float
    r2: float
    t0: float
    t1: float

    @property
    def kind(self) -> CurveKind:
        return CurveKind.CIRCULAR if math.isclose(self.r1, self.r2) else CurveKind.ELLIPTICAL

    def point_at(self, t: float) -> Point:
        p = (
            np.array(self.center)
            + self.r1 * math.cos(t) * np.array(self.u)
            + self.r2 * math.sin(t) * np.array(self.v)
        )
        return Point.from_array(p)

    def sample(self, count: int) -> list[Point]:
        return [self.point_at(float(t)) for t in np.linspace(self.t0, self.t1, max(count, 2))]

    def reversed(self) -> "ConicArc":
        return ConicArc(self.center, self.u, self.v, self.r1, self.r2, self.t1, self.t0)

    def parameter_of(self, point: Point) -> float:
        delta = point.as_array() - np.array(self.center)
        return math.atan2(float(delta.dot(self.v)) / self.r2, float(delta.dot(self.u)) / self.r1)

    @property
    def full_turn(self) -> bool:
        return abs(abs(self.t1 - self.t0) - TWO_PI) < _ANGLE_EPS

    def edge(self) -> Edge:
        start = self.point_at(self.t0)
        end = start if self.full_turn else self.point_at(self.t1)
        return Edge(start, end, self.kind, self)


def _frame(position: Placement) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    z = np.array(position.z_axis, dtype=float)
    z = z / np.linalg.norm(z)
    x = np.array(position.x_axis, dtype=float)
    x = x - z * float(x.dot(z))
    norm = np.linalg.norm(x)
    if norm < 1e-12:
        raise CurveConversionError("Placement axes are parallel")
    x = x / norm
    return position.location.as_array(), x, np.cross(z, x)


def _conic(basis: Circle | Ellipse, t0: float, t1: float) -> ConicArc:
    center, u, v = _frame(basis.position)
    if isinstance(basis, Circle):
        r1 = r2 = float(basis.radius)
    else:
        r1, r2 = float(basis.semi_axis1), float(basis.semi_axis2)
    if r1 <= 0.0 or r2 <= 0.0:
        raise CurveConversionError("Conic with non-positive radius", {"entity": basis.entity or ""})
    return ConicArc(tuple(center), tuple(u), tuple(v), r1, r2, t0, t1)


def _positive_span(t0: float, t1: float) -> float:
    """End parameter following ``t0`` in the curve's positive direction."""
    span = math.fmod(t1 - t0, TWO_PI)
    if span < 0.0:
        span += TWO_PI
    if span < _ANGLE_EPS or TWO_PI - span < _ANGLE_EPS:
        return t0 + TWO_PI
    return t0 + span


def _line_point(line: Line, t: float) -> Point:
    direction = np.array(line.direction, dtype=float)
    direction = direction / np.linalg.norm(direction)
    return Point.from_array(line.origin.as_array() + t * direction)


def _trim_by_points(basis: BasisCurve, a: Point, b: Point) -> Edge:
    if isinstance(basis, Line):
        return straight_edge(a, b)
    arc = _conic(basis, 0.0, 0.0)
    t0 = arc.parameter_of(a)
    t1 = _positive_span(t0, arc.parameter_of(b))
    arc = ConicArc(arc.center, arc.u, arc.v, arc.r1, arc.r2, t0, t1)
    return Edge(a, b, arc.kind, arc)


def _trim_by_parameters(basis: BasisCurve, t0: float, t1: float) -> Edge:
    if isinstance(basis, Line):
        return straight_edge(_line_point(basis, t0), _line_point(basis, t1))
    return _conic(basis, t0, _positive_span(t0, t1)).edge()


def convert_trimmed_curve(curve: TrimmedCurve, settings: WireSettings) -> Segment:
    basis = curve.basis
    is_conic = isinstance(basis, (Circle, Ellipse))
    if is_conic:
        # Outside a composite an undeclared unit is taken as radians
        factor = settings.plane_angle_unit if settings.plane_angle_unit is not None else RADIANS
    else:
        factor = settings.length_unit

    # Trims are swapped against the curve direction and the result reversed after
    first, second = (curve.trim1, curve.trim2) if curve.sense_agreement else (curve.trim2, curve.trim1)
    has_points = first.point is not None and second.point is not None
    has_params = first.parameter is not None and second.parameter is not None

    if curve.prefer_cartesian and has_points:
        if first.point.distance(second.point) < SHORT_SEGMENT_FACTOR * settings.precision:
            raise DegenerateSegmentError(
                "Skipping segment with length below tolerance level", {"entity": curve.entity or ""}
            )
        edge = _trim_by_points(basis, first.point, second.point)
    elif has_params:
        t0 = first.parameter * factor
        t1 = second.parameter * factor
        if isinstance(basis, Line):
            t0 *= basis.magnitude
            t1 *= basis.magnitude
        edge = _trim_by_parameters(basis, t0, t1)
        closed_arc = isinstance(edge.curve, ConicArc) and edge.curve.full_turn
        if not closed_arc and edge.chord < SHORT_SEGMENT_FACTOR * settings.precision:
            raise DegenerateSegmentError(
                "Skipping segment with length below tolerance level", {"entity": curve.entity or ""}
            )
    elif has_points:
        edge = straight_edge(first.point, second.point)
    else:
        raise CurveConversionError("Trimmed curve has no usable trims", {"entity": curve.entity or ""})

    segment = Segment((edge,), curve.entity)
    if not curve.sense_agreement:
        segment = segment.reversed()
    return segment


def convert_polyline(curve: Polyline, settings: WireSettings, sink: ReportSink) -> Segment:
    points = list(curve.points)
    closed = is_closed_by_proximity(points, settings.dedupe_epsilon)
    cleaned = DegenerateLoopCleaner(settings, sink).clean(points, treat_as_closed=closed, entity=curve.entity)
    return make_polygon(cleaned.points, close=cleaned.closed).to_segment(curve.entity)


def convert_poly_loop(curve: PolyLoop, settings: WireSettings, sink: ReportSink) -> Segment:
    if len(curve.points) < MIN_CLOSED_LOOP_POINTS:
        raise InsufficientPointsError("Not enough edges", {"entity": curve.entity or ""})
    cleaned = DegenerateLoopCleaner(settings, sink).clean(curve.points, treat_as_closed=True, entity=curve.entity)
    loop = make_polygon(cleaned.points, close=True)
    loop = SelfIntersectionResolver(sink).resolve(loop, curve.entity)
    return loop.to_segment(curve.entity)


def _indexed_point(curve: IndexedPolyCurve, index: int) -> Point:
    if index < 1 or index > len(curve.points):
        raise CurveConversionError(
            f"IfcIndexedPolyCurve index out of bounds for index {index}", {"entity": curve.entity or ""}
        )
    return curve.points[index - 1]


def arc_through(a: Point, b: Point, c: Point) -> Edge:
    """Circular edge from ``a`` to ``c`` passing through ``b``."""
    pa, pb, pc = a.as_array(), b.as_array(), c.as_array()
    ab, ac = pb - pa, pc - pa
    normal = np.cross(ab, ac)
    denom = 2.0 * float(normal.dot(normal))
    if denom < 1e-18:
        raise CurveConversionError("Arc points are collinear")
    offset = (np.cross(normal, ab) * float(ac.dot(ac)) + np.cross(ac, normal) * float(ab.dot(ab))) / denom
    center = pa + offset
    radius = float(np.linalg.norm(offset))
    u = (pa - center) / radius
    v = np.cross(normal / np.linalg.norm(normal), u)
    arc = ConicArc(tuple(center), tuple(u), tuple(v), radius, radius, 0.0, 0.0)
    tb = arc.parameter_of(b) % TWO_PI
    tc = arc.parameter_of(c) % TWO_PI
    if tc < tb:
        tc += TWO_PI
    arc = ConicArc(arc.center, arc.u, arc.v, radius, radius, 0.0, tc)
    return Edge(a, c, CurveKind.CIRCULAR, arc)


def convert_indexed_poly_curve(curve: IndexedPolyCurve) -> Segment:
    edges: list[Edge] = []
    if curve.segments is None:
        points = list(curve.points)
        edges.extend(straight_edge(a, b) for a, b in zip(points[:-1], points[1:]))
    else:
        for item in curve.segments:
            if isinstance(item, LineIndex):
                points = [_indexed_point(curve, i) for i in item.indices]
                edges.extend(straight_edge(a, b) for a, b in zip(points[:-1], points[1:]))
            elif isinstance(item, ArcIndex):
                if len(item.indices) != 3:
                    raise CurveConversionError("Invalid IfcArcIndex encountered", {"entity": curve.entity or ""})
                a, b, c = (_indexed_point(curve, i) for i in item.indices)
                edges.append(arc_through(a, b, c))
            else:
                raise CurveConversionError(
                    f"Unexpected IfcIndexedPolyCurve segment of type {type(item).__name__}",
                    {"entity": curve.entity or ""},
                )
    if not edges:
        raise CurveConversionError("IfcIndexedPolyCurve without edges", {"entity": curve.entity or ""})
    return Segment(tuple(edges), curve.entity)


def _reanchor(edge: Edge, start: Point, end: Point) -> Edge:
    """Same edge geometry bounded by new vertices."""
    if not isinstance(edge.curve, ConicArc):
        return Edge(start, end, edge.kind, edge.curve, edge.synthetic)
    arc = edge.curve
    t_start, t_end = arc.parameter_of(start), arc.parameter_of(end)
    if arc.t1 >= arc.t0:
        arc = ConicArc(arc.center, arc.u, arc.v, arc.r1, arc.r2, t_start, _positive_span(t_start, t_end))
    else:
        arc = ConicArc(arc.center, arc.u, arc.v, arc.r1, arc.r2, t_end, _positive_span(t_end, t_start)).reversed()
    return Edge(start, end, edge.kind, arc, edge.synthetic)


def convert_vertex_edge(curve: VertexEdge) -> Segment:
    return Segment((straight_edge(curve.start, curve.end),), curve.entity)


def convert_curve_edge(curve: CurveEdge, settings: WireSettings, sink: ReportSink) -> Segment:
    """Edge along its geometry, with the first and last vertex moved onto the edge's vertices."""
    geometry = curve.geometry
    if isinstance(geometry, UNBOUNDED_CURVES):
        start, end = (curve.start, curve.end) if curve.same_sense else (curve.end, curve.start)
        edge = _trim_by_points(geometry, start, end)
        if not curve.same_sense:
            edge = edge.reversed()
        return Segment((edge,), curve.entity)

    segment = convert_curve(geometry, settings, sink)
    if not curve.same_sense:
        segment = segment.reversed()
    edges = list(segment.edges)
    if len(edges) == 1:
        edges[0] = _reanchor(edges[0], curve.start, curve.end)
    else:
        edges[0] = _reanchor(edges[0], curve.start, edges[0].end)
        edges[-1] = _reanchor(edges[-1], edges[-1].start, curve.end)
    return Segment(tuple(edges), curve.entity)


def convert_oriented_edge(curve: OrientedEdge, settings: WireSettings, sink: ReportSink) -> Segment:
    segment = convert_curve(curve.edge, settings, sink)
    if not curve.orientation:
        segment = segment.reversed()
    return Segment(segment.edges, curve.entity or segment.entity)


def convert_subedge(curve: Subedge, settings: WireSettings, sink: ReportSink) -> Segment:
    """First edge of the parent, bounded by the subedge's vertices."""
    parent = convert_curve(curve.parent, settings, sink)
    return Segment((_reanchor(parent.first_edge, curve.start, curve.end),), curve.entity)


def _assembled_segment(result, entity: str | None, buffer: ReportLog, sink: ReportSink) -> Segment:
    if not result.ok or result.loop is None:
        # The enclosing boundary reports the failure, drop the inner report of it
        if buffer.reports:
            buffer.reports.pop()
        buffer.commit(sink)
        raise CurveConversionError(result.reason or "Failed to assemble wire", {"entity": entity or ""})
    buffer.commit(sink)
    return result.loop.to_segment(entity)


def convert_composite(curve: CompositeCurve, settings: WireSettings, sink: ReportSink) -> Segment:
    # Lazy import to avoid circular dependency
    from ifcwire.pipeline import build_composite

    buffer = ReportLog(echo=False)
    return _assembled_segment(build_composite(curve, settings, buffer), curve.entity, buffer, sink)


def convert_edge_loop(curve: EdgeLoop, settings: WireSettings, sink: ReportSink) -> Segment:
    # Lazy import to avoid circular dependency
    from ifcwire.repair.assembler import assemble_edge_loop

    buffer = ReportLog(echo=False)
    return _assembled_segment(assemble_edge_loop(curve, settings, sink=buffer), curve.entity, buffer, sink)


def convert_curve(
    curve: CurveDescription,
    settings: WireSettings,
    sink: ReportSink | None = None,
) -> Segment:
    """Convert one curve description into a segment."""
    sink = sink if sink is not None else ReportLog()
    if isinstance(curve, TrimmedCurve):
        return convert_trimmed_curve(curve, settings)
    if isinstance(curve, Polyline):
        return convert_polyline(curve, settings, sink)
    if isinstance(curve, PolyLoop):
        return convert_poly_loop(curve, settings, sink)
    if isinstance(curve, IndexedPolyCurve):
        return convert_indexed_poly_curve(curve)
    if isinstance(curve, CompositeCurve):
        return convert_composite(curve, settings, sink)
    if isinstance(curve, EdgeLoop):
        return convert_edge_loop(curve, settings, sink)
    if isinstance(curve, OrientedEdge):
        return convert_oriented_edge(curve, settings, sink)
    if isinstance(curve, Subedge):
        return convert_subedge(curve, settings, sink)
    if isinstance(curve, CurveEdge):
        return convert_curve_edge(curve, settings, sink)
    if isinstance(curve, VertexEdge):
        return convert_vertex_edge(curve)
    if isinstance(curve, OpenProfile):
        segment = convert_curve(curve.curve, settings, sink)
        return Segment(segment.edges, curve.entity or segment.entity)
    if isinstance(curve, (Circle, Ellipse)):
        return Segment((_conic(curve, 0.0, TWO_PI).edge(),), curve.entity)
    if isinstance(curve, Line):
        raise CurveConversionError("Unbounded line cannot form a segment", {"entity": curve.entity or ""})
    raise CurveConversionError(f"Unsupported curve description {type(curve).__name__}")


__all__ = [
    "ConicArc",
    "arc_through",
    "convert_curve",
    "convert_curve_edge",
    "convert_edge_loop",
    "convert_indexed_poly_curve",
    "convert_oriented_edge",
    "convert_poly_loop",
    "convert_polyline",
    "convert_subedge",
    "convert_trimmed_curve",
    "convert_vertex_edge",
]
