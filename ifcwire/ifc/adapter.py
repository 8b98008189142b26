"""
IFC adapter

Maps ifcopenshell curve entities onto curve descriptions and reads the model
units and precision the wire code needs. Coordinates are scaled to metres on
the way in; trim parameters stay raw.
"""

from __future__ import annotations

from typing import Any, Iterator

import ifcopenshell
import ifcopenshell.util.unit
from loguru import logger

from ifcwire.curves.models import (
    ArcIndex,
    Circle,
    CompositeCurve,
    CompositeCurveSegment,
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
    Trim,
    TrimmedCurve,
    VertexEdge,
)
from ifcwire.exceptions import CurveConversionError
from ifcwire.geometry.primitives import Point
from ifcwire.settings import WireSettings


BOUNDARY_CURVE_TYPES = (
    "IfcCompositeCurve",
    "IfcPolyline",
    "IfcPolyLoop",
    "IfcIndexedPolyCurve",
    "IfcEdgeLoop",
)


def entity_ref(entity: ifcopenshell.entity_instance) -> str:
    return f"#{entity.id()}={entity.is_a()}"


def _wrapped(value: Any) -> Any:
    return getattr(value, "wrappedValue", value)


def _point(entity: ifcopenshell.entity_instance, scale: float) -> Point:
    return Point.from_coords(entity.Coordinates, scale)


def _direction(entity: ifcopenshell.entity_instance | None, default: tuple[float, float, float]) -> tuple[float, float, float]:
    if entity is None:
        return default
    ratios = [float(r) for r in entity.DirectionRatios]
    while len(ratios) < 3:
        ratios.append(0.0)
    return (ratios[0], ratios[1], ratios[2])


def _placement(entity: ifcopenshell.entity_instance, scale: float) -> Placement:
    location = _point(entity.Location, scale)
    x_axis = _direction(entity.RefDirection, (1.0, 0.0, 0.0))
    z_axis = (0.0, 0.0, 1.0)
    if entity.is_a("IfcAxis2Placement3D"):
        z_axis = _direction(entity.Axis, z_axis)
    return Placement(location, x_axis, z_axis)


def _trim(items: Any, scale: float) -> Trim:
    point = None
    parameter = None
    for item in items or ():
        if item.is_a("IfcCartesianPoint"):
            point = _point(item, scale)
        elif item.is_a("IfcParameterValue"):
            parameter = float(_wrapped(item))
    return Trim(point=point, parameter=parameter)


def _vertex(vertex: ifcopenshell.entity_instance, scale: float, ref: str) -> Point:
    if not vertex.is_a("IfcVertexPoint"):
        raise CurveConversionError("Only IfcVertexPoints are supported for EdgeStart and -End", {"entity": ref})
    geometry = vertex.VertexGeometry
    if not geometry.is_a("IfcCartesianPoint"):
        raise CurveConversionError("Only IfcCartesianPoints are supported for VertexGeometry", {"entity": ref})
    return _point(geometry, scale)


def _bounds_profile(model: ifcopenshell.file, entity: ifcopenshell.entity_instance) -> bool:
    # Open profiles reference their curve without enclosing an area
    return any(
        inverse.is_a("IfcProfileDef") and not inverse.is_a("IfcArbitraryOpenProfileDef")
        for inverse in model.get_inverse(entity)
    )


def curve_from_entity(
    entity: ifcopenshell.entity_instance,
    model: ifcopenshell.file,
    length_unit: float = 1.0,
) -> CurveDescription:
    """Describe an IFC curve, edge, edge loop or open profile entity.

    Raises:
        CurveConversionError: For curve types the wire code does not handle.
    """
    ref = entity_ref(entity)
    scale = length_unit

    if entity.is_a("IfcPolyline"):
        return Polyline(tuple(_point(p, scale) for p in entity.Points), ref)

    if entity.is_a("IfcPolyLoop"):
        return PolyLoop(tuple(_point(p, scale) for p in entity.Polygon), ref)

    if entity.is_a("IfcCompositeCurve"):
        segments = tuple(
            CompositeCurveSegment(curve_from_entity(s.ParentCurve, model, length_unit), bool(s.SameSense))
            for s in entity.Segments
        )
        return CompositeCurve(segments, _bounds_profile(model, entity), ref)

    if entity.is_a("IfcTrimmedCurve"):
        basis = curve_from_entity(entity.BasisCurve, model, length_unit)
        if not isinstance(basis, (Line, Circle, Ellipse)):
            raise CurveConversionError(f"Unsupported basis curve {entity.BasisCurve.is_a()}", {"entity": ref})
        return TrimmedCurve(
            basis=basis,
            trim1=_trim(entity.Trim1, scale),
            trim2=_trim(entity.Trim2, scale),
            sense_agreement=bool(entity.SenseAgreement),
            prefer_cartesian=entity.MasterRepresentation != "PARAMETER",
            entity=ref,
        )

    if entity.is_a("IfcLine"):
        vector = entity.Dir
        return Line(
            origin=_point(entity.Pnt, scale),
            direction=_direction(vector.Orientation, (1.0, 0.0, 0.0)),
            magnitude=float(vector.Magnitude),
            entity=ref,
        )

    if entity.is_a("IfcCircle"):
        return Circle(_placement(entity.Position, scale), float(entity.Radius) * scale, ref)

    if entity.is_a("IfcEllipse"):
        return Ellipse(
            _placement(entity.Position, scale),
            float(entity.SemiAxis1) * scale,
            float(entity.SemiAxis2) * scale,
            ref,
        )

    if entity.is_a("IfcIndexedPolyCurve"):
        points = tuple(Point.from_coords(c, scale) for c in entity.Points.CoordList)
        segments = None
        if entity.Segments:
            parsed: list[LineIndex | ArcIndex] = []
            for item in entity.Segments:
                indices = tuple(int(i) for i in _wrapped(item))
                if item.is_a("IfcArcIndex"):
                    parsed.append(ArcIndex(indices))
                else:
                    parsed.append(LineIndex(indices))
            segments = tuple(parsed)
        return IndexedPolyCurve(points, segments, ref)

    if entity.is_a("IfcEdgeLoop"):
        edges = tuple(curve_from_entity(e, model, length_unit) for e in entity.EdgeList)
        return EdgeLoop(edges, ref)

    # Edge subtypes before IfcEdge itself
    if entity.is_a("IfcOrientedEdge"):
        return OrientedEdge(curve_from_entity(entity.EdgeElement, model, length_unit), bool(entity.Orientation), ref)

    if entity.is_a("IfcSubedge"):
        return Subedge(
            _vertex(entity.EdgeStart, scale, ref),
            _vertex(entity.EdgeEnd, scale, ref),
            curve_from_entity(entity.ParentEdge, model, length_unit),
            ref,
        )

    if entity.is_a("IfcEdgeCurve"):
        return CurveEdge(
            _vertex(entity.EdgeStart, scale, ref),
            _vertex(entity.EdgeEnd, scale, ref),
            curve_from_entity(entity.EdgeGeometry, model, length_unit),
            bool(entity.SameSense),
            ref,
        )

    if entity.is_a("IfcEdge"):
        return VertexEdge(_vertex(entity.EdgeStart, scale, ref), _vertex(entity.EdgeEnd, scale, ref), ref)

    if entity.is_a("IfcArbitraryOpenProfileDef"):
        return OpenProfile(curve_from_entity(entity.Curve, model, length_unit), ref)

    raise CurveConversionError(f"Unsupported curve type {entity.is_a()}", {"entity": ref})


def _plane_angle_unit(model: ifcopenshell.file) -> float | None:
    for assignment in model.by_type("IfcUnitAssignment"):
        for unit in assignment.Units:
            if getattr(unit, "UnitType", None) != "PLANEANGLEUNIT":
                continue
            if unit.is_a("IfcSIUnit"):
                return 1.0
            if unit.is_a("IfcConversionBasedUnit"):
                return float(_wrapped(unit.ConversionFactor.ValueComponent))
    return None


def model_units(model: ifcopenshell.file) -> tuple[float, float | None]:
    """Length scale to metres and plane angle factor to radians (None if undeclared)."""
    length_unit = 1.0
    if model.by_type("IfcProject"):
        try:
            length_unit = float(ifcopenshell.util.unit.calculate_unit_scale(model))
        except Exception as exc:
            logger.debug("Could not determine length unit, assuming metres: {}", exc)
    return length_unit, _plane_angle_unit(model)


def model_precision(model: ifcopenshell.file, length_unit: float) -> float | None:
    """Precision of the model's 3D context in metres, when declared."""
    for context in model.by_type("IfcGeometricRepresentationContext"):
        if context.is_a("IfcGeometricRepresentationSubContext"):
            continue
        precision = getattr(context, "Precision", None)
        if precision:
            return float(precision) * length_unit
    return None


def settings_for_model(model: ifcopenshell.file, settings: WireSettings | None = None) -> WireSettings:
    settings = settings if settings is not None else WireSettings()
    length_unit, angle_unit = model_units(model)
    settings = settings.with_units(length_unit=length_unit, plane_angle_unit=angle_unit)
    precision = model_precision(model, length_unit)
    if precision is not None and precision > 0.0:
        settings = settings.model_copy(update={"precision": precision})
    return settings


def iter_boundary_curves(model: ifcopenshell.file) -> Iterator[ifcopenshell.entity_instance]:
    """Top-level boundary curves, skipping those nested in a composite or edge."""
    nested: set[int] = set()
    for composite in model.by_type("IfcCompositeCurve"):
        for segment in composite.Segments:
            nested.add(segment.ParentCurve.id())
    for edge in model.by_type("IfcEdgeCurve"):
        nested.add(edge.EdgeGeometry.id())
    for type_name in BOUNDARY_CURVE_TYPES:
        try:
            entities = model.by_type(type_name)
        except RuntimeError:
            # Type not present in this schema (IfcIndexedPolyCurve in IFC2X3)
            continue
        for entity in entities:
            if entity.id() not in nested:
                yield entity
