"""Curve descriptions

Plain, immutable descriptions of the IFC curve and edge types the wire code can turn
into segments. Coordinates and radii are already scaled to model length
units; trim parameters are kept raw because their unit depends on the basis
curve and, for conics, on the plane angle unit in force.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from ifcwire.geometry.primitives import Point


Vector = tuple[float, float, float]


@dataclass(frozen=True)
class Placement:
    location: Point = Point(0.0, 0.0, 0.0)
    x_axis: Vector = (1.0, 0.0, 0.0)
    z_axis: Vector = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class Line:
    origin: Point
    direction: Vector
    magnitude: float = 1.0
    entity: str | None = None


@dataclass(frozen=True)
class Circle:
    position: Placement
    radius: float
    entity: str | None = None


@dataclass(frozen=True)
class Ellipse:
    position: Placement
    semi_axis1: float
    semi_axis2: float
    entity: str | None = None


BasisCurve = Union[Line, Circle, Ellipse]


@dataclass(frozen=True)
class Trim:
    """One end of a trimmed curve, by cartesian point, parameter, or both."""
    point: Point | None = None
    parameter: float | None = None


@dataclass(frozen=True)
class TrimmedCurve:
    basis: BasisCurve
    trim1: Trim
    trim2: Trim
    sense_agreement: bool = True
    # False when the master representation is PARAMETER
    prefer_cartesian: bool = True
    entity: str | None = None


@dataclass(frozen=True)
class Polyline:
    points: tuple[Point, ...]
    entity: str | None = None


@dataclass(frozen=True)
class PolyLoop:
    points: tuple[Point, ...]
    entity: str | None = None


@dataclass(frozen=True)
class LineIndex:
    indices: tuple[int, ...]


@dataclass(frozen=True)
class ArcIndex:
    indices: tuple[int, ...]


@dataclass(frozen=True)
class IndexedPolyCurve:
    points: tuple[Point, ...]
    segments: tuple[Union[LineIndex, ArcIndex], ...] | None = None
    entity: str | None = None


@dataclass(frozen=True)
class CompositeCurveSegment:
    curve: "CurveDescription"
    same_sense: bool = True


@dataclass(frozen=True)
class CompositeCurve:
    segments: tuple[CompositeCurveSegment, ...] = field(default_factory=tuple)
    # Referenced by a profile definition, so the wire must be closed
    bounds_profile: bool = False
    entity: str | None = None


@dataclass(frozen=True)
class VertexEdge:
    """Straight topological edge between two vertex points."""
    start: Point
    end: Point
    entity: str | None = None


@dataclass(frozen=True)
class CurveEdge:
    """Edge running along ``geometry`` between two vertex points."""
    start: Point
    end: Point
    geometry: "CurveDescription"
    same_sense: bool = True
    entity: str | None = None


@dataclass(frozen=True)
class OrientedEdge:
    edge: "EdgeDescription"
    orientation: bool = True
    entity: str | None = None


@dataclass(frozen=True)
class Subedge:
    """Part of ``parent`` between two of its points."""
    start: Point
    end: Point
    parent: "EdgeDescription"
    entity: str | None = None


@dataclass(frozen=True)
class EdgeLoop:
    edges: tuple[OrientedEdge, ...] = field(default_factory=tuple)
    entity: str | None = None


@dataclass(frozen=True)
class OpenProfile:
    curve: "CurveDescription"
    entity: str | None = None


EdgeDescription = Union[VertexEdge, CurveEdge, OrientedEdge, Subedge]

UNBOUNDED_CURVES = (Line, Circle, Ellipse)


CurveDescription = Union[
    Line,
    Circle,
    Ellipse,
    TrimmedCurve,
    Polyline,
    PolyLoop,
    IndexedPolyCurve,
    CompositeCurve,
    VertexEdge,
    CurveEdge,
    OrientedEdge,
    Subedge,
    EdgeLoop,
    OpenProfile,
]
