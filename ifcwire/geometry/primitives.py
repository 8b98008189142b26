"""Immutable geometric value types shared by the wire repair code."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, Protocol, Sequence

import numpy as np

from ifcwire.exceptions import SegmentError


@dataclass(frozen=True)
class Point:
    """3D coordinate in resolved length units."""
    x: float
    y: float
    z: float = 0.0

    @classmethod
    def from_coords(cls, coords: Sequence[float], scale: float = 1.0) -> "Point":
        values = [float(c) * scale for c in coords[:3]]
        while len(values) < 3:
            values.append(0.0)
        return cls(values[0], values[1], values[2])

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Point":
        return cls(float(array[0]), float(array[1]), float(array[2]))

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def distance(self, other: "Point") -> float:
        return math.dist(self.as_tuple(), other.as_tuple())


class CurveKind(str, Enum):
    """Classification of the curve underlying an edge."""
    LINEAR = "linear"
    CIRCULAR = "circular"
    ELLIPTICAL = "elliptical"
    SPLINE = "spline"
    OTHER = "other"

    @property
    def is_linear(self) -> bool:
        return self is CurveKind.LINEAR


class EdgeCurve(Protocol):
    """Parametric geometry carried by a non-linear edge."""

    def sample(self, count: int) -> list[Point]:
        ...

    def reversed(self) -> "EdgeCurve":
        ...


@dataclass(frozen=True)
class Edge:
    start: Point
    end: Point
    kind: CurveKind = CurveKind.LINEAR
    curve: EdgeCurve | None = field(default=None, repr=False)
    synthetic: bool = False

    @property
    def is_linear(self) -> bool:
        return self.kind.is_linear

    @property
    def chord(self) -> float:
        return self.start.distance(self.end)

    def with_start(self, point: Point) -> "Edge":
        """Straight edge from ``point`` to this edge's end."""
        return Edge(point, self.end, CurveKind.LINEAR, None, self.synthetic)

    def with_end(self, point: Point) -> "Edge":
        """Straight edge from this edge's start to ``point``."""
        return Edge(self.start, point, CurveKind.LINEAR, None, self.synthetic)

    def reversed(self) -> "Edge":
        curve = self.curve.reversed() if self.curve is not None else None
        return replace(self, start=self.end, end=self.start, curve=curve)

    def sample(self, count: int) -> list[Point]:
        """Points along the edge, endpoints included."""
        if self.curve is None or count <= 2:
            return [self.start, self.end]
        points = self.curve.sample(count)
        # Trimmed vertices win over the evaluated curve ends
        return [self.start, *points[1:-1], self.end]


@dataclass(frozen=True)
class Segment:
    """One converted curve: an ordered, non-empty run of edges."""
    edges: tuple[Edge, ...]
    entity: str | None = None

    def __post_init__(self) -> None:
        if not self.edges:
            raise SegmentError("Segment requires at least one edge", {"entity": self.entity or ""})
        object.__setattr__(self, "edges", tuple(self.edges))

    def __len__(self) -> int:
        return len(self.edges)

    @property
    def start(self) -> Point:
        return self.edges[0].start

    @property
    def end(self) -> Point:
        return self.edges[-1].end

    @property
    def first_edge(self) -> Edge:
        return self.edges[0]

    @property
    def last_edge(self) -> Edge:
        return self.edges[-1]

    @property
    def first_kind(self) -> CurveKind:
        return self.edges[0].kind

    @property
    def last_kind(self) -> CurveKind:
        return self.edges[-1].kind

    def incident_edges(self, point: Point) -> int:
        """Number of distinct edges having ``point`` as a vertex."""
        return sum(1 for edge in self.edges if edge.start == point or edge.end == point)

    def with_start(self, point: Point) -> "Segment":
        """Copy whose first edge is rebuilt as a straight edge starting at ``point``."""
        first = self.edges[0].with_start(point)
        return Segment((first, *self.edges[1:]), self.entity)

    def with_end(self, point: Point) -> "Segment":
        """Copy whose last edge is rebuilt as a straight edge ending at ``point``."""
        last = self.edges[-1].with_end(point)
        return Segment((*self.edges[:-1], last), self.entity)

    def reversed(self) -> "Segment":
        return Segment(tuple(edge.reversed() for edge in reversed(self.edges)), self.entity)


@dataclass(frozen=True)
class Loop:
    """Assembled wire."""
    edges: tuple[Edge, ...]
    closed: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "edges", tuple(self.edges))

    def __len__(self) -> int:
        return len(self.edges)

    @property
    def start(self) -> Point | None:
        return self.edges[0].start if self.edges else None

    @property
    def end(self) -> Point | None:
        return self.edges[-1].end if self.edges else None

    @property
    def connector_count(self) -> int:
        return sum(1 for edge in self.edges if edge.synthetic)

    def vertices(self) -> list[Point]:
        """Edge start points followed by the final end point when open."""
        if not self.edges:
            return []
        points = [edge.start for edge in self.edges]
        if not self.closed:
            points.append(self.edges[-1].end)
        return points

    def to_segment(self, entity: str | None = None) -> Segment:
        return Segment(self.edges, entity)


@dataclass(frozen=True)
class PointLoop:
    """Ordered points of a polygon-style input, before edges exist."""
    points: tuple[Point, ...]
    closed: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(self.points))

    def __len__(self) -> int:
        return len(self.points)
