"""
Geometry kernel primitives used by the wire repair code.

Edges and wires are plain value types (see ``primitives``); shapely does the
planar work: node a loop at its self-intersections, polygonize the result and
measure the pieces. Loops are projected onto their best-fit plane first so
that poly loops of inclined faces are handled like plan polygons.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol, Sequence

import numpy as np
from loguru import logger
from shapely.geometry import LineString, Polygon
from shapely.ops import polygonize, unary_union

from ifcwire.exceptions import GeometryError, InsufficientPointsError
from ifcwire.geometry.contract import ARC_SAMPLES_PER_TURN, MIN_ARC_SAMPLES, MIN_OPEN_LOOP_POINTS
from ifcwire.geometry.primitives import CurveKind, Edge, Loop, Point, Segment


def straight_edge(start: Point, end: Point, *, synthetic: bool = False) -> Edge:
    return Edge(start, end, CurveKind.LINEAR, None, synthetic)


def make_polygon(points: Sequence[Point], *, close: bool) -> Loop:
    """Chain points into straight edges, optionally closing back to the first point."""
    if len(points) < MIN_OPEN_LOOP_POINTS:
        raise InsufficientPointsError(
            f"Polygon requires at least {MIN_OPEN_LOOP_POINTS} points, got {len(points)}"
        )
    edges = [straight_edge(a, b) for a, b in zip(points[:-1], points[1:])]
    if close:
        edges.append(straight_edge(points[-1], points[0]))
    return Loop(tuple(edges), closed=close)


class WireStatus(str, Enum):
    DONE = "done"
    EMPTY = "empty"
    DISCONNECTED = "disconnected"
    NON_MANIFOLD = "non_manifold"


class WireBuilder:
    """Accumulates edges into a single connected, manifold chain.

    An ``add`` that would leave a gap larger than the tolerance, or that
    would end on a vertex already used in the middle of the chain, is
    rejected as a whole and the corresponding status is returned.
    """

    def __init__(self, tolerance: float) -> None:
        self.tolerance = float(tolerance)
        self._edges: list[Edge] = []
        self.status = WireStatus.EMPTY

    @property
    def edges(self) -> tuple[Edge, ...]:
        return tuple(self._edges)

    def add(self, item: Edge | Segment | Iterable[Edge]) -> WireStatus:
        if isinstance(item, Edge):
            candidate = [item]
        elif isinstance(item, Segment):
            candidate = list(item.edges)
        else:
            candidate = list(item)
        if not candidate:
            return self.status

        chain = list(self._edges)
        for edge in candidate:
            if chain and chain[-1].end.distance(edge.start) > self.tolerance:
                self.status = WireStatus.DISCONNECTED
                return self.status
            if chain and self._touches_interior(chain, edge.end):
                self.status = WireStatus.NON_MANIFOLD
                return self.status
            chain.append(edge)

        self._edges = chain
        self.status = WireStatus.DONE
        return self.status

    def _touches_interior(self, chain: list[Edge], point: Point) -> bool:
        # Vertices shared by two chain edges; the chain start may still close the wire
        for edge in chain:
            if edge.end.distance(point) <= self.tolerance:
                return True
        return False

    def is_closed(self) -> bool:
        if not self._edges:
            return False
        return self._edges[-1].end.distance(self._edges[0].start) <= self.tolerance

    def wire(self) -> Loop:
        return Loop(tuple(self._edges), closed=self.is_closed())


def loop_points(loop: Loop) -> list[Point]:
    """Vertices of a loop with non-linear edges densified."""
    points: list[Point] = []
    for edge in loop.edges:
        count = 2
        if not edge.is_linear and edge.curve is not None:
            count = max(MIN_ARC_SAMPLES, ARC_SAMPLES_PER_TURN // 4)
        sampled = edge.sample(count)
        if points and points[-1] == sampled[0]:
            sampled = sampled[1:]
        points.extend(sampled)
    if loop.closed and len(points) > 1 and points[0] == points[-1]:
        points.pop()
    return points


@dataclass(frozen=True)
class PlaneFrame:
    """Orthonormal frame of the best-fit plane through a set of points."""
    origin: tuple[float, float, float]
    u: tuple[float, float, float]
    v: tuple[float, float, float]

    @classmethod
    def fit(cls, points: Sequence[Point]) -> "PlaneFrame":
        coords = np.array([p.as_tuple() for p in points], dtype=float)
        origin = coords.mean(axis=0)
        # Newell's method, robust for non-convex polygons
        normal = np.zeros(3)
        for current, following in zip(coords, np.roll(coords, -1, axis=0)):
            normal[0] += (current[1] - following[1]) * (current[2] + following[2])
            normal[1] += (current[2] - following[2]) * (current[0] + following[0])
            normal[2] += (current[0] - following[0]) * (current[1] + following[1])
        length = np.linalg.norm(normal)
        if length < 1e-12:
            # Lobes of opposite winding cancel, fall back to the least-variance direction
            _, _, vh = np.linalg.svd(coords - origin)
            normal = vh[-1]
        else:
            normal = normal / length
        if normal[2] < 0.0:
            normal = -normal
        helper = np.array([1.0, 0.0, 0.0]) if abs(normal[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
        u = helper - normal * float(helper.dot(normal))
        u = u / np.linalg.norm(u)
        v = np.cross(normal, u)
        return cls(tuple(origin), tuple(u), tuple(v))

    def project(self, point: Point) -> tuple[float, float]:
        delta = point.as_array() - np.array(self.origin)
        return (float(delta.dot(self.u)), float(delta.dot(self.v)))

    def lift(self, x: float, y: float) -> Point:
        return Point.from_array(np.array(self.origin) + x * np.array(self.u) + y * np.array(self.v))


class GeometryKernel(Protocol):
    def self_intersections(self, loop: Loop) -> list[Loop]:
        """Disjoint sub-loops of a self-intersecting loop, or [] when it is simple."""
        ...

    def measure(self, loop: Loop) -> float:
        """Area enclosed by a closed loop."""
        ...


class ShapelyKernel:
    """Planar kernel backed by shapely."""

    def _planar(self, loop: Loop) -> tuple[PlaneFrame, list[tuple[float, float]]]:
        points = loop_points(loop)
        if len(points) < 3:
            raise GeometryError("Loop has fewer than three distinct vertices")
        frame = PlaneFrame.fit(points)
        return frame, [frame.project(p) for p in points]

    def self_intersections(self, loop: Loop) -> list[Loop]:
        if not loop.closed:
            raise GeometryError("Self-intersection test requires a closed loop")
        frame, coords = self._planar(loop)
        ring = LineString(coords + [coords[0]])
        if ring.is_simple:
            return []
        noded = unary_union(ring)
        cycles: list[Loop] = []
        for piece in polygonize(noded):
            exterior = list(piece.exterior.coords)[:-1]
            if len(exterior) < 3:
                continue
            lifted = [frame.lift(x, y) for x, y in exterior]
            cycles.append(make_polygon(lifted, close=True))
        logger.debug("Loop with {} edges decomposed into {} cycles", len(loop), len(cycles))
        return cycles

    def measure(self, loop: Loop) -> float:
        _, coords = self._planar(loop)
        return float(abs(Polygon(coords).area))
