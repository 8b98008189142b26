from __future__ import annotations

import math

import pytest

from ifcwire.geometry.kernel import PlaneFrame, ShapelyKernel, make_polygon
from ifcwire.geometry.primitives import Loop, Point
from ifcwire.repair.intersections import SelfIntersectionResolver, select_largest
from ifcwire.reporting import ReportLog, Severity


def polygon(*coords) -> Loop:
    return make_polygon([Point(*c) for c in coords], close=True)


class FakeKernel:
    def __init__(self, cycles, areas):
        self.cycles = cycles
        self.areas = areas

    def self_intersections(self, loop):
        return list(self.cycles)

    def measure(self, loop):
        return self.areas[self.cycles.index(loop)]


def test_largest_cycle_is_kept():
    small = polygon((0, 0), (1, 0), (1, 1))
    large = polygon((0, 0), (5, 0), (5, 4))
    log = ReportLog(echo=False)
    resolver = SelfIntersectionResolver(log, FakeKernel([small, large], [1.0, 10.0]))

    result = resolver.resolve(polygon((0, 0), (2, 0), (2, 2)), "#3=IfcPolyLoop")

    assert result == large
    assert log.messages() == ["Self-intersections with 2 cycles detected, 1 discarded"]
    assert log.reports[0].severity is Severity.WARNING
    assert log.reports[0].details == {"cycles": 2, "discarded": 1}


def test_first_cycle_wins_ties():
    first = polygon((0, 0), (1, 0), (1, 1))
    second = polygon((0, 0), (0, 1), (-1, 1))
    assert select_largest([first, second], FakeKernel([first, second], [2.0, 2.0])) == first


def test_simple_loop_is_returned_unchanged():
    square = polygon((0, 0), (1, 0), (1, 1), (0, 1))
    log = ReportLog(echo=False)

    assert SelfIntersectionResolver(log).resolve(square) == square
    assert len(log) == 0


def test_bowtie_keeps_larger_lobe():
    bowtie = polygon((-2, 2), (1, -1), (1, 1), (-2, -2))
    log = ReportLog(echo=False)
    kernel = ShapelyKernel()

    result = SelfIntersectionResolver(log, kernel).resolve(bowtie)

    assert result.closed
    assert kernel.measure(result) == pytest.approx(4.0)
    assert "2 cycles detected, 1 discarded" in log.messages()[0]


def test_measure_uses_best_fit_plane():
    inclined = polygon((0, 0, 0), (1, 0, 1), (1, 1, 1), (0, 1, 0))
    assert ShapelyKernel().measure(inclined) == pytest.approx(math.sqrt(2.0))


def test_vertical_bowtie_with_cancelling_lobes():
    # Equal lobes of opposite winding in the XZ plane
    bowtie = polygon((0, 0, 0), (1, 0, 1), (1, 0, 0), (0, 0, 1))
    log = ReportLog(echo=False)
    kernel = ShapelyKernel()

    result = SelfIntersectionResolver(log, kernel).resolve(bowtie)

    assert result.closed
    assert kernel.measure(result) == pytest.approx(0.25)
    assert log.messages() == ["Self-intersections with 2 cycles detected, 1 discarded"]
    assert all(p.y == pytest.approx(0.0) for e in result.edges for p in (e.start, e.end))


def test_plane_fit_of_vertical_bowtie_spans_the_plane():
    points = [Point(0, 0, 0), Point(1, 0, 1), Point(1, 0, 0), Point(0, 0, 1)]
    frame = PlaneFrame.fit(points)

    projected = {tuple(round(c, 9) for c in frame.project(p)) for p in points}

    assert len(projected) == 4
    assert abs(frame.u[1]) < 1e-9 and abs(frame.v[1]) < 1e-9
