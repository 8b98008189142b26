"""ifcwire - joining and repairing IFC boundary curves into wires.

Curve descriptions go in, ``AssemblyResult`` values come out; every repair
made on the way is reported to a sink.
"""

from .geometry.primitives import CurveKind, Edge, Loop, Point, PointLoop, Segment
from .pipeline import build_composite, build_wire
from .repair.assembler import AssemblyResult, LoopAssembler, assemble_composite, assemble_edge_loop, assemble_loop
from .repair.gaps import GapAction, GapDecision, GapResolver
from .repair.intersections import SelfIntersectionResolver
from .repair.points import DegenerateLoopCleaner
from .repair.units import UnitAmbiguityResolver
from .reporting import Report, ReportLog, ReportSink, Severity
from .settings import Settings, WireSettings

__all__ = [
    "AssemblyResult",
    "CurveKind",
    "DegenerateLoopCleaner",
    "Edge",
    "GapAction",
    "GapDecision",
    "GapResolver",
    "Loop",
    "LoopAssembler",
    "Point",
    "PointLoop",
    "Report",
    "ReportLog",
    "ReportSink",
    "Segment",
    "SelfIntersectionResolver",
    "Settings",
    "Severity",
    "UnitAmbiguityResolver",
    "WireSettings",
    "assemble_composite",
    "assemble_edge_loop",
    "assemble_loop",
    "build_composite",
    "build_wire",
]
