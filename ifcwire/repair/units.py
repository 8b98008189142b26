"""
Plane angle unit resolution for composite curves.

Models without a declared plane angle unit leave the meaning of conic trim
parameters open. The composite is then built twice, once assuming radians
and once assuming degrees, and the more plausible wire is kept:

1. the only hypothesis that produced a wire,
2. otherwise the only one that produced a closed wire,
3. otherwise radians, the SI unit.

Each trial runs on its own settings copy and buffers its reports, so the
discarded trial leaves nothing behind.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from loguru import logger

from ifcwire import reporting
from ifcwire.curves.convert import convert_curve
from ifcwire.curves.models import CompositeCurve
from ifcwire.geometry.contract import DEGREES, RADIANS
from ifcwire.repair.assembler import AssemblyResult, SegmentConverter, assemble_composite
from ifcwire.reporting import ReportLog, ReportSink
from ifcwire.settings import WireSettings


@dataclass(frozen=True)
class UnitHypothesis:
    name: str
    factor: float


RADIANS_HYPOTHESIS = UnitHypothesis("radians", RADIANS)
DEGREES_HYPOTHESIS = UnitHypothesis("degrees", DEGREES)


@dataclass(frozen=True)
class UnitTrial:
    hypothesis: UnitHypothesis
    result: AssemblyResult
    reports: ReportLog

    @property
    def succeeded(self) -> bool:
        return self.result.ok

    @property
    def closed(self) -> bool:
        return self.result.closed


def select_hypothesis(radians: UnitTrial, degrees: UnitTrial) -> UnitTrial | None:
    if radians.succeeded and not degrees.succeeded:
        return radians
    if degrees.succeeded and not radians.succeeded:
        return degrees
    if not radians.succeeded:
        return None
    if degrees.closed and not radians.closed:
        return degrees
    # Equally plausible, e.g. a composite of straight segments only
    return radians


class UnitAmbiguityResolver:
    def __init__(
        self,
        settings: WireSettings,
        sink: ReportSink | None = None,
        convert: SegmentConverter = convert_curve,
    ) -> None:
        self.settings = settings
        self.sink = sink if sink is not None else ReportLog()
        self.convert = convert

    def resolve(self, curve: CompositeCurve) -> AssemblyResult:
        reporting.warning(self.sink, "Creating a composite curve without unit information", curve.entity)

        radians = self.trial(curve, RADIANS_HYPOTHESIS)
        degrees = self.trial(curve, DEGREES_HYPOTHESIS)
        chosen = select_hypothesis(radians, degrees)

        if chosen is None:
            reason = "Failed to create composite curve using radians or degrees"
            reporting.error(self.sink, reason, curve.entity)
            return AssemblyResult.failure(reason)

        chosen.reports.commit(self.sink)
        reporting.info(
            self.sink,
            f"Used {chosen.hypothesis.name} to create composite curve",
            curve.entity,
            hypothesis=chosen.hypothesis.name,
        )
        return replace(chosen.result, hypothesis=chosen.hypothesis.name)

    def trial(self, curve: CompositeCurve, hypothesis: UnitHypothesis) -> UnitTrial:
        """Build the composite under one unit hypothesis, in isolation."""
        buffer = ReportLog(echo=False)
        settings = self.settings.with_angle_unit(hypothesis.factor)
        try:
            result = assemble_composite(curve, settings, sink=buffer, convert=self.convert)
        except Exception as exc:
            logger.debug("Unknown error using {}: {}", hypothesis.name, exc)
            result = AssemblyResult.failure(f"Unknown error using {hypothesis.name}: {exc}")
        return UnitTrial(hypothesis, result, buffer)
