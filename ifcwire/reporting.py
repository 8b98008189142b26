"""
Repair Reporting

Structured events emitted for every repair and every failure while wires are
assembled. Sinks collect them for the caller; a ``ReportLog`` can also echo
them to the application log.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from ifcwire.logging_config import NO_ENTITY, get_logger


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOGURU_LEVELS = {
    Severity.INFO: "INFO",
    Severity.WARNING: "WARNING",
    Severity.ERROR: "ERROR",
}


@dataclass(frozen=True)
class Report:
    """One repair or failure event."""

    severity: Severity
    message: str
    entity: str | None = None
    details: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "entity": self.entity,
            "details": dict(self.details),
        }


class ReportSink(Protocol):
    def emit(self, report: Report) -> None:
        ...


class ReportLog:
    """In-memory report sink.

    With ``echo`` enabled every report is also written to the loguru logger
    as it arrives. Trial runs use a silent log and ``commit`` its reports to
    the real sink only if the trial is kept.
    """

    def __init__(self, *, echo: bool = True) -> None:
        self.echo = echo
        self.reports: list[Report] = []

    def __len__(self) -> int:
        return len(self.reports)

    def __iter__(self):
        return iter(self.reports)

    def emit(self, report: Report) -> None:
        self.reports.append(report)
        if self.echo:
            get_logger("ifcwire.reporting", entity=report.entity or NO_ENTITY).log(
                _LOGURU_LEVELS[report.severity], "{} ({})", report.message, report.entity or "no entity"
            )

    def info(self, message: str, entity: str | None = None, **details: Any) -> None:
        self.emit(Report(Severity.INFO, message, entity, details))

    def warning(self, message: str, entity: str | None = None, **details: Any) -> None:
        self.emit(Report(Severity.WARNING, message, entity, details))

    def error(self, message: str, entity: str | None = None, **details: Any) -> None:
        self.emit(Report(Severity.ERROR, message, entity, details))

    def commit(self, sink: ReportSink) -> None:
        """Forward every collected report to another sink, in order."""
        for report in self.reports:
            sink.emit(report)

    def by_severity(self, severity: Severity) -> list[Report]:
        return [report for report in self.reports if report.severity == severity]

    def counts(self) -> dict[str, int]:
        counts = {severity.value: 0 for severity in Severity}
        for report in self.reports:
            counts[report.severity.value] += 1
        return counts

    def messages(self) -> list[str]:
        return [report.message for report in self.reports]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": len(self.reports),
            "by_severity": self.counts(),
            "list": [report.to_dict() for report in self.reports],
        }


def info(sink: ReportSink, message: str, entity: str | None = None, **details: Any) -> None:
    sink.emit(Report(Severity.INFO, message, entity, details))


def warning(sink: ReportSink, message: str, entity: str | None = None, **details: Any) -> None:
    sink.emit(Report(Severity.WARNING, message, entity, details))


def error(sink: ReportSink, message: str, entity: str | None = None, **details: Any) -> None:
    sink.emit(Report(Severity.ERROR, message, entity, details))
