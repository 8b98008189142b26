"""CLI for repairing the boundary curves of an IFC file."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Sequence

import ifcopenshell

from ifcwire.exceptions import ConfigurationError, IfcWireError
from ifcwire.ifc.adapter import curve_from_entity, entity_ref, iter_boundary_curves, settings_for_model
from ifcwire.logging_config import get_logger, setup_logging
from ifcwire.pipeline import build_wire
from ifcwire.repair.assembler import AssemblyResult
from ifcwire.reporting import ReportLog
from ifcwire.settings import WireSettings, get_settings

logger = get_logger("ifcwire.cli")


def _summarize(entity: str, result: AssemblyResult) -> dict[str, Any]:
    summary: dict[str, Any] = {"entity": entity, "ok": result.ok}
    if result.ok and result.loop is not None:
        summary.update(
            closed=result.loop.closed,
            edges=len(result.loop),
            connectors=result.loop.connector_count,
        )
    else:
        summary["reason"] = result.reason
    if result.hypothesis:
        summary["angle_unit"] = result.hypothesis
    return summary


def repair_model(
    model: ifcopenshell.file,
    settings: WireSettings,
    reports: ReportLog,
    *,
    precision: float | None = None,
) -> list[dict[str, Any]]:
    """Build the wire of every boundary curve in the model."""
    settings = settings_for_model(model, settings)
    # An explicit precision wins over the one declared in the model
    if precision is not None:
        settings = settings.model_copy(update={"precision": precision})
    logger.info(
        "Model units: length {} m, plane angle {}, precision {}",
        settings.length_unit,
        settings.plane_angle_unit if settings.angle_unit_declared else "undeclared",
        settings.precision,
    )
    results: list[dict[str, Any]] = []
    for entity in iter_boundary_curves(model):
        ref = entity_ref(entity)
        try:
            curve = curve_from_entity(entity, model, settings.length_unit)
        except IfcWireError as exc:
            reports.error(exc.message, ref)
            results.append({"entity": ref, "ok": False, "reason": exc.message})
            continue
        results.append(_summarize(ref, build_wire(curve, settings, reports)))
    return results


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Join and repair the boundary curves of an IFC file")
    parser.add_argument("ifc_file", type=Path, help="IFC file to inspect")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--precision", type=float, help="Override the model precision (metres)")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    parser.add_argument("--output", type=Path, help="Write the JSON summary to this file instead of stdout")

    args = parser.parse_args(argv)

    try:
        settings = get_settings(str(args.config) if args.config else None)
    except ConfigurationError as exc:
        sys.stderr.write(f"{exc.message}\n")
        return 2

    setup_logging(
        level=args.log_level.upper() if args.log_level else settings.logging.level,
        json_format=args.json_logs or settings.logging.json_format,
        log_file=settings.logging.log_file,
    )

    try:
        model = ifcopenshell.open(str(args.ifc_file))
    except Exception as exc:
        logger.error("Cannot open IFC file {}: {}", args.ifc_file, exc)
        return 1

    reports = ReportLog()
    results = repair_model(model, settings.wire, reports, precision=args.precision)

    payload = {
        "file": str(args.ifc_file),
        "curves": results,
        "reports": reports.to_dict(),
    }
    text = json.dumps(payload, indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info("Saved summary to {}", args.output)
    else:
        sys.stdout.write(text + "\n")

    failed = sum(1 for item in results if not item["ok"])
    if failed:
        logger.warning("{} of {} curves failed", failed, len(results))
    return 0


if __name__ == "__main__":
    sys.exit(main())
