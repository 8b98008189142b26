"""
Logging setup for ifcwire.

Every record carries the IFC entity it concerns in ``extra["entity"]``
("-" when it concerns none), so repairs in the stderr stream or the JSON log
can be traced back to the file.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger


NO_ENTITY = "-"

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<magenta>{extra[entity]}</magenta> | "
    "<level>{message}</level>"
)

_SOURCE_FIELDS = ("module", "function", "line")


class JSONFormatter:
    """One JSON object per record; bound context becomes top-level keys."""

    def __call__(self, record: dict[str, Any]) -> str:
        payload: dict[str, Any] = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name,
            "message": record["message"],
            "entity": NO_ENTITY,
        }
        for key in _SOURCE_FIELDS:
            payload[key] = record.get(key, "")
        payload.update({key: str(value) for key, value in (record.get("extra") or {}).items()})

        exception = record.get("exception")
        if exception is not None and exception.type is not None:
            payload["exception"] = f"{exception.type.__name__}: {exception.value}"

        # loguru formats the returned string once more
        return json.dumps(payload, ensure_ascii=False).replace("{", "{{").replace("}", "}}") + "\n"


def setup_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: Path | None = None,
) -> None:
    """Route loguru output to stderr and, optionally, a rotating file.

    Args:
        level: Minimum level name.
        json_format: Emit JSON lines instead of the coloured text format.
        log_file: Also write to this file, rotated at 10 MB.
    """
    logger.remove()
    logger.configure(extra={"entity": NO_ENTITY})

    formatter: Any = JSONFormatter() if json_format else TEXT_FORMAT
    logger.add(sys.stderr, format=formatter, level=level, colorize=not json_format)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=formatter,
            level=level,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
        )


def get_logger(name: str | None = None, *, entity: str | None = None) -> Any:
    """Logger bound to a component name and, optionally, an IFC entity reference."""
    context: dict[str, str] = {}
    if name:
        context["name"] = name
    if entity:
        context["entity"] = entity
    return logger.bind(**context) if context else logger
