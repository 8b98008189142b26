from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ifcwire.exceptions import ConfigurationError
from ifcwire.geometry.contract import (
    DEDUPE_FACTOR,
    DEFAULT_PRECISION,
    DEGREES,
    GAP_INSERT_FACTOR,
    RADIANS,
)

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


_ANGLE_UNIT_NAMES = {
    "radian": RADIANS,
    "radians": RADIANS,
    "rad": RADIANS,
    "degree": DEGREES,
    "degrees": DEGREES,
    "deg": DEGREES,
}


class WireSettings(BaseModel):
    """Tolerances and units shared by every wire assembled from one model."""

    model_config = ConfigDict(frozen=True)

    precision: float = Field(DEFAULT_PRECISION, gt=0.0)
    length_unit: float = Field(1.0, gt=0.0)
    # None means the model does not declare a plane angle unit
    plane_angle_unit: float | None = None
    gap_insert_factor: float = Field(GAP_INSERT_FACTOR, gt=1.0)
    dedupe_factor: float = Field(DEDUPE_FACTOR, gt=0.0)

    @field_validator("plane_angle_unit", mode="before")
    @classmethod
    def _normalize_angle_unit(cls, value: Any) -> float | None:
        if value is None:
            return None
        if isinstance(value, str):
            key = value.strip().lower()
            if key in ("", "none", "unknown"):
                return None
            if key not in _ANGLE_UNIT_NAMES:
                raise ValueError(f"Unknown plane angle unit '{value}'")
            return _ANGLE_UNIT_NAMES[key]
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("plane_angle_unit must be a number or a unit name") from exc
        # Negative factors are how legacy configs spell "unknown"
        if number <= 0.0:
            return None
        return number

    @property
    def join_threshold(self) -> float:
        return self.precision

    @property
    def gap_insert_threshold(self) -> float:
        return self.precision * self.gap_insert_factor

    @property
    def dedupe_epsilon(self) -> float:
        return self.precision * self.dedupe_factor

    @property
    def angle_unit_declared(self) -> bool:
        return self.plane_angle_unit is not None

    def with_angle_unit(self, factor: float | None) -> "WireSettings":
        """Return a copy that assumes the given plane angle unit factor."""
        return self.model_copy(update={"plane_angle_unit": factor})

    def with_units(self, *, length_unit: float, plane_angle_unit: float | None) -> "WireSettings":
        return self.model_copy(update={"length_unit": length_unit, "plane_angle_unit": plane_angle_unit})


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    log_file: Path | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> str:
        if value is None:
            return "INFO"
        level = str(value).strip().upper()
        if level not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level '{value}'")
        return level


class Settings(BaseModel):
    wire: WireSettings = Field(default_factory=WireSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses
                IFCWIRE_CONFIG environment variable or defaults to config/default.yaml.

        Returns:
            Settings instance with loaded configuration. When no path is given
            and the default file does not exist, built-in defaults are used.

        Raises:
            ConfigurationError: If an explicit configuration file does not exist
                or the configuration is invalid.
        """
        explicit = path is not None or "IFCWIRE_CONFIG" in os.environ
        config_path = path or Path(os.getenv("IFCWIRE_CONFIG", "config/default.yaml"))
        if not config_path.exists():
            if explicit:
                raise ConfigurationError(
                    f"Configuration file not found: {config_path}",
                    {"path": str(config_path)},
                )
            return cls()
        with config_path.open("r", encoding="utf-8") as fp:
            payload = yaml.safe_load(fp) or {}
        try:
            return cls(**payload)
        except Exception as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", {"path": str(config_path)}) from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "WireSettings",
    "LoggingSettings",
    "get_settings",
]
