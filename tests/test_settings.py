"""Tests for configuration loading and wire settings."""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from ifcwire.exceptions import ConfigurationError
from ifcwire.settings import Settings, WireSettings, get_settings


def test_wire_settings_defaults():
    settings = WireSettings()
    assert settings.precision == pytest.approx(1e-5)
    assert settings.join_threshold == pytest.approx(1e-5)
    assert settings.gap_insert_threshold == pytest.approx(1e-2)
    assert settings.dedupe_epsilon == pytest.approx(1e-4)
    assert settings.plane_angle_unit is None
    assert not settings.angle_unit_declared


def test_thresholds_follow_precision():
    settings = WireSettings(precision=0.001)
    assert settings.gap_insert_threshold == pytest.approx(1.0)
    assert settings.dedupe_epsilon == pytest.approx(0.01)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("radians", 1.0),
        ("DEGREE", math.pi / 180.0),
        ("unknown", None),
        (-1.0, None),
        (0.5, 0.5),
    ],
)
def test_plane_angle_unit_normalization(value, expected):
    settings = WireSettings(plane_angle_unit=value)
    if expected is None:
        assert settings.plane_angle_unit is None
    else:
        assert settings.plane_angle_unit == pytest.approx(expected)


def test_unknown_angle_unit_name_rejected():
    with pytest.raises(ValidationError):
        WireSettings(plane_angle_unit="gradians")


def test_non_positive_precision_rejected():
    with pytest.raises(ValidationError):
        WireSettings(precision=0.0)


def test_with_angle_unit_returns_copy():
    """Trial copies never leak into the original settings."""
    settings = WireSettings()
    trial = settings.with_angle_unit(math.pi / 180.0)
    assert trial.angle_unit_declared
    assert settings.plane_angle_unit is None


def test_load_yaml(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text(
        "wire:\n  precision: 0.0001\n  plane_angle_unit: degrees\nlogging:\n  level: debug\n",
        encoding="utf-8",
    )
    settings = Settings.load(config)
    assert settings.wire.precision == pytest.approx(1e-4)
    assert settings.wire.plane_angle_unit == pytest.approx(math.pi / 180.0)
    assert settings.logging.level == "DEBUG"


def test_load_missing_explicit_file_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        Settings.load(tmp_path / "missing.yaml")


def test_load_invalid_values_raises(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("wire:\n  precision: -1\n", encoding="utf-8")
    with pytest.raises(ConfigurationError) as exc_info:
        Settings.load(config)
    assert "Invalid configuration" in exc_info.value.message


def test_load_from_environment(tmp_path, monkeypatch):
    config = tmp_path / "env.yaml"
    config.write_text("wire:\n  dedupe_factor: 5\n", encoding="utf-8")
    monkeypatch.setenv("IFCWIRE_CONFIG", str(config))
    settings = Settings.load()
    assert settings.wire.dedupe_factor == pytest.approx(5.0)


def test_load_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.delenv("IFCWIRE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    settings = Settings.load()
    assert settings == Settings()


def test_get_settings_is_cached(tmp_path):
    config = tmp_path / "cached.yaml"
    config.write_text("wire:\n  precision: 0.002\n", encoding="utf-8")

    first = get_settings(str(config))
    config.write_text("wire:\n  precision: 0.5\n", encoding="utf-8")

    assert get_settings(str(config)) is first
    assert first.wire.precision == pytest.approx(0.002)
