"""
Twin State (Data Model)
=======================
Plain data containers for the beam, the live inputs and the viewer settings.

Classes:
    BeamGeometry: Physical dimensions of the beam.
    LiveInputs: Operator-controlled load and material values.
    MappingSettings: Coordinate mapping and visual exaggeration.
    TwinSettings: Everything the host persists between sessions.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
import json
import logging
import math
import os
from typing import Any, Dict, Optional

from beamtwin.exceptions import ConfigError

logger = logging.getLogger(__name__)

MAX_DESIGN_LOAD_N: float = 180000.0
SENSITIVITY_RANGE: tuple[float, float] = (0.1, 5.0)  # advisory, not enforced


@dataclass(frozen=True)
class BeamGeometry:
    length_mm: float = 1050.0
    height_mm: float = 300.0

    def __post_init__(self) -> None:
        for name in ("length_mm", "height_mm"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"Beam {name} must be a number, got {value!r}.")
            if not (math.isfinite(value) and value > 0):
                raise ConfigError(f"Beam {name} must be positive and finite, got {value}.")

    @property
    def half_length_mm(self) -> float:
        return self.length_mm * 0.5


@dataclass
class LiveInputs:
    """Values changed by the operator every frame. Read-only to the pipeline."""
    load: float = 0.0  # N, 0..MAX_DESIGN_LOAD_N
    deflection: float = 5.5  # mm
    fc: float = 25.0  # MPa
    fy: float = 314.0  # MPa

    def validate(self) -> None:
        """
        Raises:
            ConfigError: If a value is not finite or the yield strength is
                not positive.
        """
        for name in ("load", "deflection", "fc", "fy"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ConfigError(f"Input {name} must be finite, got {value}.")
        if not self.fy > 0:
            raise ConfigError(f"Yield strength fy must be positive, got {self.fy}.")


@dataclass
class MappingSettings:
    # Local x already centered at mid-span ([-0.5, 0.5]) vs origin-anchored ([0, 1])
    center_is_zero: bool = True
    sensitivity: float = 1.0


@dataclass
class TwinSettings:
    """
    Settings persisted by the host. Paths are optional; a missing model or
    scaler file puts the controller into Idle mode.
    """
    geometry: BeamGeometry = field(default_factory=BeamGeometry)
    inputs: LiveInputs = field(default_factory=LiveInputs)
    mapping: MappingSettings = field(default_factory=MappingSettings)
    scaler_path: Optional[str] = None
    model_path: Optional[str] = None
    gradient: Optional[Dict[str, Any]] = None
    frame_interval_ms: int = 33

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> TwinSettings:
        try:
            return TwinSettings(
                geometry=BeamGeometry(**data.get("geometry", {})),
                inputs=LiveInputs(**data.get("inputs", {})),
                mapping=MappingSettings(**data.get("mapping", {})),
                scaler_path=data.get("scaler_path"),
                model_path=data.get("model_path"),
                gradient=data.get("gradient"),
                frame_interval_ms=int(data.get("frame_interval_ms", 33)),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid settings: {e}") from e


def load_settings(filepath: Optional[str]) -> TwinSettings:
    """Reads settings JSON. A missing file yields the defaults."""
    if not filepath or not os.path.exists(filepath):
        logger.info("No settings file found, using defaults.")
        return TwinSettings()

    logger.info(f"Loading settings from: {filepath}")
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read settings '{filepath}': {e}")
        raise ConfigError(f"Failed to read settings '{filepath}': {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file '{filepath}' must contain an object.")

    settings = TwinSettings.from_dict(data)

    # Relative asset paths are resolved against the settings file
    base_dir = os.path.dirname(os.path.abspath(filepath))
    if settings.scaler_path and not os.path.isabs(settings.scaler_path):
        settings.scaler_path = os.path.join(base_dir, settings.scaler_path)
    if settings.model_path and not os.path.isabs(settings.model_path):
        settings.model_path = os.path.join(base_dir, settings.model_path)

    return settings


def save_settings(settings: TwinSettings, filepath: str) -> None:
    logger.info(f"Saving settings to: {filepath}")
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)
