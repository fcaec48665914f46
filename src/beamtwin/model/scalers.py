"""
Feature Scalers
===============
Linear normalisation parameters for the six model features.

The blob is the JSON written next to the trained model, one
``{"mean": ..., "scale": ...}`` entry per feature:

    {"x": {...}, "y": {...}, "load_mag": {...},
     "global_deflection": {...}, "fc": {...}, "fy": {...}}
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
import json
import logging
import math
from typing import Any, Dict, Mapping, Union

from beamtwin.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Column order of the model input
FEATURE_NAMES: tuple[str, ...] = ("x", "y", "load_mag", "global_deflection", "fc", "fy")


@dataclass(frozen=True)
class ScalerItem:
    """Affine normalisation ``(value - mean) / scale``."""
    mean: float
    scale: float

    def __post_init__(self) -> None:
        if self.scale == 0:
            raise ConfigError("Scaler 'scale' must be non-zero.")

    @staticmethod
    def from_dict(name: str, data: Any) -> ScalerItem:
        if not isinstance(data, Mapping):
            raise ConfigError(f"Scaler '{name}' must be an object with 'mean' and 'scale'.")

        values = {}
        for field_name in ("mean", "scale"):
            if field_name not in data:
                raise ConfigError(f"Scaler '{name}' is missing '{field_name}'.")
            raw = data[field_name]
            # bool is an int subclass, JSON true/false is not a number here
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise ConfigError(f"Scaler '{name}.{field_name}' is not numeric: {raw!r}")
            if not math.isfinite(raw):
                raise ConfigError(f"Scaler '{name}.{field_name}' is not finite: {raw!r}")
            values[field_name] = float(raw)

        if values["scale"] == 0.0:
            raise ConfigError(f"Scaler '{name}' has a zero scale factor.")

        return ScalerItem(mean=values["mean"], scale=values["scale"])


@dataclass(frozen=True)
class ScalerData:
    x: ScalerItem
    y: ScalerItem
    load_mag: ScalerItem
    global_deflection: ScalerItem
    fc: ScalerItem
    fy: ScalerItem

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return asdict(self)


class ScalerStore:
    """
    Loads ScalerData once and exposes read-only accessors.

    Usage:
        store = ScalerStore(ScalerStore.from_file(path))
        store.fy.scale
    """
    def __init__(self, data: ScalerData) -> None:
        self._data = data

    @property
    def data(self) -> ScalerData:
        return self._data

    @property
    def x(self) -> ScalerItem:
        return self._data.x

    @property
    def y(self) -> ScalerItem:
        return self._data.y

    @property
    def load_mag(self) -> ScalerItem:
        return self._data.load_mag

    @property
    def global_deflection(self) -> ScalerItem:
        return self._data.global_deflection

    @property
    def fc(self) -> ScalerItem:
        return self._data.fc

    @property
    def fy(self) -> ScalerItem:
        return self._data.fy

    @staticmethod
    def load(blob: Union[Mapping[str, Any], str, bytes]) -> ScalerData:
        """
        Parse a scaler blob.

        Args:
            blob: Mapping, or the JSON text of one.

        Returns:
            The immutable ScalerData.

        Raises:
            ConfigError: If the blob is malformed, a key is missing,
                a value is not numeric or a scale is zero.
        """
        if isinstance(blob, (str, bytes)):
            try:
                blob = json.loads(blob)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise ConfigError(f"Scaler blob is not valid JSON: {e}") from e

        if not isinstance(blob, Mapping):
            raise ConfigError(f"Scaler blob must be an object, got {type(blob).__name__}.")

        missing = [name for name in FEATURE_NAMES if name not in blob]
        if missing:
            raise ConfigError(f"Scaler blob is missing entries: {', '.join(missing)}")

        extra = sorted(set(blob) - set(FEATURE_NAMES))
        if extra:
            logger.debug(f"Ignoring unknown scaler entries: {extra}")

        items = {name: ScalerItem.from_dict(name, blob[name]) for name in FEATURE_NAMES}
        logger.debug("Scalers loaded.")
        return ScalerData(**items)

    @staticmethod
    def from_file(filepath: str) -> ScalerData:
        logger.info(f"Loading scalers from: {filepath}")
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            logger.error(f"Could not read scaler file '{filepath}': {e}")
            raise ConfigError(f"Could not read scaler file '{filepath}': {e}") from e

        return ScalerStore.load(text)
