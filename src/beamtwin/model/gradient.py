"""
Colour Ramps
============
Maps a stress ratio in [0, 1] to an RGBA colour.

A Gradient is an ordered list of (position, colour) stops. Colours accept
anything Matplotlib understands ("red", "#ff8800", (r, g, b[, a])).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Sequence, Tuple, Union

import numpy as np
import matplotlib
from matplotlib.colors import to_rgba, to_hex

from beamtwin.exceptions import ConfigError

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

RGBA = Tuple[float, float, float, float]
ColorSpec = Union[str, Sequence[float]]


class GradientMode(StrEnum):
    BLEND = "blend"
    FIXED = "fixed"


@dataclass(frozen=True)
class GradientStop:
    position: float
    color: RGBA


@dataclass
class Gradient:
    """
    Piecewise colour ramp.

    BLEND interpolates linearly between neighbouring stops. FIXED holds the
    colour of the first stop at or after the evaluated position. Positions
    outside the first/last stop take the end colours.
    """
    stops: List[GradientStop] = field(default_factory=list)
    mode: GradientMode = GradientMode.BLEND

    def __post_init__(self) -> None:
        if not self.stops:
            raise ValueError("Gradient needs at least one colour stop.")
        self.stops = sorted(self.stops, key=lambda s: s.position)
        for stop in self.stops:
            if not 0.0 <= stop.position <= 1.0:
                raise ValueError(f"Gradient stop position {stop.position} outside [0, 1].")

        self._positions = np.array([s.position for s in self.stops], dtype=np.float64)
        self._colors = np.array([s.color for s in self.stops], dtype=np.float64)

    @classmethod
    def from_stops(
        cls,
        stops: Sequence[Tuple[float, ColorSpec]],
        mode: GradientMode = GradientMode.BLEND,
    ) -> Gradient:
        return cls(
            stops=[GradientStop(float(pos), to_rgba(color)) for pos, color in stops],
            mode=GradientMode(mode),
        )

    @classmethod
    def from_colormap(cls, name: str = "jet", n_stops: int = 9) -> Gradient:
        """Samples a Matplotlib colormap at ``n_stops`` evenly spaced positions."""
        if n_stops < 2:
            raise ValueError("A sampled colormap needs at least two stops.")
        cmap = matplotlib.colormaps[name]
        positions = np.linspace(0.0, 1.0, n_stops)
        return cls(stops=[GradientStop(float(p), tuple(float(c) for c in cmap(p))) for p in positions])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "stops": [
                {"position": s.position, "color": to_hex(s.color, keep_alpha=True)}
                for s in self.stops
            ],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Gradient:
        """
        Raises:
            ConfigError: If the block names an unknown colormap or colour,
                or a stop is malformed.
        """
        try:
            if "colormap" in data:
                return Gradient.from_colormap(data["colormap"], int(data.get("n_stops", 9)))
            return Gradient.from_stops(
                [(s["position"], s["color"]) for s in data.get("stops", [])],
                mode=GradientMode(data.get("mode", GradientMode.BLEND)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid gradient: {e}") from e

    @property
    def start_color(self) -> RGBA:
        return self.stops[0].color

    @property
    def end_color(self) -> RGBA:
        return self.stops[-1].color

    def evaluate(
        self,
        t: npt.NDArray[np.float64],
        out: npt.NDArray[np.float64] | None = None,
    ) -> npt.NDArray[np.float64]:
        """Colours for an array of positions, shape (N, 4)."""
        t = np.asarray(t, dtype=np.float64)
        if out is None:
            out = np.empty((len(t), 4), dtype=np.float64)

        if self.mode == GradientMode.FIXED:
            idx = np.searchsorted(self._positions, t, side="left")
            np.minimum(idx, len(self._positions) - 1, out=idx)
            out[:] = self._colors[idx]
            return out

        for channel in range(4):
            out[:, channel] = np.interp(t, self._positions, self._colors[:, channel])
        return out


DEFAULT_GRADIENT: Gradient = Gradient.from_stops(
    [(0.0, "#2166ac"), (0.5, "#f7f7f7"), (0.8, "#f4a582"), (1.0, "#b2182b")]
)


def color_for(stress_ratio: float, gradient: Gradient) -> RGBA:
    """Colour of a single stress ratio, clamped to [0, 1]."""
    t = min(max(float(stress_ratio), 0.0), 1.0)
    return tuple(float(c) for c in gradient.evaluate(np.array([t]))[0])


class ColorMapper:
    def __init__(self, gradient: Gradient = DEFAULT_GRADIENT) -> None:
        self.gradient = gradient

    def map(
        self,
        stress_ratio: npt.NDArray[np.float64],
        out: npt.NDArray[np.float64],
        gradient: Gradient | None = None,
    ) -> npt.NDArray[np.float64]:
        ramp = gradient or self.gradient
        return ramp.evaluate(np.clip(stress_ratio, 0.0, 1.0), out=out)
