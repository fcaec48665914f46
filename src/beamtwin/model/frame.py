"""
Per-frame working buffers and the published frame result.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from beamtwin.model.normalization import N_FEATURES

if TYPE_CHECKING:
    import numpy.typing as npt


def format_summary(load: float, max_stress: float) -> str:
    """Two-line readout shown next to the beam."""
    return f"Load = {load:.0f} N\nσmax = {max_stress:.3f} MPa"


@dataclass
class FrameBuffers:
    """
    Caller-owned arrays reused across frames.

    ``batch`` and ``output`` are scratch and are reset after every frame.
    ``working``, ``colors``, ``stress`` and ``offsets`` hold the last
    published frame until the next successful tick overwrites them.
    """
    batch: npt.NDArray[np.float32]
    stress: npt.NDArray[np.float64]
    stress_ratio: npt.NDArray[np.float64]
    offsets: npt.NDArray[np.float64]
    working: npt.NDArray[np.float64]
    colors: npt.NDArray[np.float64]
    output: Optional[npt.NDArray[np.floating]] = None

    @classmethod
    def allocate(cls, n_points: int) -> FrameBuffers:
        return cls(
            batch=np.zeros((n_points, N_FEATURES), dtype=np.float32),
            stress=np.zeros(n_points, dtype=np.float64),
            stress_ratio=np.zeros(n_points, dtype=np.float64),
            offsets=np.zeros(n_points, dtype=np.float64),
            working=np.zeros((n_points, 3), dtype=np.float64),
            colors=np.zeros((n_points, 4), dtype=np.float64),
        )

    @property
    def n_points(self) -> int:
        return len(self.stress)

    def reset_scratch(self) -> None:
        self.batch.fill(0.0)
        self.output = None


@dataclass(frozen=True, eq=False)
class RenderUpdate:
    """
    Result of one tick. The arrays are views into the FrameBuffers and stay
    valid until the next tick writes them.
    """
    points: npt.NDArray[np.float64]
    colors: npt.NDArray[np.float64]
    stress: npt.NDArray[np.float64]
    offsets: npt.NDArray[np.float64]
    max_stress: float
    load: float
    summary: str
