"""
Physics Post-Processing
=======================
Turns the model's shape factor into engineering stress and a visual
deflection of the surface.

The network only predicts how stress is distributed over the beam. The
magnitude is rebuilt analytically from

    stress = |shape| * fy * load_ratio,   load_ratio = clamp(load / 180 kN, 0, 1)

and the deflection follows a parabolic profile that vanishes at the supports
and peaks at mid-span:

    xi     = clamp(1 - |x| / (L / 2), 0, 1)
    offset = -xi^2 * deflection[m] * sensitivity

A non-positive load short-circuits both to zero without reading the model.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

import numpy as np

from beamtwin.model.frame import FrameBuffers
from beamtwin.model.normalization import physical_x
from beamtwin.model.state import BeamGeometry, LiveInputs, MappingSettings, MAX_DESIGN_LOAD_N

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

MM_TO_M: float = 0.001

# Output column holding the shape factor
SHAPE_FACTOR_COLUMN: int = 1


@dataclass(frozen=True)
class PhysicsSummary:
    max_stress: float
    load_ratio: float


def load_ratio(load: float) -> float:
    return float(np.clip(load / MAX_DESIGN_LOAD_N, 0.0, 1.0))


def stress_ratio(stress: float, fy: float, load: float) -> float:
    """Fraction of yield reached, clamped to [0, 1]; 0 when unloaded or fy <= 0."""
    if load <= 0 or fy <= 0:
        return 0.0
    return float(np.clip(stress / fy, 0.0, 1.0))


class PhysicsPostProcessor:
    def __init__(self, geometry: BeamGeometry) -> None:
        self.geometry = geometry

    def compute_stress(
        self,
        shape: npt.NDArray[np.floating],
        inputs: LiveInputs,
        out: npt.NDArray[np.float64],
    ) -> float:
        """Writes stress [MPa] into ``out`` and returns the frame maximum."""
        if inputs.load <= 0:
            out.fill(0.0)
            return 0.0

        np.abs(shape, out=out)
        out *= inputs.fy * load_ratio(inputs.load)
        return float(out.max(initial=0.0))

    def compute_stress_ratio(
        self,
        stress: npt.NDArray[np.float64],
        inputs: LiveInputs,
        out: npt.NDArray[np.float64],
    ) -> npt.NDArray[np.float64]:
        if inputs.load <= 0 or inputs.fy <= 0:
            out.fill(0.0)
            return out

        np.divide(stress, inputs.fy, out=out)
        np.clip(out, 0.0, 1.0, out=out)
        return out

    def compute_deflection(
        self,
        local_x: npt.NDArray[np.float64],
        inputs: LiveInputs,
        mapping: MappingSettings,
        out: npt.NDArray[np.float64],
    ) -> npt.NDArray[np.float64]:
        """Vertical offsets in the local coordinate space of the mesh."""
        if inputs.load <= 0:
            out.fill(0.0)
            return out

        phys_x = physical_x(local_x, self.geometry.length_mm, mapping.center_is_zero)
        xi = np.clip(1.0 - np.abs(phys_x) / self.geometry.half_length_mm, 0.0, 1.0)

        max_deflection_m = inputs.deflection * MM_TO_M
        np.multiply(xi * xi, -max_deflection_m * mapping.sensitivity, out=out)
        return out

    def process(
        self,
        output: npt.NDArray[np.floating],
        baseline: npt.NDArray[np.float64],
        inputs: LiveInputs,
        mapping: MappingSettings,
        buffers: FrameBuffers,
    ) -> PhysicsSummary:
        """
        Fills stress, stress ratio, offsets and working positions.

        Args:
            output: Raw (N, C) model output, C >= 2.
            baseline: (N, 3) undeformed local positions.
            inputs: Live inputs of this frame.
            mapping: Coordinate mapping and sensitivity.
            buffers: Destination arrays.
        """
        max_stress = self.compute_stress(output[:, SHAPE_FACTOR_COLUMN], inputs, buffers.stress)
        self.compute_stress_ratio(buffers.stress, inputs, buffers.stress_ratio)
        self.compute_deflection(baseline[:, 0], inputs, mapping, buffers.offsets)

        np.copyto(buffers.working, baseline)
        buffers.working[:, 1] += buffers.offsets

        return PhysicsSummary(max_stress=max_stress, load_ratio=load_ratio(inputs.load))
