"""
Feature Normalisation
=====================
Converts physical beam quantities into the normalised feature space
expected by the shape model.

Feature columns (one row per surface point):
    0: x [mm]     1: y [mm]     2: load [N]
    3: deflection [mm]     4: fc [MPa]     5: fy [MPa]

All functions are pure. The four global scalars are normalised once per
frame, the two spatial ones once per point.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Union

import numpy as np

from beamtwin.model.scalers import ScalerData, ScalerItem, FEATURE_NAMES
from beamtwin.model.state import BeamGeometry, LiveInputs

if TYPE_CHECKING:
    import numpy.typing as npt

N_FEATURES: int = len(FEATURE_NAMES)

ArrayOrFloat = Union[float, "npt.NDArray[np.float64]"]


def normalize_scalar(value: ArrayOrFloat, item: ScalerItem) -> ArrayOrFloat:
    return (value - item.mean) / item.scale


def denormalize_scalar(value: ArrayOrFloat, item: ScalerItem) -> ArrayOrFloat:
    return value * item.scale + item.mean


def physical_x(local_x: ArrayOrFloat, beam_length: float, center_is_zero: bool) -> ArrayOrFloat:
    """
    Local mesh x to millimetres along the span.

    Args:
        local_x: Local coordinate, [-0.5, 0.5] when centered, else [0, 1].
        beam_length: Beam length in mm.
        center_is_zero: Whether local x = 0 is the mid-span.
    """
    if center_is_zero:
        return local_x * beam_length
    return (local_x + 0.5) * beam_length


def physical_y(local_y: ArrayOrFloat, beam_height: float) -> ArrayOrFloat:
    return local_y * beam_height


class FeatureNormalizer:
    """Builds the (N, 6) model input for a fixed point ordering."""

    def __init__(self, scalers: ScalerData, geometry: BeamGeometry) -> None:
        self.scalers = scalers
        self.geometry = geometry

    def normalize_globals(self, inputs: LiveInputs) -> tuple[float, float, float, float]:
        """Normalised (load, deflection, fc, fy) for the current frame."""
        s = self.scalers
        return (
            normalize_scalar(inputs.load, s.load_mag),
            normalize_scalar(inputs.deflection, s.global_deflection),
            normalize_scalar(inputs.fc, s.fc),
            normalize_scalar(inputs.fy, s.fy),
        )

    def fill_batch(
        self,
        baseline: npt.NDArray[np.float64],
        inputs: LiveInputs,
        center_is_zero: bool,
        out: npt.NDArray[np.floating],
    ) -> npt.NDArray[np.floating]:
        """
        Writes the feature matrix into ``out`` in place.

        Args:
            baseline: (N, 3) local point coordinates.
            inputs: Live load and material values.
            center_is_zero: Coordinate mapping flag.
            out: Preallocated (N, 6) array.

        Returns:
            ``out``, for chaining.
        """
        if out.shape != (len(baseline), N_FEATURES):
            raise ValueError(f"Expected batch of shape ({len(baseline)}, {N_FEATURES}), got {out.shape}.")

        phys_x = physical_x(baseline[:, 0], self.geometry.length_mm, center_is_zero)
        phys_y = physical_y(baseline[:, 1], self.geometry.height_mm)

        out[:, 0] = normalize_scalar(phys_x, self.scalers.x)
        out[:, 1] = normalize_scalar(phys_y, self.scalers.y)
        # Broadcast the per-frame globals down their columns
        out[:, 2:] = self.normalize_globals(inputs)
        return out
