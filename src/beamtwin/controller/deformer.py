"""
Surface Deformer
Writes working positions and colours onto the displayed PyVista surface.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import pyvista as pv

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

COLORS_ARRAY: str = "colors"


class SurfaceDeformer:
    """
    Owns the mutable copy of the beam surface. The baseline positions are
    captured once and never written.
    """
    def __init__(self, surface: pv.PolyData) -> None:
        if not isinstance(surface, pv.PolyData):
            surface = surface.extract_surface()

        self.mesh: pv.PolyData = surface.copy(deep=True)
        # float32 points would round every written frame
        self.mesh.points = np.asarray(self.mesh.points, dtype=np.float64)
        self._baseline: npt.NDArray[np.float64] = np.array(self.mesh.points, dtype=np.float64)
        self._baseline.flags.writeable = False

        self.mesh.point_data[COLORS_ARRAY] = np.full((self.n_points, 4), 255, dtype=np.uint8)
        logger.debug(f"SurfaceDeformer ready with {self.n_points} points.")

    @property
    def baseline(self) -> npt.NDArray[np.float64]:
        return self._baseline

    @property
    def n_points(self) -> int:
        return len(self._baseline)

    def apply(
        self,
        working: npt.NDArray[np.float64],
        colors: npt.NDArray[np.float64],
    ) -> pv.PolyData:
        """
        Updates the surface in place.

        Args:
            working: (N, 3) deformed positions, same order as the baseline.
            colors: (N, 4) RGBA in [0, 1].

        Returns:
            The updated mesh.
        """
        if len(working) != self.n_points or len(colors) != self.n_points:
            raise ValueError(
                f"Expected {self.n_points} points, got {len(working)} positions and {len(colors)} colours."
            )

        self.mesh.points[:] = working
        self._recompute_normals()

        rgba = np.clip(np.rint(np.asarray(colors) * 255.0), 0, 255).astype(np.uint8)
        self.mesh.point_data[COLORS_ARRAY] = rgba
        return self.mesh

    def reset(self) -> None:
        """Restores the undeformed surface."""
        self.mesh.points[:] = self._baseline
        self._recompute_normals()

    def _recompute_normals(self) -> None:
        if self.mesh.n_cells == 0:
            return
        # No vertex splitting, point count and order must not change
        self.mesh.compute_normals(
            cell_normals=False,
            point_normals=True,
            split_vertices=False,
            inplace=True,
        )


def beam_surface(level: int = 8) -> pv.PolyData:
    """
    Unit beam surface in local coordinates, x/y/z in [-0.5, 0.5].
    The viewer scales the actor to the physical proportions.
    """
    return pv.Box(bounds=(-0.5, 0.5, -0.5, 0.5, -0.5, 0.5), level=level, quads=True)
