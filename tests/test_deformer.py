import numpy as np
import pytest
import pyvista as pv

from beamtwin.controller.deformer import SurfaceDeformer, beam_surface, COLORS_ARRAY


class TestSurfaceDeformer:
    def test_baseline_is_captured_once(self, plane_surface):
        deformer = SurfaceDeformer(plane_surface)
        np.testing.assert_array_equal(deformer.baseline, plane_surface.points)
        assert deformer.n_points == plane_surface.n_points
        with pytest.raises(ValueError):
            deformer.baseline[0, 0] = 42.0

    def test_source_surface_is_not_modified(self, plane_surface):
        original = plane_surface.points.copy()
        deformer = SurfaceDeformer(plane_surface)
        working = deformer.baseline.copy()
        working[:, 1] -= 0.1
        deformer.apply(working, np.ones((deformer.n_points, 4)))
        np.testing.assert_array_equal(plane_surface.points, original)

    def test_apply(self, plane_surface):
        deformer = SurfaceDeformer(plane_surface)
        n = deformer.n_points
        working = deformer.baseline.copy()
        working[:, 1] -= 0.005 * (1.0 - (2.0 * working[:, 0]) ** 2)
        colors = np.tile([1.0, 0.5, 0.0, 1.0], (n, 1))

        mesh = deformer.apply(working, colors)

        assert mesh is deformer.mesh
        assert mesh.n_points == n
        np.testing.assert_allclose(mesh.points, working)
        assert mesh.point_data[COLORS_ARRAY].dtype == np.uint8
        np.testing.assert_array_equal(mesh.point_data[COLORS_ARRAY][0], [255, 128, 0, 255])
        assert mesh.point_data["Normals"].shape == (n, 3)

    def test_baseline_survives_apply(self, plane_surface):
        deformer = SurfaceDeformer(plane_surface)
        before = deformer.baseline.copy()
        deformer.apply(before + 1.0, np.zeros((deformer.n_points, 4)))
        np.testing.assert_array_equal(deformer.baseline, before)

    def test_reset(self, plane_surface):
        deformer = SurfaceDeformer(plane_surface)
        deformer.apply(deformer.baseline + 0.5, np.zeros((deformer.n_points, 4)))
        deformer.reset()
        np.testing.assert_allclose(deformer.mesh.points, deformer.baseline)

    def test_length_mismatch(self, plane_surface):
        deformer = SurfaceDeformer(plane_surface)
        n = deformer.n_points
        with pytest.raises(ValueError):
            deformer.apply(np.zeros((n - 1, 3)), np.zeros((n, 4)))
        with pytest.raises(ValueError):
            deformer.apply(np.zeros((n, 3)), np.zeros((n + 1, 4)))

    def test_colors_are_clipped(self, plane_surface):
        deformer = SurfaceDeformer(plane_surface)
        colors = np.full((deformer.n_points, 4), 2.0)
        colors[:, 0] = -1.0
        deformer.apply(deformer.baseline.copy(), colors)
        np.testing.assert_array_equal(deformer.mesh.point_data[COLORS_ARRAY][0], [0, 255, 255, 255])

    def test_non_polydata_is_extracted(self):
        grid = pv.ImageData(dimensions=(3, 3, 3)).cast_to_unstructured_grid()
        deformer = SurfaceDeformer(grid)
        assert isinstance(deformer.mesh, pv.PolyData)
        assert deformer.n_points > 0


class TestBeamSurface:
    def test_unit_bounds(self):
        surface = beam_surface(level=2)
        assert surface.n_points > 8
        np.testing.assert_allclose(surface.bounds, (-0.5, 0.5, -0.5, 0.5, -0.5, 0.5))
