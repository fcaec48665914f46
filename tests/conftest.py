import numpy as np
import pytest
import pyvista as pv

from beamtwin.controller.inference import CallableInferenceEngine
from beamtwin.model.scalers import ScalerStore
from beamtwin.model.state import BeamGeometry


SCALER_BLOB = {
    "x": {"mean": 0.0, "scale": 303.1},
    "y": {"mean": 0.0, "scale": 86.6},
    "load_mag": {"mean": 90000.0, "scale": 51961.5},
    "global_deflection": {"mean": 5.5, "scale": 3.2},
    "fc": {"mean": 30.0, "scale": 5.8},
    "fy": {"mean": 400.0, "scale": 57.7},
}


def constant_shape(value):
    """Model stand-in: column 0 unused, column 1 a constant shape factor."""
    def fn(batch):
        n = len(batch)
        return np.column_stack([np.full(n, -7.0), np.full(n, value)])
    return fn


@pytest.fixture
def scaler_blob():
    return {name: dict(item) for name, item in SCALER_BLOB.items()}


@pytest.fixture
def scalers(scaler_blob):
    return ScalerStore.load(scaler_blob)


@pytest.fixture
def geometry():
    return BeamGeometry(length_mm=1050.0, height_mm=300.0)


@pytest.fixture
def shape_engine():
    return CallableInferenceEngine(constant_shape(0.4))


@pytest.fixture
def plane_surface():
    return pv.Plane(
        center=(0.0, 0.0, 0.0),
        direction=(0.0, 0.0, 1.0),
        i_size=1.0,
        j_size=1.0,
        i_resolution=10,
        j_resolution=4,
    )


@pytest.fixture
def span_points():
    """Centered local points: left support, quarter span, mid-span, right support."""
    return np.array([
        [-0.5, 0.0, 0.0],
        [-0.25, 0.1, 0.0],
        [0.0, 0.0, 0.0],
        [0.5, -0.2, 0.0],
    ])
