"""
Configuration & Path Management
===============================
Central registry for asset paths used by the viewer.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    DEFAULT_SCALER_PATH (str): Feature scaler JSON shipped with the project.
    DEFAULT_MODEL_PATH (str): Expected location of the TorchScript model.
    DEFAULT_SETTINGS_PATH (str): Beam and mapping settings JSON.
"""
import sys
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller temp folder
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # config.py is in src/beamtwin/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


ASSETS_PATH: str = get_resource_path("assets")
DEFAULT_SCALER_PATH: str = os.path.join(ASSETS_PATH, "scalers_default.json")
DEFAULT_MODEL_PATH: str = os.path.join(ASSETS_PATH, "beam_shape_model.pt")
DEFAULT_SETTINGS_PATH: str = os.path.join(ASSETS_PATH, "settings_default.json")

if not os.path.exists(ASSETS_PATH):
    logger.warning(f"Assets path not found at {ASSETS_PATH}")
