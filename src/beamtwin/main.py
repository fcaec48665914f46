"""
Application Initialization
==========================
Builds the digital twin and starts the Qt event loop.

It acts as the "Dependency Injection" root:
1. Loads settings (beam, live input defaults, asset paths).
2. Creates the deformable surface and the controller.
3. Passes both into the Main Window, which owns the frame timer.
"""
import logging
import sys
from typing import Optional

from PySide6.QtWidgets import QApplication

from beamtwin.config import DEFAULT_SETTINGS_PATH, DEFAULT_SCALER_PATH, DEFAULT_MODEL_PATH
from beamtwin.controller.deformer import SurfaceDeformer, beam_surface
from beamtwin.controller.twin import DigitalTwinController
from beamtwin.logging_config import setup_logging
from beamtwin.model.state import load_settings
from beamtwin.view.main_window import MainWindow

logger = logging.getLogger(__name__)


def main(settings_path: Optional[str] = None) -> None:
    # Use logging.DEBUG to see every frame decision during development
    setup_logging(level=logging.INFO)

    app = QApplication(sys.argv)
    app.setApplicationName("Beam Digital Twin")

    settings = load_settings(settings_path or DEFAULT_SETTINGS_PATH)
    settings.scaler_path = settings.scaler_path or DEFAULT_SCALER_PATH
    settings.model_path = settings.model_path or DEFAULT_MODEL_PATH

    deformer = SurfaceDeformer(beam_surface())
    controller = DigitalTwinController.from_settings(settings, deformer.baseline, deformer=deformer)

    window = MainWindow(controller, settings)
    window.show()

    try:
        exit_code = app.exec()
    finally:
        # Idempotent, the window normally disposed it already
        controller.dispose()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
