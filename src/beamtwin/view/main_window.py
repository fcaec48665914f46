"""
Main Window
===========
Live input panel on the left, the beam on the right. A QTimer drives
DigitalTwinController.tick() once per frame.
"""
from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QVBoxLayout, QFormLayout, QGroupBox,
    QSlider, QDoubleSpinBox, QCheckBox, QLabel
)

from beamtwin.controller.twin import DigitalTwinController
from beamtwin.exceptions import ConfigError
from beamtwin.model.state import LiveInputs, MappingSettings, TwinSettings, MAX_DESIGN_LOAD_N, SENSITIVITY_RANGE
from beamtwin.view.beam_view import BeamViewWidget

logger = logging.getLogger(__name__)

LOAD_STEP_N: int = 500


class MainWindow(QMainWindow):
    def __init__(
        self,
        controller: DigitalTwinController,
        settings: TwinSettings,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.controller = controller
        self.settings = settings

        self.setWindowTitle("Beam Digital Twin")
        self.resize(1200, 700)

        central = QWidget(self)
        layout = QHBoxLayout(central)
        layout.addWidget(self._build_input_panel(), stretch=0)

        # Beam proportions, the surface itself lives in unit local coordinates
        geometry = settings.geometry
        scale = (1.0, geometry.height_mm / geometry.length_mm, 0.2)
        self.view = BeamViewWidget(controller.deformer.mesh, scale=scale, parent=central)
        layout.addWidget(self.view, stretch=1)
        self.setCentralWidget(central)

        if not controller.is_ready:
            self.statusBar().showMessage("Model or scalers missing, visualization idle.")

        self._timer = QTimer(self)
        self._timer.setInterval(settings.frame_interval_ms)
        self._timer.timeout.connect(self.on_tick)
        self._timer.start()

    # ------------------------------------------------------------------------------
    # UI
    # ------------------------------------------------------------------------------

    def _build_input_panel(self) -> QWidget:
        inputs = self.settings.inputs
        mapping = self.settings.mapping

        panel = QWidget()
        panel.setFixedWidth(300)
        vbox = QVBoxLayout(panel)

        grp_inputs = QGroupBox("Live Inputs")
        form = QFormLayout(grp_inputs)

        self.sl_load = QSlider(Qt.Orientation.Horizontal)
        self.sl_load.setRange(0, int(MAX_DESIGN_LOAD_N))
        self.sl_load.setSingleStep(LOAD_STEP_N)
        self.sl_load.setPageStep(10 * LOAD_STEP_N)
        self.sl_load.setValue(int(inputs.load))
        self.lbl_load = QLabel()
        self.sl_load.valueChanged.connect(self._update_load_label)
        self._update_load_label(self.sl_load.value())
        form.addRow("Load", self.sl_load)
        form.addRow("", self.lbl_load)

        self.sp_deflection = QDoubleSpinBox()
        self.sp_deflection.setRange(0.0, 100.0); self.sp_deflection.setDecimals(2); self.sp_deflection.setValue(inputs.deflection); self.sp_deflection.setSuffix(" mm")
        form.addRow("Deflection", self.sp_deflection)

        self.sp_fc = QDoubleSpinBox()
        self.sp_fc.setRange(1.0, 200.0); self.sp_fc.setDecimals(1); self.sp_fc.setValue(inputs.fc); self.sp_fc.setSuffix(" MPa")
        form.addRow("fc", self.sp_fc)

        self.sp_fy = QDoubleSpinBox()
        self.sp_fy.setRange(1.0, 1000.0); self.sp_fy.setDecimals(1); self.sp_fy.setValue(inputs.fy); self.sp_fy.setSuffix(" MPa")
        form.addRow("fy", self.sp_fy)
        vbox.addWidget(grp_inputs)

        grp_mapping = QGroupBox("Visualization")
        form_map = QFormLayout(grp_mapping)

        self.sp_sensitivity = QDoubleSpinBox()
        self.sp_sensitivity.setRange(*SENSITIVITY_RANGE); self.sp_sensitivity.setSingleStep(0.1); self.sp_sensitivity.setValue(mapping.sensitivity)
        form_map.addRow("Sensitivity", self.sp_sensitivity)

        self.chk_center = QCheckBox("Local x centered at mid-span")
        self.chk_center.setChecked(mapping.center_is_zero)
        form_map.addRow(self.chk_center)
        vbox.addWidget(grp_mapping)

        vbox.addStretch()
        return panel

    def _update_load_label(self, value: int) -> None:
        self.lbl_load.setText(f"{value:,} N")

    def current_inputs(self) -> LiveInputs:
        return LiveInputs(
            load=float(self.sl_load.value()),
            deflection=self.sp_deflection.value(),
            fc=self.sp_fc.value(),
            fy=self.sp_fy.value(),
        )

    def current_mapping(self) -> MappingSettings:
        return MappingSettings(
            center_is_zero=self.chk_center.isChecked(),
            sensitivity=self.sp_sensitivity.value(),
        )

    # ------------------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------------------

    def on_tick(self) -> None:
        if not self.controller.is_ready:
            return

        try:
            update = self.controller.tick(self.current_inputs(), self.current_mapping())
        except ConfigError as e:
            logger.warning(f"Frame rejected: {e}")
            self.statusBar().showMessage(str(e))
            return

        # A skipped frame keeps the last valid picture and readout
        if update is not None:
            self.view.update_frame(update.summary)

    def closeEvent(self, event: QCloseEvent) -> None:
        self._timer.stop()
        self.controller.dispose()
        self.view.close()
        super().closeEvent(event)
