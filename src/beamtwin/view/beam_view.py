"""
3D Beam View (PyVista Wrapper)
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from PySide6.QtWidgets import QWidget, QVBoxLayout
from PySide6.QtGui import QCloseEvent

from pyvistaqt import QtInteractor
import pyvista as pv

from beamtwin.controller.deformer import COLORS_ARRAY

logger = logging.getLogger(__name__)


class BeamViewWidget(QWidget):
    """
    Shows the deformable beam surface coloured per point, plus the
    summary readout in the upper left corner.
    """
    def __init__(
        self,
        mesh: pv.PolyData,
        scale: Tuple[float, float, float] = (1.0, 1.0, 1.0),
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)

        self.plotter: QtInteractor = QtInteractor(self)
        self.layout_box.addWidget(self.plotter)
        self.plotter.set_background("white")

        # The mesh is updated in place by the SurfaceDeformer, the actor
        # only needs a re-render after each frame.
        self._beam_actor: pv.Actor = self.plotter.add_mesh(
            mesh,
            scalars=COLORS_ARRAY,
            rgb=True,
            smooth_shading=True,
            show_edges=False,
            show_scalar_bar=False,
        )
        self._beam_actor.scale = scale

        self._summary_actor = self.plotter.add_text(
            "", position=(10, 10), font_size=12, color="black"
        )

        self.plotter.view_xy()
        self.plotter.reset_camera()

    def update_frame(self, summary: Optional[str] = None) -> None:
        """Refreshes the render; a None summary keeps the previous readout."""
        if summary is not None:
            self._summary_actor.SetInput(summary)
        self.plotter.render()

    def closeEvent(self, event: QCloseEvent) -> None:
        self.plotter.close()
        super().closeEvent(event)
