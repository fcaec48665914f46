"""
Digital Twin Controller
=======================
Orchestrates one frame of the beam twin.

    gather inputs -> normalise -> infer -> post-process -> colourise
    -> deform -> publish summary

States:
    UNINITIALIZED --setup()--> READY   (scalers and engine present)
                          +--> IDLE   (either missing, pipeline never runs)
    READY --tick()--> COMPUTING --> READY
    any --dispose()--> DISPOSED

The host calls tick() from its own loop (a QTimer in the viewer). Ticks never
overlap; the engine is not safe for concurrent use.
"""
from __future__ import annotations

from enum import Enum, auto
import logging
from typing import TYPE_CHECKING, Optional

import numpy as np

from beamtwin.controller.deformer import SurfaceDeformer
from beamtwin.controller.inference import InferenceEngine, load_inference_engine
from beamtwin.exceptions import ConfigError, InferenceError
from beamtwin.model.frame import FrameBuffers, RenderUpdate, format_summary
from beamtwin.model.gradient import ColorMapper, Gradient, DEFAULT_GRADIENT
from beamtwin.model.normalization import FeatureNormalizer
from beamtwin.model.physics import PhysicsPostProcessor, SHAPE_FACTOR_COLUMN
from beamtwin.model.scalers import ScalerData, ScalerStore
from beamtwin.model.state import BeamGeometry, LiveInputs, MappingSettings, TwinSettings

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class TwinState(Enum):
    UNINITIALIZED = auto()
    IDLE = auto()
    READY = auto()
    COMPUTING = auto()
    DISPOSED = auto()


class DigitalTwinController:
    """
    Owns the inference engine and the default frame buffers.

    Args:
        baseline: (N, 3) undeformed local point positions, in mesh order.
        scalers: Feature scalers, or None for Idle mode.
        engine: Loaded model, or None for Idle mode.
        geometry: Beam dimensions.
        mapping: Default coordinate mapping, overridable per tick.
        gradient: Default colour ramp, overridable per tick.
        deformer: Optional surface that receives every published frame.
    """
    def __init__(
        self,
        baseline: npt.NDArray[np.float64],
        scalers: Optional[ScalerData] = None,
        engine: Optional[InferenceEngine] = None,
        geometry: BeamGeometry = BeamGeometry(),
        mapping: Optional[MappingSettings] = None,
        gradient: Gradient = DEFAULT_GRADIENT,
        deformer: Optional[SurfaceDeformer] = None,
    ) -> None:
        baseline = np.array(baseline, dtype=np.float64).reshape(-1, 3)
        baseline.flags.writeable = False
        self.baseline: npt.NDArray[np.float64] = baseline

        if deformer is not None and deformer.n_points != len(baseline):
            raise ValueError(
                f"Deformer has {deformer.n_points} points but the baseline has {len(baseline)}."
            )

        self.scalers = scalers
        self.engine = engine
        self.geometry = geometry
        self.mapping = mapping or MappingSettings()
        self.deformer = deformer

        self.color_mapper = ColorMapper(gradient)
        self.physics = PhysicsPostProcessor(geometry)
        self.normalizer: Optional[FeatureNormalizer] = None
        self.buffers: Optional[FrameBuffers] = None

        self.state = TwinState.UNINITIALIZED
        self.last_update: Optional[RenderUpdate] = None
        self.summary: str = ""

    @classmethod
    def from_settings(
        cls,
        settings: TwinSettings,
        baseline: npt.NDArray[np.float64],
        deformer: Optional[SurfaceDeformer] = None,
    ) -> DigitalTwinController:
        """
        Loads scalers and model from the configured paths. Missing or invalid
        assets leave the controller Idle instead of raising.
        """
        scalers: Optional[ScalerData] = None
        if settings.scaler_path:
            try:
                scalers = ScalerStore.from_file(settings.scaler_path)
            except ConfigError as e:
                logger.error(f"Scalers unavailable, pipeline disabled: {e}")

        engine: Optional[InferenceEngine] = None
        try:
            engine = load_inference_engine(settings.model_path)
        except InferenceError as e:
            logger.error(f"Model unavailable, pipeline disabled: {e}")

        gradient = DEFAULT_GRADIENT
        if settings.gradient:
            try:
                gradient = Gradient.from_dict(settings.gradient)
            except ConfigError as e:
                logger.error(f"Gradient settings ignored, using default ramp: {e}")

        controller = cls(
            baseline=baseline,
            scalers=scalers,
            engine=engine,
            geometry=settings.geometry,
            mapping=settings.mapping,
            gradient=gradient,
            deformer=deformer,
        )
        controller.setup()
        return controller

    @property
    def n_points(self) -> int:
        return len(self.baseline)

    @property
    def is_ready(self) -> bool:
        return self.state == TwinState.READY

    def setup(self) -> TwinState:
        """One-time initialisation. Missing dependencies select Idle, never an error."""
        if self.state != TwinState.UNINITIALIZED:
            return self.state

        if self.scalers is None or self.engine is None:
            missing = [name for name, dep in (("scalers", self.scalers), ("model", self.engine)) if dep is None]
            logger.warning(f"Digital twin idle, missing: {', '.join(missing)}.")
            self.state = TwinState.IDLE
            return self.state

        self.normalizer = FeatureNormalizer(self.scalers, self.geometry)
        self.buffers = FrameBuffers.allocate(self.n_points)
        self.state = TwinState.READY
        logger.info(f"Digital twin ready ({self.n_points} points).")
        return self.state

    def tick(
        self,
        inputs: LiveInputs,
        mapping: Optional[MappingSettings] = None,
        gradient: Optional[Gradient] = None,
        buffers: Optional[FrameBuffers] = None,
    ) -> Optional[RenderUpdate]:
        """
        Runs one frame.

        Returns:
            The published frame, or None when the controller is not ready,
            the geometry is empty, or inference failed (previous frame kept).

        Raises:
            ConfigError: If ``inputs.fy`` is not positive.
        """
        if self.state != TwinState.READY:
            return None
        if self.n_points == 0:
            return None

        inputs.validate()
        mapping = mapping or self.mapping
        buffers = buffers or self.buffers
        if buffers.n_points != self.n_points:
            raise ValueError(f"Frame buffers hold {buffers.n_points} points, expected {self.n_points}.")

        self.state = TwinState.COMPUTING
        try:
            self.normalizer.fill_batch(self.baseline, inputs, mapping.center_is_zero, buffers.batch)

            try:
                buffers.output = self.engine.infer(buffers.batch)
            except InferenceError as e:
                logger.error(f"Frame skipped: {e}")
                return None

            if buffers.output.shape[1] <= SHAPE_FACTOR_COLUMN:
                logger.error(
                    f"Frame skipped: model returned {buffers.output.shape[1]} column(s), "
                    f"shape factor expected in column {SHAPE_FACTOR_COLUMN}."
                )
                return None

            result = self.physics.process(buffers.output, self.baseline, inputs, mapping, buffers)
            self.color_mapper.map(buffers.stress_ratio, out=buffers.colors, gradient=gradient)

            if self.deformer is not None:
                self.deformer.apply(buffers.working, buffers.colors)

            self.summary = format_summary(inputs.load, result.max_stress)
            self.last_update = RenderUpdate(
                points=buffers.working,
                colors=buffers.colors,
                stress=buffers.stress,
                offsets=buffers.offsets,
                max_stress=result.max_stress,
                load=inputs.load,
                summary=self.summary,
            )
            return self.last_update
        finally:
            buffers.reset_scratch()
            if self.state == TwinState.COMPUTING:
                self.state = TwinState.READY

    def dispose(self) -> None:
        """Releases the engine. No-op when it was never loaded or already released."""
        if self.state == TwinState.DISPOSED:
            return

        if self.engine is not None:
            self.engine.close()
            self.engine = None

        self.buffers = None
        self.state = TwinState.DISPOSED
        logger.info("Digital twin disposed.")

    def __enter__(self) -> DigitalTwinController:
        self.setup()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()
