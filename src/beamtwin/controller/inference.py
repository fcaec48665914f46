"""
Inference Engines
=================
Synchronous, batched access to the shape model.

Contract:
    infer(batch[N, 6]) -> output[N, C]

Rows are independent: permuting the input rows permutes the output rows
identically. A zero-length batch is a no-op that returns an empty (0, 0)
array without touching the backend. Engines are not thread safe; one
caller at a time.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
import logging
import os
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np

from beamtwin.exceptions import InferenceError
from beamtwin.model.normalization import N_FEATURES

if TYPE_CHECKING:
    import numpy.typing as npt
    import torch

logger = logging.getLogger(__name__)

TORCH_SUFFIXES: tuple[str, ...] = (".pt", ".pth", ".ts")


class InferenceEngine(ABC):
    """
    Base class for a loaded model. Subclasses implement ``_run``; shape
    checks and the closed state are handled here.
    """
    def __init__(self) -> None:
        self._closed = False

    @property
    def is_loaded(self) -> bool:
        return not self._closed

    def infer(self, batch: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
        """
        Run the model on a feature matrix.

        Args:
            batch: (N, 6) normalised features.

        Returns:
            (N, C) raw model output.

        Raises:
            InferenceError: If the engine is closed, the batch has the wrong
                shape, or the backend fails.
        """
        if not self.is_loaded:
            raise InferenceError("Inference engine is not loaded.")

        batch = np.asarray(batch)
        if batch.ndim != 2 or batch.shape[1] != N_FEATURES:
            raise InferenceError(f"Expected batch of shape (N, {N_FEATURES}), got {batch.shape}.")

        if batch.shape[0] == 0:
            return np.empty((0, 0), dtype=np.float32)

        try:
            output = np.asarray(self._run(batch))
        except InferenceError:
            raise
        except Exception as e:
            logger.exception(f"Model execution failed: {e}")
            raise InferenceError(f"Model execution failed: {e}") from e

        if output.ndim == 1:
            output = output.reshape(-1, 1)
        if output.ndim != 2 or output.shape[0] != batch.shape[0]:
            raise InferenceError(
                f"Model returned shape {output.shape} for a batch of {batch.shape[0]} rows."
            )
        return output

    @abstractmethod
    def _run(self, batch: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
        pass

    def close(self) -> None:
        """Releases the backend. Safe to call more than once."""
        if self._closed:
            return
        self._release()
        self._closed = True
        logger.debug(f"{self.__class__.__name__} released.")

    def _release(self) -> None:
        pass

    def __enter__(self) -> InferenceEngine:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class CallableInferenceEngine(InferenceEngine):
    """Wraps a NumPy function, e.g. an analytic stand-in for the network."""

    def __init__(self, fn: Callable[[npt.NDArray[np.floating]], npt.NDArray[np.floating]]) -> None:
        super().__init__()
        self._fn: Optional[Callable] = fn

    def _run(self, batch: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
        return self._fn(batch)

    def _release(self) -> None:
        self._fn = None


def pick_device() -> torch.device:
    import torch

    if os.environ.get("BEAMTWIN_FORCE_CPU", "").lower() in ("1", "true", "yes"):
        return torch.device("cpu")
    if torch.cuda.is_available():
        return torch.device("cuda")
    return torch.device("cpu")


class TorchInferenceEngine(InferenceEngine):
    """
    Runs a ``torch.nn.Module`` in eval mode. The module must not couple
    rows (no batch statistics at inference time).
    """
    def __init__(self, module: torch.nn.Module, device: Optional[torch.device] = None) -> None:
        super().__init__()
        import torch

        self._torch = torch
        self.device = device or pick_device()
        self._module: Optional[torch.nn.Module] = module.to(self.device)
        self._module.eval()

    @classmethod
    def from_file(cls, filepath: str, device: Optional[torch.device] = None) -> TorchInferenceEngine:
        """Loads a TorchScript archive."""
        import torch

        device = device or pick_device()
        logger.info(f"Loading TorchScript model from: {filepath} (device={device})")
        try:
            module = torch.jit.load(filepath, map_location=device)
        except (RuntimeError, ValueError, OSError) as e:
            logger.error(f"Failed to load model '{filepath}': {e}")
            raise InferenceError(f"Failed to load model '{filepath}': {e}") from e
        return cls(module, device=device)

    def _run(self, batch: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
        torch = self._torch
        with torch.no_grad():
            inputs = torch.as_tensor(batch, dtype=torch.float32, device=self.device)
            result = self._module(inputs)
        return result.detach().cpu().numpy()

    def _release(self) -> None:
        self._module = None
        if self.device.type == "cuda":
            self._torch.cuda.empty_cache()


def load_inference_engine(filepath: Optional[str]) -> Optional[InferenceEngine]:
    """
    Creates the engine for a model file.

    Returns:
        The engine, or None when no model is available (Idle mode).

    Raises:
        InferenceError: If the file exists but cannot be loaded.
    """
    if not filepath:
        logger.warning("No model path configured.")
        return None
    if not os.path.exists(filepath):
        logger.warning(f"Model file not found: {filepath}")
        return None

    ext = os.path.splitext(filepath)[1].lower()
    if ext not in TORCH_SUFFIXES:
        raise InferenceError(f"Unsupported model format '{ext}' for '{filepath}'.")

    return TorchInferenceEngine.from_file(filepath)
