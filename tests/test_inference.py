import numpy as np
import pytest

from beamtwin.controller.inference import (
    CallableInferenceEngine, InferenceEngine, load_inference_engine
)
from beamtwin.exceptions import InferenceError


def row_wise_model(batch):
    weights = np.linspace(-1.0, 1.0, 18).reshape(6, 3)
    return np.tanh(batch @ weights)


@pytest.fixture
def batch():
    rng = np.random.default_rng(7)
    return rng.normal(size=(32, 6)).astype(np.float32)


class TestCallableEngine:
    def test_output_shape(self, batch):
        engine = CallableInferenceEngine(row_wise_model)
        assert engine.infer(batch).shape == (32, 3)

    def test_rows_are_independent(self, batch):
        engine = CallableInferenceEngine(row_wise_model)
        perm = np.random.default_rng(3).permutation(len(batch))
        np.testing.assert_allclose(engine.infer(batch[perm]), engine.infer(batch)[perm])

    def test_shape_column_passes_through(self, batch):
        expected = np.arange(len(batch), dtype=np.float64)
        engine = CallableInferenceEngine(lambda b: np.column_stack([np.zeros(len(b)), expected]))
        np.testing.assert_array_equal(engine.infer(batch)[:, 1], expected)

    def test_empty_batch_is_noop(self):
        calls = []
        engine = CallableInferenceEngine(lambda b: calls.append(b) or b)
        result = engine.infer(np.empty((0, 6), dtype=np.float32))
        assert result.shape == (0, 0)
        assert calls == []

    @pytest.mark.parametrize("shape", [(4, 5), (4, 7), (6,), (2, 3, 6)])
    def test_wrong_batch_shape(self, shape):
        engine = CallableInferenceEngine(row_wise_model)
        with pytest.raises(InferenceError):
            engine.infer(np.zeros(shape))

    def test_row_count_mismatch(self, batch):
        engine = CallableInferenceEngine(lambda b: np.zeros((len(b) + 1, 2)))
        with pytest.raises(InferenceError):
            engine.infer(batch)

    def test_backend_failure_is_wrapped(self, batch):
        def broken(b):
            raise ValueError("bad tensor")

        engine = CallableInferenceEngine(broken)
        with pytest.raises(InferenceError, match="bad tensor"):
            engine.infer(batch)

    def test_closed_engine(self, batch):
        engine = CallableInferenceEngine(row_wise_model)
        engine.close()
        engine.close()
        assert not engine.is_loaded
        with pytest.raises(InferenceError):
            engine.infer(batch)

    def test_context_manager(self, batch):
        with CallableInferenceEngine(row_wise_model) as engine:
            engine.infer(batch)
        assert not engine.is_loaded


class TestTorchEngine:
    @pytest.fixture
    def module(self):
        torch = pytest.importorskip("torch")
        torch.manual_seed(0)
        return torch.nn.Sequential(
            torch.nn.Linear(6, 16),
            torch.nn.ReLU(),
            torch.nn.Linear(16, 2),
        )

    def test_infer(self, module, batch):
        import torch
        from beamtwin.controller.inference import TorchInferenceEngine

        engine = TorchInferenceEngine(module, device=torch.device("cpu"))
        output = engine.infer(batch)
        assert output.shape == (32, 2)
        with torch.no_grad():
            expected = module(torch.as_tensor(batch)).numpy()
        np.testing.assert_allclose(output, expected, rtol=1e-5, atol=1e-6)

    def test_rows_are_independent(self, module, batch):
        import torch
        from beamtwin.controller.inference import TorchInferenceEngine

        engine = TorchInferenceEngine(module, device=torch.device("cpu"))
        perm = np.random.default_rng(11).permutation(len(batch))
        np.testing.assert_allclose(engine.infer(batch[perm]), engine.infer(batch)[perm], rtol=1e-5, atol=1e-6)

    def test_close(self, module, batch):
        import torch
        from beamtwin.controller.inference import TorchInferenceEngine

        engine = TorchInferenceEngine(module, device=torch.device("cpu"))
        engine.close()
        with pytest.raises(InferenceError):
            engine.infer(batch)

    def test_load_torchscript(self, module, batch, tmp_path, monkeypatch):
        import torch
        from beamtwin.controller.inference import TorchInferenceEngine

        monkeypatch.setenv("BEAMTWIN_FORCE_CPU", "1")
        path = tmp_path / "model.pt"
        torch.jit.script(module).save(str(path))

        engine = load_inference_engine(str(path))
        assert isinstance(engine, TorchInferenceEngine)
        assert engine.device.type == "cpu"
        assert engine.infer(batch).shape == (32, 2)

    def test_corrupt_file(self, tmp_path, monkeypatch):
        pytest.importorskip("torch")
        monkeypatch.setenv("BEAMTWIN_FORCE_CPU", "1")
        path = tmp_path / "model.pt"
        path.write_bytes(b"not a torchscript archive")
        with pytest.raises(InferenceError):
            load_inference_engine(str(path))


class TestLoadEngine:
    def test_no_path(self):
        assert load_inference_engine(None) is None
        assert load_inference_engine("") is None

    def test_missing_file(self, tmp_path):
        assert load_inference_engine(str(tmp_path / "missing.pt")) is None

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "model.onnx"
        path.write_bytes(b"\x00")
        with pytest.raises(InferenceError, match="Unsupported"):
            load_inference_engine(str(path))

    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            InferenceEngine()
