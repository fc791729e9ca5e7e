# tests/conftest.py
"""
Pytest configuration and shared fixtures for onnxmodel tests.
"""
import os
import sys

# Ensure project root is on sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np
import onnx
import pytest
from onnx import TensorProto, helper, numpy_helper
from PIL import Image

from onnxmodel.inference.model.backends.base import SessionHandle, TensorSpec

IMAGE_SIDE = 28
NUM_DIGITS = 10
SAMPLES_PER_DIGIT = 3


# ---------------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------------


def digit_pattern(digit: int) -> np.ndarray:
    """A synthetic 28x28 'digit': a white horizontal bar whose row encodes the label."""
    img = np.zeros((IMAGE_SIDE, IMAGE_SIDE), dtype=np.uint8)
    top = 4 + 2 * digit
    img[top : top + 2, 4:24] = 255
    return img


def template_weights() -> np.ndarray:
    """(784, 10) weights scoring each image against every digit pattern."""
    templates = [(digit_pattern(d) > 0).reshape(-1) for d in range(NUM_DIGITS)]
    return np.stack(templates, axis=1).astype(np.float32)


def build_mnist_model(
    path: Path, batch_dim=1, with_flat_output: bool = False
) -> Path:
    """Write an MNIST-shaped model: input {N,1,28,28} -> Flatten -> MatMul -> Add -> {N,10}."""
    inputs = [
        helper.make_tensor_value_info(
            "Input3", TensorProto.FLOAT, [batch_dim, 1, IMAGE_SIDE, IMAGE_SIDE]
        )
    ]
    outputs = [
        helper.make_tensor_value_info(
            "Plus214_Output_0", TensorProto.FLOAT, [batch_dim, NUM_DIGITS]
        )
    ]
    if with_flat_output:
        outputs.append(
            helper.make_tensor_value_info(
                "Flatten_Output", TensorProto.FLOAT, [batch_dim, IMAGE_SIDE * IMAGE_SIDE]
            )
        )

    nodes = [
        helper.make_node("Flatten", ["Input3"], ["Flatten_Output"], axis=1),
        helper.make_node("MatMul", ["Flatten_Output", "W"], ["Times_Output"]),
        helper.make_node("Add", ["Times_Output", "B"], ["Plus214_Output_0"]),
    ]
    initializers = [
        numpy_helper.from_array(template_weights(), "W"),
        numpy_helper.from_array(np.zeros(NUM_DIGITS, dtype=np.float32), "B"),
    ]

    graph = helper.make_graph(nodes, "mnist_template", inputs, outputs, initializers)
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    onnx.checker.check_model(model)
    onnx.save(model, str(path))
    return path


# ---------------------------------------------------------------------------
# Fixtures: model files
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def model_dir(tmp_path_factory) -> Path:
    return tmp_path_factory.mktemp("models")


@pytest.fixture(scope="session")
def mnist_model_path(model_dir: Path) -> Path:
    return build_mnist_model(model_dir / "mnist.onnx")


@pytest.fixture(scope="session")
def dynamic_batch_model_path(model_dir: Path) -> Path:
    return build_mnist_model(model_dir / "mnist_dynamic.onnx", batch_dim="N")


@pytest.fixture(scope="session")
def two_output_model_path(model_dir: Path) -> Path:
    return build_mnist_model(model_dir / "mnist_two_outputs.onnx", with_flat_output=True)


@pytest.fixture(scope="session")
def malformed_model_path(model_dir: Path) -> Path:
    path = model_dir / "broken.onnx"
    path.write_bytes(b"this is not a protobuf model")
    return path


# ---------------------------------------------------------------------------
# Fixtures: image trees
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def digit_image_root(tmp_path_factory) -> Path:
    """<root>/<digit>/<sample>.png tree plus entries the walker must ignore."""
    root = tmp_path_factory.mktemp("mnist_png") / "testing"
    for digit in range(NUM_DIGITS):
        digit_dir = root / str(digit)
        digit_dir.mkdir(parents=True)
        for i in range(SAMPLES_PER_DIGIT):
            Image.fromarray(digit_pattern(digit)).save(digit_dir / f"{i}.png")
        (digit_dir / "notes.txt").write_text("not an image")

    (root / "extras").mkdir()
    Image.fromarray(digit_pattern(0)).save(root / "extras" / "0.png")
    (root / "README.md").write_text("MNIST test images")
    return root


@pytest.fixture
def seven_image_path(tmp_path: Path) -> Path:
    path = tmp_path / "seven.png"
    Image.fromarray(digit_pattern(7)).save(path)
    return path


# ---------------------------------------------------------------------------
# Fake backend
# ---------------------------------------------------------------------------


class NumpyBackend:
    """In-process backend computing logits = input @ template_weights()."""

    def __init__(self):
        self.weights = template_weights()
        self.loaded: List[tuple] = []
        self.run_calls = 0
        self.closed = 0

    def load(self, model_path: str, device: str) -> SessionHandle:
        self.loaded.append((model_path, device))
        return SessionHandle(
            session=object(),
            device=device,
            inputs=[TensorSpec("Input3", (1, 1, IMAGE_SIDE, IMAGE_SIDE))],
            outputs=[TensorSpec("Plus214_Output_0", (1, NUM_DIGITS))],
            providers=["NumpyBackend"],
        )

    def run(
        self,
        handle: SessionHandle,
        inputs: Sequence[np.ndarray],
        outputs: Optional[Sequence[np.ndarray]] = None,
    ) -> List[np.ndarray]:
        self.run_calls += 1
        logits = np.asarray(inputs[0], dtype=np.float32).reshape(-1) @ self.weights
        if outputs is None:
            return [logits]
        np.copyto(outputs[0], logits)
        return list(outputs)

    def close(self, handle: SessionHandle) -> None:
        self.closed += 1
        handle.session = None


@pytest.fixture
def numpy_backend() -> NumpyBackend:
    return NumpyBackend()
