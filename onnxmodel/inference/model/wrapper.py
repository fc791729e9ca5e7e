# inference/model/wrapper.py

"""
Main entry point for model inference.

``Model`` owns one session and its output buffers. ``load`` is called once
to create the session; ``run`` can then be called repeatedly, overwriting
``outputs`` and ``delta`` each time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from onnxmodel.general import Profiler
from onnxmodel.utils import get_logger

from ..modelType import ModelType
from .backends.base import InferenceBackend, SessionHandle

logger = get_logger(__name__)

DEFAULT_MODEL_COLOR = (229, 56, 59, 255)


def make_backend(model_path: str) -> InferenceBackend:
    """Factory function to create the inference backend for a model file.

    Args:
        model_path (str): Path to the model file. The file extension
            determines the backend:
            - .onnx → ONNX Runtime backend
            - .ort → ONNX Runtime backend (ORT format)

    Returns:
        InferenceBackend: Backend instance ready to load the model.

    Raises:
        ValueError: If the file extension is not supported.
    """
    model_type = ModelType.from_extension(model_path)
    logger.info(f"Detected model type: {model_type}")

    # Both ModelType members are served by ONNX Runtime.
    from .backends.onnx_backend import OnnxBackend

    logger.debug("Selected ONNX backend for %s", model_path)
    return OnnxBackend()


@dataclass
class InitSettings:
    """Parameters passed to Model.load().

    ``model_name`` and ``model_color`` label this instance's runtime
    statistics; they have no effect on inference.
    """

    model_file: str = ""
    model_name: str = ""
    model_color: Tuple[int, int, int, int] = DEFAULT_MODEL_COLOR
    cuda_enable: bool = False  # CUDA session on gpu, otherwise cpu


class Model:
    """
    Generic model that creates an inference session and runs inferences.

    Attributes:
        outputs: Flat output buffers of the latest inference, one per model
            output, sized from the model's declared shapes by ``load``.
        delta: Runtime in ms of the latest inference.

    Example:
        >>> model = Model()
        >>> model.load(InitSettings(model_file="model.onnx"))
        >>> model.run([np.zeros(784, dtype=np.float32)])
        >>> model.outputs[0], model.delta
    """

    def __init__(self, backend: Optional[InferenceBackend] = None):
        self.backend = backend
        self.outputs: List[np.ndarray] = []
        self.delta: float = 0.0
        self.settings: Optional[InitSettings] = None
        self._handle: Optional[SessionHandle] = None
        self._timer = Profiler()

    def load(self, settings: InitSettings) -> None:
        """
        Create the session and allocate output buffers.

        Must be called exactly once before run(). Extracts input and output
        names and shapes from the model file; e.g. two outputs of shape
        {1, 1, 28, 28} give two output buffers of length 784.

        Raises:
            RuntimeError: If already loaded, the runtime rejects the model,
                or the requested device is unavailable.
            FileNotFoundError: If the model file does not exist.
            ValueError: If the model file type is not supported.
        """
        if self._handle is not None:
            raise RuntimeError(
                f"Model '{self.settings.model_name}' is already loaded"
            )

        device = "cuda" if settings.cuda_enable else "cpu"
        logger.info(
            f"Loading model '{settings.model_name}' from {settings.model_file} on {device}"
        )

        if self.backend is None:
            self.backend = make_backend(settings.model_file)

        try:
            handle = self.backend.load(str(settings.model_file), device)
        except Exception as e:
            logger.error(f"Failed to load model {settings.model_file}: {e}")
            raise

        self.settings = settings
        self._handle = handle
        self.outputs = [np.zeros(spec.size, dtype=spec.dtype) for spec in handle.outputs]
        self.delta = 0.0

        logger.info(
            "Model loaded: %d input(s) %s, %d output(s) %s",
            self.input_count,
            self.input_shapes,
            self.output_count,
            self.output_shapes,
        )

    def run(self, inputs: Sequence[np.ndarray]) -> None:
        """
        Execute the inference using the loaded model.

        Each input is a flat buffer whose length is the product of the
        corresponding input shape. Results are written into ``outputs`` in
        place and the call duration into ``delta``; outputs of the previous
        call are overwritten.

        Raises:
            RuntimeError: If load() has not been called.
            ValueError: If input count or sizes do not match the model.
        """
        handle = self._require_handle()

        if len(inputs) != len(handle.inputs):
            raise ValueError(
                f"Expected {len(handle.inputs)} input buffer(s), got {len(inputs)}"
            )
        for spec, buf in zip(handle.inputs, inputs):
            if np.size(buf) != spec.size:
                raise ValueError(
                    f"Input '{spec.name}' expects {spec.size} elements "
                    f"(shape {spec.shape}), got {np.size(buf)}"
                )

        with self._timer:
            self.backend.run(handle, inputs, self.outputs)
        self.delta = self._timer.elapsed_ms

        logger.debug("Inference completed in %.3f ms", self.delta)

    def warmup(self, runs: int = 2) -> None:
        """Run on zero inputs; ``outputs`` and ``delta`` are left untouched."""
        handle = self._require_handle()
        if hasattr(self.backend, "warmup"):
            return self.backend.warmup(handle, runs=runs)

        feeds = [np.zeros(spec.size, dtype=spec.dtype) for spec in handle.inputs]
        for _ in range(max(1, runs)):
            self.backend.run(handle, feeds)
        logger.info(f"{self.backend.__class__.__name__} warm-up completed")

    def close(self) -> None:
        """Release resources associated with the session."""
        if self._handle is None:
            return
        logger.info("Closing model and releasing resources")
        self.backend.close(self._handle)
        self._handle = None

    @property
    def is_loaded(self) -> bool:
        return self._handle is not None

    @property
    def device(self) -> Optional[str]:
        return self._handle.device if self._handle else None

    @property
    def input_names(self) -> List[str]:
        return [spec.name for spec in self._require_handle().inputs]

    @property
    def output_names(self) -> List[str]:
        return [spec.name for spec in self._require_handle().outputs]

    @property
    def input_shapes(self) -> List[Tuple[int, ...]]:
        return [spec.shape for spec in self._require_handle().inputs]

    @property
    def output_shapes(self) -> List[Tuple[int, ...]]:
        return [spec.shape for spec in self._require_handle().outputs]

    @property
    def input_count(self) -> int:
        return len(self._require_handle().inputs)

    @property
    def output_count(self) -> int:
        return len(self._require_handle().outputs)

    def _require_handle(self) -> SessionHandle:
        if self._handle is None:
            raise RuntimeError("Model.load() must be called before running inference")
        return self._handle
