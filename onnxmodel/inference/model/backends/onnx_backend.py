# inference/model/backends/onnx_backend.py

from __future__ import annotations

import os
from typing import List, Optional, Sequence, Tuple

import numpy as np
import onnxruntime as ort

from onnxmodel.general import CPU_PROVIDER, CUDA_PROVIDER
from onnxmodel.utils import get_logger

from .base import Buffers, InferenceBackend, SessionHandle, TensorSpec

logger = get_logger(__name__)

# ONNX Runtime element type string -> numpy scalar type
ORT_TO_NUMPY = {
    "tensor(float)": np.float32,
    "tensor(double)": np.float64,
    "tensor(float16)": np.float16,
    "tensor(int64)": np.int64,
    "tensor(int32)": np.int32,
    "tensor(int8)": np.int8,
    "tensor(uint8)": np.uint8,
    "tensor(bool)": np.bool_,
}


def _parse_device(device: str) -> Tuple[str, int]:
    """Split "cuda:1" into ("cuda", 1); plain names get device id 0."""
    name, _, index = device.lower().partition(":")
    return name, int(index) if index else 0


def _tensor_spec(node_arg) -> TensorSpec:
    """Build a TensorSpec from an onnxruntime NodeArg.

    Symbolic or unknown dimensions resolve to 1.
    """
    if node_arg.type not in ORT_TO_NUMPY:
        raise NotImplementedError(
            f"Tensor '{node_arg.name}' has unsupported element type {node_arg.type}"
        )
    shape = tuple(d if isinstance(d, int) and d > 0 else 1 for d in node_arg.shape)
    return TensorSpec(name=node_arg.name, shape=shape, dtype=ORT_TO_NUMPY[node_arg.type])


def _check_output_buffers(handle: SessionHandle, outputs: Sequence[np.ndarray]) -> None:
    """Output buffers are written by the runtime through raw pointers; they
    must match the declared specs exactly."""
    if len(outputs) != len(handle.outputs):
        raise ValueError(
            f"Expected {len(handle.outputs)} output buffer(s), got {len(outputs)}"
        )
    for spec, buf in zip(handle.outputs, outputs):
        if not buf.flags["C_CONTIGUOUS"] or buf.dtype != spec.dtype:
            raise ValueError(
                f"Output buffer for '{spec.name}' must be a contiguous "
                f"{np.dtype(spec.dtype).name} array"
            )
        if buf.size != spec.size:
            raise ValueError(
                f"Output buffer for '{spec.name}' needs {spec.size} elements "
                f"(shape {spec.shape}), got {buf.size}"
            )


class OnnxBackend(InferenceBackend):
    """
    ONNX Runtime backend implementation with I/O binding.

    Inputs are bound as non-owning views over the caller's memory and,
    when output buffers are supplied, outputs are written straight into
    them. Both are bound as CPU memory on either device; for CUDA sessions
    the runtime performs the host/device copies.

    Example:
        >>> backend = OnnxBackend()
        >>> handle = backend.load("model.onnx", "cpu")
        >>> outputs = backend.run(handle, [np.zeros(784, dtype=np.float32)])
    """

    def load(self, model_path: str, device: str = "cpu") -> SessionHandle:
        """
        Create an ONNX Runtime session.

        Args:
            model_path (str): Path to the .onnx or .ort model file.
            device (str): "cpu", "cuda" or "cuda:<id>".

        Raises:
            FileNotFoundError: If the model file does not exist.
            RuntimeError: If the runtime rejects the model, or CUDA was
                requested but the CUDA provider is not active.

        Notes:
            - For CUDA: uses CUDAExecutionProvider only (no CPU fallback).
            - For CPU: uses CPUExecutionProvider with default threading.
        """
        model_path = str(model_path)
        if not os.path.isfile(model_path):
            raise FileNotFoundError(f"ONNX model file not found: {model_path}")

        sess_options = ort.SessionOptions()
        sess_options.graph_optimization_level = (
            ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        )
        sess_options.enable_cpu_mem_arena = True

        device_name, device_id = _parse_device(device)
        if device_name == "cuda":
            if CUDA_PROVIDER not in ort.get_available_providers():
                raise RuntimeError(
                    "CUDA execution requested but this onnxruntime build has no "
                    f"{CUDA_PROVIDER} (available: {ort.get_available_providers()})"
                )
            # GPU execution: avoid hidden CPU fallback
            providers = [(CUDA_PROVIDER, {"device_id": device_id})]
            sess_options.intra_op_num_threads = 1
            sess_options.inter_op_num_threads = 1
        elif device_name == "cpu":
            providers = [CPU_PROVIDER]
        else:
            raise ValueError(f"Unknown device '{device}', expected 'cpu' or 'cuda'")

        logger.info("Initializing ONNX Runtime with providers=%s", providers)

        try:
            session = ort.InferenceSession(
                model_path, sess_options=sess_options, providers=providers
            )
        except Exception as e:
            logger.error(f"ONNX Runtime could not load {model_path}: {e}")
            raise RuntimeError(
                f"Failed to create ONNX Runtime session for {model_path}: {e}"
            ) from e

        active = session.get_providers()
        logger.info(f"ONNX Runtime providers: {active}")
        if device_name == "cuda" and CUDA_PROVIDER not in active:
            raise RuntimeError(
                f"{CUDA_PROVIDER} failed to initialize for {model_path}; "
                f"session providers are {active}"
            )

        handle = SessionHandle(
            session=session,
            device=device_name,
            inputs=[_tensor_spec(arg) for arg in session.get_inputs()],
            outputs=[_tensor_spec(arg) for arg in session.get_outputs()],
            providers=list(active),
        )
        logger.debug(
            "Model inputs: %s, outputs: %s",
            [(s.name, s.shape) for s in handle.inputs],
            [(s.name, s.shape) for s in handle.outputs],
        )
        return handle

    def run(
        self,
        handle: SessionHandle,
        inputs: Sequence[np.ndarray],
        outputs: Optional[Sequence[np.ndarray]] = None,
    ) -> Buffers:
        """
        Run inference synchronously.

        Args:
            handle: Session created by ``load``.
            inputs: One flat buffer per model input.
            outputs: Optional pre-allocated contiguous flat buffers, one per
                model output. They are overwritten in place.

        Returns:
            The output buffers, flat (``outputs`` itself when supplied).
        """
        session = handle.session
        if session is None:
            raise RuntimeError("ONNX Runtime session has been closed")

        if len(inputs) != len(handle.inputs):
            raise ValueError(
                f"Expected {len(handle.inputs)} input buffer(s), got {len(inputs)}"
            )
        if outputs is not None:
            _check_output_buffers(handle, outputs)

        io_binding = session.io_binding()

        # Keep converted arrays referenced until the run completes.
        bound_inputs: List[np.ndarray] = []
        for spec, buf in zip(handle.inputs, inputs):
            arr = np.ascontiguousarray(buf, dtype=spec.dtype).reshape(spec.shape)
            bound_inputs.append(arr)
            io_binding.bind_input(
                name=spec.name,
                device_type="cpu",
                device_id=0,
                element_type=spec.dtype,
                shape=spec.shape,
                buffer_ptr=arr.ctypes.data,
            )

        if outputs is None:
            for spec in handle.outputs:
                io_binding.bind_output(spec.name, "cpu")
            session.run_with_iobinding(io_binding)
            return [out.reshape(-1) for out in io_binding.copy_outputs_to_cpu()]

        for spec, buf in zip(handle.outputs, outputs):
            io_binding.bind_output(
                name=spec.name,
                device_type="cpu",
                device_id=0,
                element_type=spec.dtype,
                shape=spec.shape,
                buffer_ptr=buf.ctypes.data,
            )

        session.run_with_iobinding(io_binding)
        return list(outputs)

    def close(self, handle: SessionHandle) -> None:
        """Release ONNX Runtime session resources."""
        handle.session = None

    def warmup(self, handle: SessionHandle, runs: int = 2) -> None:
        """Run the session on zero inputs to settle allocations and kernels."""
        feeds = [np.zeros(spec.size, dtype=spec.dtype) for spec in handle.inputs]
        for _ in range(max(1, runs)):
            self.run(handle, feeds)

        logger.info("OnnxBackend warm-up completed (runs=%d).", runs)
