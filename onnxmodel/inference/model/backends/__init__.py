# inference/model/backends/__init__.py

"""
Inference backend implementations.
"""

from .base import Buffers, InferenceBackend, SessionHandle, TensorSpec
from .onnx_backend import OnnxBackend

__all__ = [
    "Buffers",
    "InferenceBackend",
    "SessionHandle",
    "TensorSpec",
    "OnnxBackend",
]
