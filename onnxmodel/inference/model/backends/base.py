# inference/model/backends/base.py

"""
Abstract base protocol for inference backends.

A backend is a narrow capability: ``load`` turns a model file into an
opaque session handle, ``run`` executes it. Backends hold no per-model
state, so one backend object can serve several handles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol, Sequence, Tuple

import numpy as np

Buffers = List[np.ndarray]


@dataclass(frozen=True)
class TensorSpec:
    """Name, shape and element type of one model input or output."""

    name: str
    shape: Tuple[int, ...]
    dtype: type = np.float32

    @property
    def size(self) -> int:
        """Number of elements in the flattened tensor."""
        return int(np.prod(self.shape, dtype=np.int64))


@dataclass
class SessionHandle:
    """A loaded model bound to one execution device."""

    session: Any
    device: str
    inputs: List[TensorSpec] = field(default_factory=list)
    outputs: List[TensorSpec] = field(default_factory=list)
    providers: List[str] = field(default_factory=list)


class InferenceBackend(Protocol):
    """Protocol for all inference backend classes."""

    def load(self, model_path: str, device: str) -> SessionHandle:
        """Create a session for ``model_path`` on ``device``."""
        ...

    def run(
        self,
        handle: SessionHandle,
        inputs: Sequence[np.ndarray],
        outputs: Optional[Sequence[np.ndarray]] = None,
    ) -> Buffers:
        """Run inference; write into ``outputs`` when given, else allocate."""
        ...

    def close(self, handle: SessionHandle) -> None:
        """Release session resources."""
        ...
