"""
Inference engine interface.

Engines take the preprocessed tensor and hand back every named output of the
model. The returned collection must be released (use it as a context manager)
before the next call.
"""

from __future__ import annotations

from typing import Protocol

from ..tensors import NamedTensorOutput
from ..types import Tensor


class InferenceEngine(Protocol):
    @property
    def input_name(self) -> str:
        ...

    @property
    def closed(self) -> bool:
        ...

    def run(self, input_name: str, tensor: Tensor) -> NamedTensorOutput:
        ...

    def close(self) -> None:
        ...
