from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import numpy as np

from ..errors import InvalidArgument, UnavailableResource
from ..tensors import NamedTensorOutput
from ..types import Tensor

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_PROVIDERS = ("QNNExecutionProvider", "CPUExecutionProvider")


def _import_ort() -> Any:
    try:
        import onnxruntime as ort  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
            "(or `onnxruntime-qnn` / `onnxruntime-gpu`)."
        ) from e
    return ort


def select_providers(preferred: Sequence[str], available: Sequence[str]) -> List[str]:
    """
    Keep the preferred providers that this onnxruntime build offers, in order.
    Falls back to CPU when none of them is available.
    """
    chosen = [p for p in preferred if p in available]
    if not chosen:
        chosen = ["CPUExecutionProvider"]
    return chosen


@dataclass(frozen=True)
class OnnxRuntimeEngineConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers in priority order; unavailable ones are skipped
    - use_io_binding: bind input/outputs once per session instead of copying through run()
    """

    providers: Optional[Sequence[str]] = None
    use_io_binding: bool = True


class OnnxRuntimeEngine:
    """
    ONNX Runtime engine for single-input detection models.

    Returns every model output, keyed by output name, as a NamedTensorOutput.
    """

    def __init__(self, session: Any, *, use_io_binding: bool = True):
        inputs = session.get_inputs()
        if len(inputs) != 1:
            raise UnavailableResource(f"Expected a model with exactly one input, got {len(inputs)}")

        self.session = session
        self._input_name: str = inputs[0].name
        self.output_names: List[str] = [o.name for o in session.get_outputs()]
        self._io_binding: Any = None
        self._in_flight = False
        self._closed = False

        if use_io_binding:
            try:
                self._io_binding = session.io_binding()
                logger.debug("IO binding created for input '%s'", self._input_name)
            except Exception as exc:
                logger.debug("IO binding not available: %s", exc)
                self._io_binding = None

    @classmethod
    def load(cls, model_path: PathLike, cfg: OnnxRuntimeEngineConfig = OnnxRuntimeEngineConfig()) -> "OnnxRuntimeEngine":
        ort = _import_ort()
        model_path = Path(model_path)
        if not model_path.exists():
            raise FileNotFoundError(f"Model file not found: {model_path}")

        preferred = list(cfg.providers) if cfg.providers is not None else list(DEFAULT_PROVIDERS)
        providers = select_providers(preferred, ort.get_available_providers())

        sess_opts = ort.SessionOptions()
        session = ort.InferenceSession(str(model_path), sess_options=sess_opts, providers=providers)
        logger.debug("Created session for %s with providers %s", model_path, session.get_providers())
        return cls(session, use_io_binding=cfg.use_io_binding)

    @property
    def input_name(self) -> str:
        return self._input_name

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def uses_io_binding(self) -> bool:
        return self._io_binding is not None

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    @property
    def available_providers(self) -> Sequence[str]:
        return tuple(_import_ort().get_available_providers())

    def run(self, input_name: str, tensor: Tensor) -> NamedTensorOutput:
        if self._closed:
            raise UnavailableResource("Inference engine is closed.")
        if input_name != self._input_name:
            raise InvalidArgument(f"Model input is '{self._input_name}', got '{input_name}'")
        if self._in_flight:
            raise UnavailableResource("Previous inference outputs have not been released yet.")

        blob = np.ascontiguousarray(tensor.data)
        if self._io_binding is not None:
            arrays = self._run_bound(blob)
            on_release = self._release_binding
        else:
            arrays = self.session.run(None, {self._input_name: blob})
            on_release = self._release_plain

        items = []
        for name, arr in zip(self.output_names, arrays):
            arr = np.asarray(arr)
            if arr.dtype not in (np.uint8, np.float32):
                logger.debug("Ignoring output '%s' with element type %s", name, arr.dtype)
                continue
            items.append((name, Tensor.of(arr)))

        self._in_flight = True
        return NamedTensorOutput(items, on_release=on_release)

    def _run_bound(self, blob: np.ndarray) -> List[np.ndarray]:
        binding = self._io_binding
        binding.bind_cpu_input(self._input_name, blob)
        for name in self.output_names:
            binding.bind_output(name)
        self.session.run_with_iobinding(binding)
        return binding.copy_outputs_to_cpu()

    def _release_binding(self) -> None:
        self._in_flight = False
        if self._io_binding is not None:
            self._io_binding.clear_binding_inputs()
            self._io_binding.clear_binding_outputs()

    def _release_plain(self) -> None:
        self._in_flight = False

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._io_binding is not None:
            self._io_binding.clear_binding_inputs()
            self._io_binding.clear_binding_outputs()
        self._io_binding = None
        self.session = None
        logger.debug("Inference engine closed")

    def __enter__(self) -> "OnnxRuntimeEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
