from __future__ import annotations

from typing import Callable, Dict, Iterator, Mapping, Optional, Sequence, Tuple

from .errors import UnavailableResource
from .types import Tensor


class NamedTensorOutput(Mapping[str, Tensor]):
    """
    Named output tensors returned by one inference call.

    The collection is only valid until it is released. Use it as a context
    manager so the engine-side resources (e.g. IO-bound output buffers) are
    freed on every exit path once decoding is done:

        with engine.run(engine.input_name, tensor) as outputs:
            detections = decoder.decode(outputs, w, h)
    """

    def __init__(
        self,
        items: Sequence[Tuple[str, Tensor]],
        on_release: Optional[Callable[[], None]] = None,
    ):
        self._tensors: Dict[str, Tensor] = dict(items)
        self._on_release = on_release
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        callback, self._on_release = self._on_release, None
        self._tensors = {}
        if callback is not None:
            callback()

    def _check_alive(self) -> None:
        if self._released:
            raise UnavailableResource("Inference outputs were already released.")

    def __getitem__(self, name: str) -> Tensor:
        self._check_alive()
        return self._tensors[name]

    def __iter__(self) -> Iterator[str]:
        self._check_alive()
        return iter(list(self._tensors))

    def __len__(self) -> int:
        self._check_alive()
        return len(self._tensors)

    def __enter__(self) -> "NamedTensorOutput":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        if self._released:
            return "NamedTensorOutput(<released>)"
        shapes = ", ".join(f"{k}={'x'.join(str(d) for d in v.shape)}" for k, v in self._tensors.items())
        return f"NamedTensorOutput({shapes})"
