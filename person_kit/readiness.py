"""
Readiness checks for the ONNX Runtime person detector.

`get_ready_state` answers "can a detector be created right now?" without
raising. `ensure_ready` is the awaitable counterpart used before construction;
it reports failures as a ReadyResult carrying the underlying error.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union

from .errors import UnavailableResource

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ReadyState(Enum):
    READY = "ready"
    NOT_READY = "not_ready"


class ReadyResultStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ReadyResult:
    status: ReadyResultStatus
    error: Optional[BaseException] = None

    @classmethod
    def success(cls) -> "ReadyResult":
        return cls(status=ReadyResultStatus.SUCCESS)

    @classmethod
    def failed(cls, error: BaseException) -> "ReadyResult":
        return cls(status=ReadyResultStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is ReadyResultStatus.SUCCESS


def check_ready(model_path: PathLike, required_providers: Sequence[str] = ()) -> None:
    """
    Raise if the detector cannot be created: onnxruntime missing, model file
    missing, or a required execution provider not offered by this build.
    """
    try:
        import onnxruntime as ort  # type: ignore
    except ImportError as exc:
        raise UnavailableResource("onnxruntime is not installed.") from exc

    path = Path(model_path)
    if not path.exists():
        raise FileNotFoundError(f"Model file not found: {path}")

    available = set(ort.get_available_providers())
    missing = [p for p in required_providers if p not in available]
    if missing:
        raise UnavailableResource(
            f"Required ONNX Runtime provider(s) not available: {missing}. Available providers: {sorted(available)}."
        )


def get_ready_state(model_path: PathLike, required_providers: Sequence[str] = ()) -> ReadyState:
    try:
        check_ready(model_path, required_providers)
    except Exception as exc:
        logger.debug("Person detector not ready: %s", exc)
        return ReadyState.NOT_READY
    return ReadyState.READY


async def ensure_ready(model_path: PathLike, required_providers: Sequence[str] = ()) -> ReadyResult:
    """
    Run the readiness checks off the event loop and report the outcome.
    """
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, check_ready, model_path, tuple(required_providers))
    except Exception as exc:
        logger.debug("Failed to ensure ready: %s", exc)
        return ReadyResult.failed(exc)

    logger.debug("Person detection feature is ready")
    return ReadyResult.success()
