from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict


@dataclass(frozen=True)
class DetectorConfig:
    """
    Constants used by the person detection pipeline.

    Defaults match the exported YOLOX w8a8 model (640x640 input). They are not
    meant to be tuned per call; fork a config (or load one from JSON) when a
    different model needs different values.
    """

    input_width: int = 640
    input_height: int = 640
    confidence_threshold: float = 0.8
    early_reject_threshold: float = 0.05
    iou_threshold: float = 0.45
    min_box_size: float = 4.0
    # Boxes wider/taller than this multiple of the original image are rejected.
    max_box_ratio: float = 2.0
    # Candidates sampled to infer the byte quantization range.
    quant_sample_size: int = 100
    class_name: str = "Person"

    def __post_init__(self) -> None:
        if self.input_width <= 0 or self.input_height <= 0:
            raise ValueError("input_width and input_height must be > 0")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be within [0, 1]")
        if not 0.0 <= self.early_reject_threshold <= 1.0:
            raise ValueError("early_reject_threshold must be within [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be within [0, 1]")
        if self.min_box_size < 0:
            raise ValueError("min_box_size must be >= 0")
        if self.max_box_ratio <= 0:
            raise ValueError("max_box_ratio must be > 0")
        if self.quant_sample_size < 1:
            raise ValueError("quant_sample_size must be >= 1")
        if not self.class_name:
            raise ValueError("class_name must be a non-empty string")


_INT_KEYS = ("input_width", "input_height", "quant_sample_size")
_FLOAT_KEYS = (
    "confidence_threshold",
    "early_reject_threshold",
    "iou_threshold",
    "min_box_size",
    "max_box_ratio",
)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def load_detector_config(path: Path) -> DetectorConfig:
    """
    Load a DetectorConfig from a JSON object. Missing keys keep their defaults.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")

    allowed = set(_INT_KEYS) | set(_FLOAT_KEYS) | {"class_name"}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    for key in _INT_KEYS:
        if key in payload:
            kwargs[key] = _require_int(payload, key)
    for key in _FLOAT_KEYS:
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    if "class_name" in payload:
        if not isinstance(payload["class_name"], str):
            raise ValueError("class_name must be a string")
        kwargs["class_name"] = payload["class_name"]

    return DetectorConfig(**kwargs)
