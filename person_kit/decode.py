from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

import numpy as np

from .config import DetectorConfig
from .errors import MalformedModelOutput
from .types import BoundingBox, Detection, ElementType, Tensor

logger = logging.getLogger(__name__)


@dataclass
class OutputRoles:
    """
    Output tensors of one element type, sorted into boxes / scores / classes.
    """

    boxes: Optional[Tensor] = None
    scores: Optional[Tensor] = None
    classes: Optional[Tensor] = None

    def assign(self, name: str, tensor: Tensor) -> None:
        # Names are matched first; unnamed outputs fill the remaining slots in order.
        lowered = name.lower()
        if "box" in lowered:
            self.boxes = tensor
        elif "score" in lowered or "conf" in lowered:
            self.scores = tensor
        elif "class" in lowered or "label" in lowered:
            self.classes = tensor
        elif self.boxes is None:
            self.boxes = tensor
        elif self.scores is None:
            self.scores = tensor
        elif self.classes is None:
            self.classes = tensor


@dataclass
class ClassifiedOutputs:
    uint8: OutputRoles = field(default_factory=OutputRoles)
    float32: OutputRoles = field(default_factory=OutputRoles)

    def select(self) -> Tuple[Optional[ElementType], OutputRoles]:
        """
        Pick the branch to decode: quantized outputs win over float outputs.
        """
        if self.uint8.boxes is not None:
            return ElementType.UINT8, self.uint8
        if self.float32.boxes is not None:
            return ElementType.FLOAT32, self.float32
        return None, OutputRoles()


def classify_outputs(outputs: Mapping[str, Tensor]) -> ClassifiedOutputs:
    classified = ClassifiedOutputs()
    for name, tensor in outputs.items():
        element_type = tensor.element_type
        if element_type is ElementType.UINT8:
            classified.uint8.assign(name, tensor)
        elif element_type is ElementType.FLOAT32:
            classified.float32.assign(name, tensor)
    return classified


def quantization_params(
    boxes: np.ndarray,
    target_width: int,
    sample_size: int = 100,
) -> Optional[Tuple[np.float32, np.float32]]:
    """
    Infer an affine dequantization (scale, zero_point) from raw uint8 boxes.

    The exported model carries no quantization metadata, so the range is
    estimated from the first `sample_size` candidates and stretched onto
    [0, target_width]. Returns None when the sample is empty or flat.

    Args:
        boxes: (N, 4) uint8 raw box values
    """

    sample = np.asarray(boxes)[:sample_size]
    if sample.size == 0:
        return None

    min_val = int(sample.min())
    max_val = int(sample.max())
    logger.debug(
        "Box value distribution: min=%d max=%d avg=%.1f", min_val, max_val, float(sample.astype(np.float64).mean())
    )
    if max_val == min_val:
        return None

    scale = np.float32(target_width) / np.float32(max_val - min_val)
    zero_point = np.float32(min_val)
    logger.debug(
        "Inferred quantization: scale=%.4f zero_point=%.1f (byte range [%d, %d] -> [0, %d])",
        scale,
        zero_point,
        min_val,
        max_val,
        target_width,
    )
    return scale, zero_point


class OutputDecoder:
    """
    Turns the named output tensors of a YOLOX-style export into person detections.

    Supported layouts (per image):
    - boxes: (1, N, 4) as x1, y1, x2, y2 in model input space
    - scores (optional): (1, N) or (1, N, K), first column used
    - classes (optional): identified but unused, only one class is positive

    Two encodings are handled: uint8 (quantized, range inferred from the data)
    and float32 (pixels, or [0, 1] fractions of the input size).
    """

    def __init__(self, cfg: DetectorConfig = DetectorConfig()):
        self.cfg = cfg

    def decode(self, outputs: Mapping[str, Tensor], orig_width: int, orig_height: int) -> List[Detection]:
        for name, tensor in outputs.items():
            logger.debug("Output '%s': %s %s", name, "x".join(str(d) for d in tensor.shape), tensor.element_type.value)

        element_type, roles = classify_outputs(outputs).select()
        if element_type is None:
            logger.debug("No boxes output found among %d outputs", len(outputs))
            return []

        if roles.classes is not None:
            logger.debug("Classes output present %s (ignored)", roles.classes.shape)

        try:
            if element_type is ElementType.UINT8:
                detections = self._decode_uint8(roles, orig_width, orig_height)
            else:
                detections = self._decode_float32(roles, orig_width, orig_height)
        except MalformedModelOutput as exc:
            logger.warning("Skipping malformed model output: %s", exc)
            return []

        logger.debug("Decoded %d detections from %s outputs", len(detections), element_type.value)
        return detections

    __call__ = decode

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    def _boxes(self, tensor: Tensor) -> np.ndarray:
        shape = tensor.shape
        if len(shape) != 3 or shape[0] != 1 or shape[2] != 4:
            raise MalformedModelOutput(f"Unexpected box dimensions {shape}, expected [1, N, 4]")
        return tensor.data[0]

    def _confidences(self, scores: Optional[Tensor], n: int, divisor: Optional[float]) -> np.ndarray:
        conf = np.ones((n,), dtype=np.float32)
        if scores is None or n == 0:
            return conf

        s = scores.data
        if s.ndim == 2 and s.shape[0] > 0:
            values = s[0, :n]
        elif s.ndim == 3 and s.shape[0] > 0 and s.shape[2] > 0:
            values = s[0, :n, 0]
        else:
            logger.debug("Scores output shape %s not understood; assuming confidence 1.0", scores.shape)
            return conf

        values = values.astype(np.float32)
        if divisor is not None:
            values = values / np.float32(divisor)
        # Candidates past the end of a short scores tensor keep 1.0.
        conf[: values.shape[0]] = values
        return conf

    def _decode_uint8(self, roles: OutputRoles, orig_width: int, orig_height: int) -> List[Detection]:
        raw = self._boxes(roles.boxes)
        logger.debug(
            "Multi-output byte format: boxes=%s, original image %dx%d",
            "x".join(str(d) for d in roles.boxes.shape),
            orig_width,
            orig_height,
        )

        params = quantization_params(raw, self.cfg.input_width, self.cfg.quant_sample_size)
        if params is None:
            # Empty or flat sample: no range to dequantize against. Candidates past
            # the sample may still differ, but their scale is undefined.
            return []
        scale, zero_point = params

        boxes = (raw.astype(np.float32) - zero_point) * scale
        boxes[:, [0, 2]] = np.clip(boxes[:, [0, 2]], 0, self.cfg.input_width)
        boxes[:, [1, 3]] = np.clip(boxes[:, [1, 3]], 0, self.cfg.input_height)

        conf = self._confidences(roles.scores, raw.shape[0], divisor=255.0)
        return self._emit(boxes, conf, orig_width, orig_height)

    def _decode_float32(self, roles: OutputRoles, orig_width: int, orig_height: int) -> List[Detection]:
        raw = self._boxes(roles.boxes).astype(np.float32)
        logger.debug("Multi-output float format: boxes=%s", "x".join(str(d) for d in roles.boxes.shape))

        # Per candidate: all four values <= 1 means fractions of the input size.
        normalized = np.all(raw <= 1.0, axis=1)
        input_size = np.array(
            [self.cfg.input_width, self.cfg.input_height, self.cfg.input_width, self.cfg.input_height],
            dtype=np.float32,
        )
        boxes = np.where(normalized[:, None], raw * input_size, raw).astype(np.float32)

        conf = self._confidences(roles.scores, raw.shape[0], divisor=None)
        return self._emit(boxes, conf, orig_width, orig_height)

    def _emit(self, boxes: np.ndarray, conf: np.ndarray, orig_width: int, orig_height: int) -> List[Detection]:
        """
        Map model-space xyxy boxes to original image xywh and drop rejects.
        """

        scale_x = np.float32(orig_width) / np.float32(self.cfg.input_width)
        scale_y = np.float32(orig_height) / np.float32(self.cfg.input_height)

        x1 = boxes[:, 0] * scale_x
        y1 = boxes[:, 1] * scale_y
        x2 = boxes[:, 2] * scale_x
        y2 = boxes[:, 3] * scale_y
        w = x2 - x1
        h = y2 - y1

        keep = conf >= np.float32(self.cfg.early_reject_threshold)
        keep &= np.isfinite(x1) & np.isfinite(y1) & np.isfinite(w) & np.isfinite(h)
        keep &= (w >= self.cfg.min_box_size) & (h >= self.cfg.min_box_size)
        keep &= (x1 >= 0) & (y1 >= 0)
        keep &= (w <= orig_width * self.cfg.max_box_ratio) & (h <= orig_height * self.cfg.max_box_ratio)

        return [
            Detection(
                confidence=float(conf[i]),
                box=BoundingBox(x=float(x1[i]), y=float(y1[i]), width=float(w[i]), height=float(h[i])),
                class_name=self.cfg.class_name,
            )
            for i in np.flatnonzero(keep)
        ]
