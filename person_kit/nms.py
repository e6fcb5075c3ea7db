from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .errors import InvalidArgument
from .types import BoundingBox, Detection

logger = logging.getLogger(__name__)


@dataclass
class NMSConfig:
    iou_threshold: float = 0.45
    # None keeps every box that survives suppression.
    max_detections: Optional[int] = None


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """
    Intersection over union of two xywh boxes. 0.0 when they do not overlap.
    """
    inter_w = min(a.x2, b.x2) - max(a.x, b.x)
    inter_h = min(a.y2, b.y2) - max(a.y, b.y)
    if inter_w <= 0 or inter_h <= 0:
        return 0.0
    inter = inter_w * inter_h
    union = a.area + b.area - inter
    if union <= 0:
        return 0.0
    return inter / union


def iou_one_to_many(box: np.ndarray, others: np.ndarray) -> np.ndarray:
    """
    IoU between one xywh box (4,) and an (M, 4) array of xywh boxes.
    """
    x1 = np.maximum(box[0], others[:, 0])
    y1 = np.maximum(box[1], others[:, 1])
    x2 = np.minimum(box[0] + box[2], others[:, 0] + others[:, 2])
    y2 = np.minimum(box[1] + box[3], others[:, 1] + others[:, 3])

    w = np.maximum(0.0, x2 - x1)
    h = np.maximum(0.0, y2 - y1)
    inter = w * h
    area = max(box[2], 0.0) * max(box[3], 0.0)
    areas = np.maximum(others[:, 2], 0.0) * np.maximum(others[:, 3], 0.0)
    union = area + areas - inter
    return np.where(inter > 0, inter / np.maximum(union, 1e-12), 0.0)


def nms_indices(boxes: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N, 4) in xywh, already ordered by
    confidence descending. Returns indices of boxes to keep, in input order.
    """

    boxes = np.asarray(boxes, dtype=np.float64)
    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)
    if boxes.ndim != 2 or boxes.shape[1] != 4:
        raise InvalidArgument(f"Expected boxes shape (N, 4), got {boxes.shape}")

    order = np.arange(boxes.shape[0])
    keep = []

    while order.size > 0 and (cfg.max_detections is None or len(keep) < cfg.max_detections):
        i = order[0]
        keep.append(i)

        overlaps = iou_one_to_many(boxes[i], boxes[order[1:]])
        inds = np.where(overlaps <= cfg.iou_threshold)[0]
        order = order[inds + 1]

    return np.array(keep, dtype=np.int64)


class NonMaxSuppressor:
    def __init__(self, cfg: NMSConfig = NMSConfig()):
        self.cfg = cfg

    def suppress(self, detections: Sequence[Detection]) -> List[Detection]:
        """
        Drop detections overlapping a higher-confidence one by more than the IoU threshold.

        `detections` must already be sorted by confidence descending (see
        `filter_by_confidence`); the result keeps that order.
        """
        if not detections:
            return []

        logger.debug("Starting NMS on %d detections, threshold=%s", len(detections), self.cfg.iou_threshold)
        boxes = np.array([d.box.as_xywh() for d in detections], dtype=np.float64)
        kept = [detections[int(i)] for i in nms_indices(boxes, self.cfg)]
        logger.debug("NMS result count=%d", len(kept))
        return kept

    __call__ = suppress


def suppress(detections: Sequence[Detection], iou_threshold: float = 0.45) -> List[Detection]:
    return NonMaxSuppressor(NMSConfig(iou_threshold=iou_threshold)).suppress(detections)
