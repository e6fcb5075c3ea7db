from __future__ import annotations

from typing import Iterable, List

from .types import Detection


def filter_by_confidence(detections: Iterable[Detection], threshold: float = 0.8) -> List[Detection]:
    """
    Keep detections with confidence >= threshold, highest confidence first.

    The sort is stable: equal confidences keep their decode order.
    """
    kept = [d for d in detections if d.confidence >= threshold]
    return sorted(kept, key=lambda d: d.confidence, reverse=True)


class ConfidenceFilter:
    def __init__(self, threshold: float = 0.8):
        self.threshold = float(threshold)

    def apply(self, detections: Iterable[Detection]) -> List[Detection]:
        return filter_by_confidence(detections, self.threshold)

    __call__ = apply
