from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from .types import Detection

# OpenCV colors are BGR.
BOX_COLOR: Tuple[int, int, int] = (50, 205, 50)
LABEL_COLOR: Tuple[int, int, int] = (0, 200, 0)


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    show_score: bool = True,
    box_thickness: int = 3,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw numbered person boxes + labels on an OpenCV BGR image and return a copy.

    Labels read "Person 1: 93%" and sit above the box, or inside it when the
    box touches the top edge.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]

    for n, det in enumerate(detections, start=1):
        x1, y1, x2, y2 = det.as_xyxy()
        x1i = int(np.clip(round(x1), 0, w - 1))
        y1i = int(np.clip(round(y1), 0, h - 1))
        x2i = int(np.clip(round(x2), 0, w - 1))
        y2i = int(np.clip(round(y2), 0, h - 1))

        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), BOX_COLOR, thickness=box_thickness)

        label = f"{det.class_name} {n}"
        if show_score:
            label = f"{label}: {det.confidence:.0%}"

        (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        y_text_top = y1i - th - baseline - 4
        if y_text_top < 0:
            y_text_top = y1i + 2

        x_text_right = min(x1i + tw + 8, w - 1)
        y_text_bottom = min(y_text_top + th + baseline + 4, h - 1)

        cv2.rectangle(out, (x1i, y_text_top), (x_text_right, y_text_bottom), LABEL_COLOR, thickness=-1)
        cv2.putText(
            out,
            label,
            (x1i + 4, min(y_text_top + th + 2, h - 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (255, 255, 255),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
