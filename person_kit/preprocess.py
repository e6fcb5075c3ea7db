from __future__ import annotations

from typing import Union

import numpy as np

from .errors import InvalidArgument
from .types import Image, Tensor

ImageLike = Union[Image, np.ndarray]


def as_image(image: ImageLike) -> Image:
    if isinstance(image, Image):
        return image
    return Image.from_array(image)


def preprocess(image: ImageLike, target_width: int = 640, target_height: int = 640) -> Tensor:
    """
    Convert a BGR image into the uint8 NCHW tensor the detector expects.

    The image is stretched (no letterbox padding) to (target_width, target_height),
    so x and y are rescaled independently when boxes are mapped back.

    Returns:
        Tensor of shape (1, 3, target_height, target_width), channel order R, G, B,
        values left in 0..255.
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for preprocess(). Install with `pip install opencv-python`.") from e

    if image is None:
        raise InvalidArgument("image must not be None.")
    if target_width <= 0 or target_height <= 0:
        raise InvalidArgument(f"target size must be positive, got {target_width}x{target_height}")

    img = as_image(image)
    pixels = img.pixels

    # cv2.resize allocates a new array; the caller's pixels are left as-is.
    if (img.width, img.height) != (target_width, target_height):
        pixels = cv2.resize(pixels, (target_width, target_height), interpolation=cv2.INTER_LINEAR)

    # BGR -> RGB, HWC -> CHW, add batch
    blob = np.ascontiguousarray(np.transpose(pixels[:, :, ::-1], (2, 0, 1))[None, ...], dtype=np.uint8)
    return Tensor(data=blob)


class ImagePreprocessor:
    """
    Stateless wrapper around `preprocess` bound to the model's input size.
    """

    def __init__(self, input_width: int = 640, input_height: int = 640):
        self.input_width = int(input_width)
        self.input_height = int(input_height)

    def preprocess(self, image: ImageLike) -> Tensor:
        return preprocess(image, self.input_width, self.input_height)

    __call__ = preprocess
