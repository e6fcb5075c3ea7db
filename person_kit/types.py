from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Tuple

import numpy as np

from .errors import InvalidArgument, MalformedModelOutput


@dataclass(frozen=True)
class Image:
    """
    Decoded raster image: (H, W, 3) uint8, interleaved, BGR (OpenCV order).

    The wrapped array belongs to the caller and is never written to.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        array = self.pixels
        if array is None or not hasattr(array, "shape"):
            raise InvalidArgument("image must be a NumPy array (H, W, 3) in BGR order.")
        if array.ndim != 3 or array.shape[2] != 3:
            raise InvalidArgument(f"Expected image shape (H, W, 3), got {array.shape}")
        if array.shape[0] == 0 or array.shape[1] == 0:
            raise InvalidArgument(f"image has zero width or height (shape {array.shape})")
        if array.dtype != np.uint8:
            raise InvalidArgument(f"image must be uint8, got {array.dtype}")

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Image":
        return cls(pixels=array)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


class ElementType(Enum):
    UINT8 = "uint8"
    FLOAT32 = "float32"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)

    @classmethod
    def from_dtype(cls, dtype: np.dtype) -> "ElementType":
        dtype = np.dtype(dtype)
        for member in cls:
            if member.dtype == dtype:
                return member
        raise MalformedModelOutput(f"Unsupported tensor element type: {dtype}")


@dataclass(frozen=True)
class Tensor:
    """
    Contiguous row-major buffer with shape metadata. Element type is uint8 or float32.
    """

    data: np.ndarray

    @classmethod
    def of(cls, array: np.ndarray) -> "Tensor":
        arr = np.asarray(array)
        ElementType.from_dtype(arr.dtype)
        return cls(data=np.ascontiguousarray(arr))

    @classmethod
    def zeros(cls, shape: Tuple[int, ...], element_type: ElementType) -> "Tensor":
        return cls(data=np.zeros(shape, dtype=element_type.dtype))

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self.data.shape)

    @property
    def element_type(self) -> ElementType:
        return ElementType.from_dtype(self.data.dtype)

    def __len__(self) -> int:
        return int(self.data.size)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in pixel coordinates: top-left corner plus size."""

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return max(self.width, 0.0) * max(self.height, 0.0)

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x2, self.y2

    def as_xywh(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height


@dataclass(frozen=True)
class Detection:
    """
    A single detected person in original image coordinates.
    """

    confidence: float
    box: BoundingBox
    class_name: str = "Person"

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.box.as_xyxy()


@dataclass(frozen=True)
class DetectionResult:
    people: Tuple[Detection, ...] = ()
    count: int = field(default=-1)

    def __post_init__(self) -> None:
        people = tuple(self.people)
        object.__setattr__(self, "people", people)
        if self.count == -1:
            object.__setattr__(self, "count", len(people))
        elif self.count != len(people):
            raise ValueError(f"count ({self.count}) must equal the number of detections ({len(people)})")

    @classmethod
    def empty(cls) -> "DetectionResult":
        return cls(people=())

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[Detection]:
        return iter(self.people)
