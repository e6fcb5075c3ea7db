"""
Person detection post-processing for YOLOX-style ONNX exports.

Covers the whole path from a BGR image to a list of person boxes:
preprocessing into a uint8 NCHW tensor, decoding quantized (uint8) or float
model outputs, confidence filtering and non-maximum suppression. The inference
engine itself sits behind a small protocol; an ONNX Runtime engine ships in
`person_kit.backends`.
"""

from .config import DetectorConfig, load_detector_config
from .decode import OutputDecoder, classify_outputs, quantization_params
from .errors import InvalidArgument, MalformedModelOutput, PersonKitError, UnavailableResource
from .filtering import ConfidenceFilter, filter_by_confidence
from .nms import NMSConfig, NonMaxSuppressor, iou, suppress
from .pipeline import (
    DEFAULT_MODEL_PATH,
    DetectionPipeline,
    PersonDetector,
    create_detector,
    find_project_root,
    load_detector,
    resolve_path,
)
from .preprocess import ImagePreprocessor, preprocess
from .readiness import ReadyResult, ReadyResultStatus, ReadyState, ensure_ready, get_ready_state
from .tensors import NamedTensorOutput
from .types import BoundingBox, Detection, DetectionResult, ElementType, Image, Tensor
from .visualize import draw_detections

__all__ = [
    "DetectorConfig",
    "load_detector_config",
    "OutputDecoder",
    "classify_outputs",
    "quantization_params",
    "InvalidArgument",
    "MalformedModelOutput",
    "PersonKitError",
    "UnavailableResource",
    "ConfidenceFilter",
    "filter_by_confidence",
    "NMSConfig",
    "NonMaxSuppressor",
    "iou",
    "suppress",
    "DEFAULT_MODEL_PATH",
    "DetectionPipeline",
    "PersonDetector",
    "create_detector",
    "find_project_root",
    "load_detector",
    "resolve_path",
    "ImagePreprocessor",
    "preprocess",
    "ReadyResult",
    "ReadyResultStatus",
    "ReadyState",
    "ensure_ready",
    "get_ready_state",
    "NamedTensorOutput",
    "BoundingBox",
    "Detection",
    "DetectionResult",
    "ElementType",
    "Image",
    "Tensor",
    "draw_detections",
]
