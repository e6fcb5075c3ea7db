from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from .backends.base import InferenceEngine
from .config import DetectorConfig
from .decode import OutputDecoder
from .errors import InvalidArgument, UnavailableResource
from .filtering import ConfidenceFilter
from .nms import NMSConfig, NonMaxSuppressor
from .preprocess import ImageLike, ImagePreprocessor, as_image
from .readiness import ensure_ready
from .types import DetectionResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_MODEL_PATH = "Models/Yolo-X_w8a8/model.onnx"


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git", "Models"),
) -> Path:
    """
    Best-effort project root discovery, used to resolve the default model path.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against `root` if provided, the project root otherwise.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


class PersonDetector:
    """
    Preprocess -> inference -> decode -> confidence filter -> NMS.

    The detector owns its engine and releases it once on `close()`. One call to
    `detect` at a time per instance; the engine's outputs are released before
    `detect` returns, also when decoding raises.
    """

    def __init__(self, engine: Optional[InferenceEngine], cfg: DetectorConfig = DetectorConfig()):
        self.engine = engine
        self.cfg = cfg
        self.preprocessor = ImagePreprocessor(cfg.input_width, cfg.input_height)
        self.decoder = OutputDecoder(cfg)
        self.confidence_filter = ConfidenceFilter(cfg.confidence_threshold)
        self.suppressor = NonMaxSuppressor(NMSConfig(iou_threshold=cfg.iou_threshold))

    @property
    def ready(self) -> bool:
        return self.engine is not None and not self.engine.closed

    def detect(self, image: ImageLike) -> DetectionResult:
        if image is None:
            raise InvalidArgument("image must not be None.")
        img = as_image(image)

        if not self.ready:
            return DetectionResult.empty()

        logger.debug("Detection start, image size %dx%d", img.width, img.height)
        tensor = self.preprocessor.preprocess(img)

        with self.engine.run(self.engine.input_name, tensor) as outputs:
            logger.debug("Outputs returned: %d", len(outputs))
            detections = self.decoder.decode(outputs, img.width, img.height)
        logger.debug("Raw detections count: %d", len(detections))

        filtered = self.confidence_filter.apply(detections)
        logger.debug("After confidence filter (%s): %d", self.cfg.confidence_threshold, len(filtered))

        people = self.suppressor.suppress(filtered)
        logger.debug("After NMS: %d", len(people))
        for d in people:
            logger.debug(
                "Person detected -> conf=%.3f box=(%.0f,%.0f,%.0f,%.0f)",
                d.confidence,
                d.box.x,
                d.box.y,
                d.box.width,
                d.box.height,
            )

        return DetectionResult(people=tuple(people))

    __call__ = detect

    def close(self) -> None:
        if self.engine is not None and not self.engine.closed:
            self.engine.close()

    def __enter__(self) -> "PersonDetector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


DetectionPipeline = PersonDetector


def load_detector(
    model_path: PathLike = DEFAULT_MODEL_PATH,
    *,
    root: Optional[PathLike] = "auto",
    cfg: DetectorConfig = DetectorConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
    use_io_binding: bool = True,
) -> PersonDetector:
    """
    Create a detector for an ONNX model on disk.

    Typical usage:
        with load_detector("Models/Yolo-X_w8a8/model.onnx") as detector:
            result = detector.detect(image_bgr)

    Args:
        model_path: path to the .onnx file; relative paths resolve against the project root by default
        onnx_providers: ORT providers in priority order (default: QNN, then CPU)
    """

    from .backends.onnxruntime_backend import OnnxRuntimeEngine, OnnxRuntimeEngineConfig

    resolved = resolve_path(model_path, root=root)
    engine = OnnxRuntimeEngine.load(
        resolved,
        OnnxRuntimeEngineConfig(providers=onnx_providers, use_io_binding=use_io_binding),
    )
    logger.debug("Created detector with model: %s", resolved)
    return PersonDetector(engine, cfg)


async def create_detector(
    model_path: PathLike = DEFAULT_MODEL_PATH,
    *,
    root: Optional[PathLike] = "auto",
    cfg: DetectorConfig = DetectorConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
    required_providers: Sequence[str] = (),
    use_io_binding: bool = True,
) -> PersonDetector:
    """
    Make sure the runtime and model are ready, then load the detector.

    Raises the readiness error (e.g. FileNotFoundError) if preparation failed.
    """

    resolved = resolve_path(model_path, root=root)
    result = await ensure_ready(resolved, required_providers)
    if not result.ok:
        raise result.error or UnavailableResource("Failed to prepare person detection feature")

    return load_detector(
        resolved,
        root=root,
        cfg=cfg,
        onnx_providers=onnx_providers,
        use_io_binding=use_io_binding,
    )
