import argparse
import asyncio
import logging
from pathlib import Path

import cv2

from person_kit import (
    DEFAULT_MODEL_PATH,
    DetectorConfig,
    ReadyState,
    create_detector,
    draw_detections,
    ensure_ready,
    get_ready_state,
    load_detector_config,
    resolve_path,
)


def _parse_providers(raw):
    if not raw:
        return None
    return [p.strip() for p in str(raw).split(",") if p.strip()]


def main() -> int:
    parser = argparse.ArgumentParser(description="Detect people in an image and print their bounding boxes.")
    parser.add_argument("--image", default="Assets/SampleImage.png", help="Path to an input image.")
    parser.add_argument("--model", default=DEFAULT_MODEL_PATH, help="Path to the person detection ONNX model.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "QNNExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument(
        "--require-onnx-provider",
        action="append",
        default=None,
        help="Fail unless this ORT provider is available (repeatable).",
    )
    parser.add_argument("--config", default=None, help="Optional JSON file overriding detector constants.")
    parser.add_argument("--out", default=None, help="Optional output path for the annotated image.")
    parser.add_argument("--show", action="store_true", help="Show a window with the annotated image.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging of the detection stages.")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"ERROR: Sample image not found at: {image_path}")
        return 1

    cfg = load_detector_config(Path(args.config)) if args.config else DetectorConfig()
    model_path = resolve_path(args.model)
    required = list(args.require_onnx_provider or [])

    print("Checking if the person detector is ready...")
    state = get_ready_state(model_path, required)
    if state is not ReadyState.READY:
        print(f"Person detector is not ready. State: {state.value}")
        print("Attempting to prepare the feature...")
        result = asyncio.run(ensure_ready(model_path, required))
        if not result.ok:
            print(f"ERROR: Failed to prepare the person detector: {result.error}")
            return 1
    print("Person detector is ready!")

    detector = asyncio.run(
        create_detector(
            model_path,
            cfg=cfg,
            onnx_providers=_parse_providers(args.onnx_providers),
            required_providers=required,
        )
    )

    img = cv2.imread(str(image_path))
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {image_path}")
    print(f"Image size: {img.shape[1]}x{img.shape[0]}")

    with detector:
        result = detector.detect(img)

    print("=== DETECTION RESULTS ===")
    print(f"Total people detected: {result.count}")
    if result.count == 0:
        print("No people detected in the image.")
        return 0

    for i, person in enumerate(result.people, start=1):
        box = person.box
        print(f"  Person #{i}:")
        print(f"    Confidence: {person.confidence:.2%} ({person.confidence:.4f})")
        print(f"    Bounding Box: x={box.x:.1f} y={box.y:.1f} width={box.width:.1f} height={box.height:.1f}")

    if args.out or args.show:
        vis = draw_detections(img, result.people, show_score=True)
        if args.out:
            ok = cv2.imwrite(args.out, vis)
            if not ok:
                raise RuntimeError(f"Failed to write output image: {args.out}")
            print(f"Wrote annotated image: {args.out}")
        if args.show:
            cv2.imshow("people", vis)
            cv2.waitKey(0)
            cv2.destroyAllWindows()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
