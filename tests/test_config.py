import json
import tempfile
import unittest
from pathlib import Path

from person_kit.config import DetectorConfig, load_detector_config


class TestDetectorConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = DetectorConfig()
        self.assertEqual((cfg.input_width, cfg.input_height), (640, 640))
        self.assertEqual(cfg.confidence_threshold, 0.8)
        self.assertEqual(cfg.early_reject_threshold, 0.05)
        self.assertEqual(cfg.iou_threshold, 0.45)
        self.assertEqual(cfg.min_box_size, 4.0)
        self.assertEqual(cfg.max_box_ratio, 2.0)
        self.assertEqual(cfg.quant_sample_size, 100)
        self.assertEqual(cfg.class_name, "Person")

    def test_validation(self) -> None:
        for kwargs in (
            {"input_width": 0},
            {"confidence_threshold": 1.5},
            {"iou_threshold": -0.1},
            {"min_box_size": -1},
            {"quant_sample_size": 0},
            {"class_name": ""},
        ):
            with self.assertRaises(ValueError):
                DetectorConfig(**kwargs)


class TestLoadDetectorConfig(unittest.TestCase):
    def _write(self, payload) -> Path:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / "detector.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_partial_override(self) -> None:
        cfg = load_detector_config(self._write({"confidence_threshold": 0.6, "input_width": 320}))
        self.assertEqual(cfg.confidence_threshold, 0.6)
        self.assertEqual(cfg.input_width, 320)
        self.assertEqual(cfg.input_height, 640)

    def test_unknown_key(self) -> None:
        with self.assertRaises(ValueError):
            load_detector_config(self._write({"nms": 0.5}))

    def test_wrong_types(self) -> None:
        with self.assertRaises(ValueError):
            load_detector_config(self._write({"input_width": 640.5}))
        with self.assertRaises(ValueError):
            load_detector_config(self._write({"iou_threshold": True}))
        with self.assertRaises(ValueError):
            load_detector_config(self._write([1, 2]))

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_detector_config(Path("does/not/exist.json"))


if __name__ == "__main__":
    unittest.main()
