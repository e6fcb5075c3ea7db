import unittest

import numpy as np

from person_kit.types import BoundingBox, Detection
from person_kit.visualize import BOX_COLOR, draw_detections


class TestDrawDetections(unittest.TestCase):
    def test_draws_on_a_copy(self) -> None:
        img = np.zeros((200, 300, 3), dtype=np.uint8)
        det = Detection(confidence=0.93, box=BoundingBox(50, 60, 100, 80))
        out = draw_detections(img, [det])
        self.assertEqual(out.shape, img.shape)
        self.assertFalse(np.any(img))
        # bottom edge of the box is drawn in the box color
        self.assertEqual(tuple(int(v) for v in out[140, 100]), BOX_COLOR)

    def test_no_detections_returns_identical_copy(self) -> None:
        img = np.full((20, 20, 3), 9, dtype=np.uint8)
        out = draw_detections(img, [])
        self.assertTrue(np.array_equal(out, img))
        self.assertIsNot(out, img)

    def test_rejects_non_bgr(self) -> None:
        with self.assertRaises(ValueError):
            draw_detections(np.zeros((10, 10), dtype=np.uint8), [])


if __name__ == "__main__":
    unittest.main()
