import unittest

import numpy as np

from person_kit.errors import InvalidArgument
from person_kit.filtering import filter_by_confidence
from person_kit.nms import NMSConfig, NonMaxSuppressor, iou, nms_indices, suppress
from person_kit.types import BoundingBox, Detection


def _det(conf: float, x: float, y: float, w: float, h: float) -> Detection:
    return Detection(confidence=conf, box=BoundingBox(x, y, w, h))


class TestIoU(unittest.TestCase):
    def test_symmetric(self) -> None:
        a = BoundingBox(10, 20, 100, 50)
        b = BoundingBox(40, 30, 80, 90)
        self.assertEqual(iou(a, b), iou(b, a))
        self.assertGreater(iou(a, b), 0.0)

    def test_self_is_one(self) -> None:
        a = BoundingBox(12.5, 7.25, 33.3, 41.7)
        self.assertAlmostEqual(iou(a, a), 1.0, places=9)

    def test_disjoint_and_touching_are_zero(self) -> None:
        a = BoundingBox(0, 0, 10, 10)
        self.assertEqual(iou(a, BoundingBox(20, 20, 5, 5)), 0.0)
        self.assertEqual(iou(a, BoundingBox(10, 0, 10, 10)), 0.0)

    def test_zero_area_contributes_nothing(self) -> None:
        a = BoundingBox(0, 0, 10, 10)
        self.assertEqual(iou(a, BoundingBox(5, 5, 0, 0)), 0.0)
        self.assertEqual(iou(BoundingBox(5, 5, 0, 0), BoundingBox(5, 5, 0, 0)), 0.0)

    def test_known_value(self) -> None:
        a = BoundingBox(0, 0, 100, 100)
        b = BoundingBox(25, 0, 100, 100)
        self.assertAlmostEqual(iou(a, b), 0.6, places=9)


class TestNonMaxSuppressor(unittest.TestCase):
    def test_overlapping_pair_keeps_higher_confidence(self) -> None:
        # 1280x720 image, two candidates at IoU 0.6
        high = _det(0.95, 100, 100, 200, 300)
        low = _det(0.9, 150, 100, 200, 300)
        self.assertAlmostEqual(iou(high.box, low.box), 0.6, places=9)
        self.assertEqual(suppress([high, low]), [high])

    def test_iou_equal_to_threshold_is_kept(self) -> None:
        a = _det(0.9, 0, 0, 100, 100)
        b = _det(0.8, 50, 0, 100, 100)
        threshold = iou(a.box, b.box)
        kept = NonMaxSuppressor(NMSConfig(iou_threshold=threshold)).suppress([a, b])
        self.assertEqual(kept, [a, b])

    def test_chain_suppression_is_greedy(self) -> None:
        # b overlaps a and c; once b is removed by a, c survives.
        a = _det(0.99, 0, 0, 100, 100)
        b = _det(0.95, 30, 0, 100, 100)
        c = _det(0.9, 60, 0, 100, 100)
        self.assertEqual(suppress([a, b, c]), [a, c])

    def test_preserves_order_and_never_grows(self) -> None:
        rng = np.random.default_rng(3)
        dets = [
            _det(float(c), float(x), float(y), float(w), float(h))
            for c, x, y, w, h in zip(
                rng.uniform(0.8, 1.0, 200),
                rng.uniform(0, 600, 200),
                rng.uniform(0, 400, 200),
                rng.uniform(4, 200, 200),
                rng.uniform(4, 200, 200),
            )
        ]
        ordered = filter_by_confidence(dets, 0.8)
        kept = suppress(ordered)
        self.assertLessEqual(len(kept), len(ordered))
        confs = [d.confidence for d in kept]
        self.assertEqual(confs, sorted(confs, reverse=True))
        for i, a in enumerate(kept):
            for b in kept[i + 1 :]:
                self.assertLessEqual(iou(a.box, b.box), 0.45)

    def test_idempotent(self) -> None:
        rng = np.random.default_rng(5)
        dets = filter_by_confidence(
            [
                _det(float(rng.uniform(0.8, 1.0)), *map(float, rng.uniform(0, 300, 2)), 60.0, 80.0)
                for _ in range(120)
            ],
            0.8,
        )
        once = suppress(dets)
        self.assertEqual(suppress(once), once)

    def test_empty(self) -> None:
        self.assertEqual(suppress([]), [])

    def test_max_detections_cap(self) -> None:
        dets = [_det(0.9 - i * 0.01, i * 200.0, 0, 50, 50) for i in range(5)]
        kept = NonMaxSuppressor(NMSConfig(iou_threshold=0.45, max_detections=2)).suppress(dets)
        self.assertEqual(kept, dets[:2])


class TestNmsIndices(unittest.TestCase):
    def test_indices_follow_input_order(self) -> None:
        boxes = np.array([[0, 0, 10, 10], [100, 100, 10, 10], [1, 1, 10, 10]], dtype=np.float64)
        keep = nms_indices(boxes, NMSConfig(iou_threshold=0.45))
        self.assertTrue(np.array_equal(keep, np.array([0, 1])))

    def test_malformed_boxes_raise(self) -> None:
        with self.assertRaises(InvalidArgument):
            nms_indices(np.zeros((3, 3)), NMSConfig())


class TestConfidenceFilter(unittest.TestCase):
    def test_threshold_is_inclusive_and_sorted(self) -> None:
        dets = [_det(0.5, 0, 0, 10, 10), _det(0.8, 0, 0, 10, 10), _det(0.95, 0, 0, 10, 10)]
        kept = filter_by_confidence(dets, 0.8)
        self.assertEqual([d.confidence for d in kept], [0.95, 0.8])

    def test_ties_keep_original_order(self) -> None:
        first = _det(0.9, 0, 0, 10, 10)
        second = _det(0.9, 50, 50, 10, 10)
        top = _det(0.99, 100, 100, 10, 10)
        self.assertEqual(filter_by_confidence([first, second, top], 0.8), [top, first, second])

    def test_monotonic_in_threshold(self) -> None:
        rng = np.random.default_rng(9)
        dets = [_det(float(c), 0, 0, 10, 10) for c in rng.uniform(0, 1, 100)]
        counts = [len(filter_by_confidence(dets, t)) for t in np.linspace(0, 1, 21)]
        self.assertEqual(counts, sorted(counts, reverse=True))


if __name__ == "__main__":
    unittest.main()
