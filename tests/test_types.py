import unittest

import numpy as np

from person_kit.errors import InvalidArgument, MalformedModelOutput, UnavailableResource
from person_kit.tensors import NamedTensorOutput
from person_kit.types import BoundingBox, Detection, DetectionResult, ElementType, Image, Tensor


class TestTensor(unittest.TestCase):
    def test_shape_and_element_type(self) -> None:
        t = Tensor.of(np.zeros((1, 3, 4, 5), dtype=np.uint8))
        self.assertEqual(t.shape, (1, 3, 4, 5))
        self.assertEqual(t.element_type, ElementType.UINT8)
        self.assertEqual(len(t), int(np.prod(t.shape)))

    def test_non_contiguous_input_is_made_contiguous(self) -> None:
        arr = np.arange(24, dtype=np.float32).reshape(4, 6)[:, ::2]
        t = Tensor.of(arr)
        self.assertTrue(t.data.flags["C_CONTIGUOUS"])
        self.assertTrue(np.array_equal(t.data, arr))

    def test_unsupported_element_type(self) -> None:
        with self.assertRaises(MalformedModelOutput):
            Tensor.of(np.zeros((1, 2), dtype=np.int64))

    def test_zeros(self) -> None:
        t = Tensor.zeros((1, 2, 4), ElementType.FLOAT32)
        self.assertEqual(t.data.dtype, np.float32)


class TestImage(unittest.TestCase):
    def test_dimensions(self) -> None:
        img = Image.from_array(np.zeros((720, 1280, 3), dtype=np.uint8))
        self.assertEqual((img.width, img.height), (1280, 720))

    def test_rejects_bad_arrays(self) -> None:
        for bad in (
            None,
            np.zeros((0, 10, 3), dtype=np.uint8),
            np.zeros((10, 0, 3), dtype=np.uint8),
            np.zeros((10, 10), dtype=np.uint8),
            np.zeros((10, 10, 4), dtype=np.uint8),
            np.zeros((10, 10, 3), dtype=np.float32),
        ):
            with self.assertRaises(InvalidArgument):
                Image.from_array(bad)
            with self.assertRaises(InvalidArgument):
                Image(pixels=bad)


class TestDetectionResult(unittest.TestCase):
    def test_count_follows_people(self) -> None:
        det = Detection(confidence=0.9, box=BoundingBox(1, 2, 30, 40))
        result = DetectionResult(people=[det, det])
        self.assertEqual(result.count, 2)
        self.assertEqual(len(result), 2)
        self.assertIsInstance(result.people, tuple)
        self.assertEqual(det.as_xyxy(), (1, 2, 31, 42))

    def test_empty(self) -> None:
        result = DetectionResult.empty()
        self.assertEqual(result.count, 0)
        self.assertEqual(list(result), [])

    def test_count_mismatch(self) -> None:
        det = Detection(confidence=0.9, box=BoundingBox(1, 2, 30, 40))
        with self.assertRaises(ValueError):
            DetectionResult(people=(det,), count=3)


class TestNamedTensorOutput(unittest.TestCase):
    def test_release_runs_once_and_blocks_access(self) -> None:
        calls = []
        boxes = Tensor.of(np.zeros((1, 2, 4), dtype=np.uint8))
        with NamedTensorOutput([("boxes", boxes)], on_release=lambda: calls.append(1)) as outputs:
            self.assertEqual(list(outputs), ["boxes"])
            self.assertIs(outputs["boxes"], boxes)
        self.assertEqual(calls, [1])
        self.assertTrue(outputs.released)
        outputs.release()
        self.assertEqual(calls, [1])
        with self.assertRaises(UnavailableResource):
            outputs["boxes"]

    def test_release_on_exception(self) -> None:
        calls = []
        with self.assertRaises(RuntimeError):
            with NamedTensorOutput([], on_release=lambda: calls.append(1)):
                raise RuntimeError("decode failed")
        self.assertEqual(calls, [1])

    def test_order_is_preserved(self) -> None:
        items = [(name, Tensor.of(np.zeros((1,), dtype=np.float32))) for name in ("z", "a", "m")]
        self.assertEqual(list(NamedTensorOutput(items)), ["z", "a", "m"])


if __name__ == "__main__":
    unittest.main()
