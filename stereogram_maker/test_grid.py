import unittest
import numpy as np
from PIL import Image

from .errors import InvalidDimension, OutOfRangeAccess
from .grid import PixelGrid


class TestPixelGrid(unittest.TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.grid = PixelGrid(4, 3)

    def test_buffer_length(self):
        self.assertEqual(self.grid.data.size, 4 * 3 * 4)
        self.assertEqual(self.grid.data.dtype, np.uint8)
        self.assertEqual(self.grid.size, (4, 3))

    def test_default_fill(self):
        self.assertEqual(self.grid.get(0, 0), (0, 0, 0, 255))
        self.assertEqual(self.grid.get(3, 2), (0, 0, 0, 255))

    def test_set_and_get(self):
        self.grid.set(2, 1, (10, 20, 30, 40))
        self.assertEqual(self.grid.get(2, 1), (10, 20, 30, 40))
        # the neighbors are untouched
        self.assertEqual(self.grid.get(1, 1), (0, 0, 0, 255))
        self.assertEqual(self.grid.get(3, 1), (0, 0, 0, 255))

    def test_out_of_range_is_rejected(self):
        for x, y in [(-1, 0), (0, -1), (4, 0), (0, 3), (100, 100)]:
            with self.assertRaises(OutOfRangeAccess):
                self.grid.get(x, y)
            with self.assertRaises(OutOfRangeAccess):
                self.grid.set(x, y, (1, 2, 3, 4))

    def test_out_of_range_is_an_index_error(self):
        with self.assertRaises(IndexError):
            self.grid.get(4, 0)

    def test_invalid_pixel(self):
        with self.assertRaises(ValueError):
            self.grid.set(0, 0, (1, 2, 3))
        with self.assertRaises(ValueError):
            self.grid.set(0, 0, (1, 2, 3, 256))

    def test_invalid_dimensions(self):
        with self.assertRaises(InvalidDimension):
            PixelGrid(0, 10)
        with self.assertRaises(InvalidDimension):
            PixelGrid(10, -1)

    def test_from_array_grayscale(self):
        array = np.array([[0, 128], [255, 64]], dtype=np.uint8)
        grid = PixelGrid.from_array(array)
        self.assertEqual(grid.size, (2, 2))
        self.assertEqual(grid.get(1, 0), (128, 128, 128, 255))
        self.assertEqual(grid.get(0, 1), (255, 255, 255, 255))

    def test_from_image_roundtrip(self):
        image = Image.new("RGB", (5, 2), (1, 2, 3))
        grid = PixelGrid.from_image(image)
        self.assertEqual(grid.get(4, 1), (1, 2, 3, 255))
        self.assertEqual(grid.to_image().mode, "RGBA")
        self.assertEqual(grid.to_image().size, (5, 2))

    def test_copy_is_independent(self):
        copy = self.grid.copy()
        self.assertEqual(copy, self.grid)
        copy.set(0, 0, (9, 9, 9, 9))
        self.assertNotEqual(copy, self.grid)


if __name__ == "__main__":
    unittest.main()
