# (c) 2024 Niels Provos
#

import numpy as np
from PIL import Image

from .errors import InvalidDimension, OutOfRangeAccess


class PixelGrid:
    """
    Fixed size RGBA raster addressable by (x, y).

    The pixels live in a numpy array of shape (height, width, 4) and dtype
    uint8, which is the same interleaved R, G, B, A layout as a flat buffer of
    width * height * 4 samples. Coordinates outside of the grid are rejected
    with OutOfRangeAccess; they are never clamped.
    """

    __slots__ = ("_data",)

    def __init__(self, width, height, fill=(0, 0, 0, 255)):
        if not isinstance(width, (int, np.integer)) or width <= 0:
            raise InvalidDimension(f"width must be a positive integer, got {width}")
        if not isinstance(height, (int, np.integer)) or height <= 0:
            raise InvalidDimension(f"height must be a positive integer, got {height}")
        self._data = np.empty((int(height), int(width), 4), dtype=np.uint8)
        self._data[:, :] = self._check_pixel(fill)

    @staticmethod
    def from_array(array):
        """
        Creates a grid from a numpy array.

        Args:
            array (numpy.ndarray): A HxW grayscale, HxWx3 RGB or HxWx4 RGBA array.

        Returns:
            PixelGrid: A grid holding a copy of the pixels.
        """
        array = np.asarray(array)
        if array.ndim == 2:
            array = np.stack([array] * 3, axis=-1)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise InvalidDimension(f"unsupported array shape {array.shape}")
        height, width = array.shape[:2]
        grid = PixelGrid(width, height)
        grid._data[:, :, : array.shape[2]] = np.clip(array, 0, 255).astype(np.uint8)
        return grid

    @staticmethod
    def from_image(image):
        """Creates a grid from a PIL image, converting it to RGBA first."""
        if not isinstance(image, Image.Image):
            raise ValueError("image must be a PIL Image object")
        return PixelGrid.from_array(np.array(image.convert("RGBA")))

    def to_image(self):
        return Image.fromarray(self._data.copy(), "RGBA")

    def copy(self):
        grid = PixelGrid(self.width, self.height)
        grid._data[:] = self._data
        return grid

    @property
    def width(self):
        return self._data.shape[1]

    @property
    def height(self):
        return self._data.shape[0]

    @property
    def size(self):
        return (self.width, self.height)

    @property
    def data(self):
        """The underlying (height, width, 4) uint8 array."""
        return self._data

    def _check_bounds(self, x, y):
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfRangeAccess(
                f"pixel ({x}, {y}) is outside of a {self.width}x{self.height} grid"
            )

    @staticmethod
    def _check_pixel(pixel):
        if len(pixel) != 4 or any(not 0 <= int(value) <= 255 for value in pixel):
            raise ValueError(f"pixel must be four values in 0..255, got {pixel}")
        return [int(value) for value in pixel]

    def get(self, x, y):
        """Returns the pixel at (x, y) as an (r, g, b, a) tuple."""
        self._check_bounds(x, y)
        r, g, b, a = self._data[y, x]
        return (int(r), int(g), int(b), int(a))

    def set(self, x, y, pixel):
        """Overwrites the pixel at (x, y) with an (r, g, b, a) tuple."""
        self._check_bounds(x, y)
        self._data[y, x] = self._check_pixel(pixel)

    def __eq__(self, other):
        if not isinstance(other, PixelGrid):
            return False
        return np.array_equal(self._data, other._data)

    def __str__(self):
        return f"PixelGrid(width={self.width}, height={self.height})"

    def __repr__(self):
        return str(self)
