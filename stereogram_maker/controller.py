# (c) 2024 Niels Provos

import threading
from pathlib import Path

from PIL import Image, ImageOps

from .depth_field import as_depth_array, render_depth_field
from .errors import InvalidDimension
from .grid import PixelGrid
from .pattern import generate_pattern, tile_pattern
from .settings import OutputMode, StereogramSettings
from .stereogram import compute_disparity, synthesize
from .utils import load_depth_map, load_image, save_image, unused_filename


class StereogramEngine:
    """
    Holds the inputs of a stereogram and renders outputs from them.

    The depth field is kept until a new source is set or the depth settings
    change. The pattern is kept until the pattern settings change. The
    autostereogram itself is recomputed in full on every render.
    """

    __slots__ = (
        "_lock",
        "_width",
        "_height",
        "source_image",
        "depth_map",
        "depth_model",
        "_depth_cache",
        "_pattern_cache",
    )

    def __init__(self, width=1024, height=768, depth_model=None):
        # guards the inputs and caches; reentrant so render can call the grid accessors
        self._lock = threading.RLock()

        self._width = None
        self._height = None
        self.width = width
        self.height = height

        self.source_image = None  # PIL image
        self.depth_map = None  # numpy array
        self.depth_model = depth_model  # DepthEstimationModel()

        # no caching across sources or output sizes
        self._depth_cache = None
        self._pattern_cache = None

    @property
    def width(self):
        return self._width

    @width.setter
    def width(self, value):
        if not isinstance(value, int) or value <= 0:
            raise InvalidDimension("width must be a positive integer")
        with self._lock:
            self._width = value
            self._depth_cache = None
            self._pattern_cache = None

    @property
    def height(self):
        return self._height

    @height.setter
    def height(self, value):
        if not isinstance(value, int) or value <= 0:
            raise InvalidDimension("height must be a positive integer")
        with self._lock:
            self._height = value
            self._depth_cache = None
            self._pattern_cache = None

    @property
    def size(self):
        return (self._width, self._height)

    def disparity(self):
        """Returns (min_disparity, max_disparity) for the current output width."""
        return compute_disparity(self._width)

    def set_source(self, image, depth_map=None, progress_callback=None):
        """
        Sets the source image and its depth map.

        Args:
            image: The source image as a path, bytes, PIL image or numpy array.
            depth_map (optional): The depth map as a path, PIL image or numpy array.
                If omitted the depth is estimated with the depth model.
            progress_callback (callable, optional): Reports depth estimation progress.
        """
        image = load_image(image)

        if depth_map is None:
            if self.depth_model is None:
                from .depth import DepthEstimationModel

                self.depth_model = DepthEstimationModel()
            depth_map = self.depth_model.depth_map(
                image, progress_callback=progress_callback
            )
        elif isinstance(depth_map, (str, Path, bytes)):
            depth_map = load_depth_map(depth_map)

        with self._lock:
            self.source_image = image
            self.depth_map = as_depth_array(depth_map)
            self._depth_cache = None

    def depth_grid(self, settings: StereogramSettings):
        with self._lock:
            if self.depth_map is None:
                raise ValueError("No depth map available, call set_source first")
            key = settings.depth_key()
            if self._depth_cache is None or self._depth_cache[0] != key:
                grid = render_depth_field(
                    self.depth_map,
                    self._width,
                    self._height,
                    policy=settings.depth_policy,
                    near_is_bright=settings.near_is_bright,
                )
                self._depth_cache = (key, grid)
            return self._depth_cache[1]

    def pattern_grid(self, settings: StereogramSettings):
        with self._lock:
            key = settings.pattern_key()
            if self._pattern_cache is None or self._pattern_cache[0] != key:
                tile_width, _ = self.disparity()
                strip = generate_pattern(
                    settings.pattern_kind,
                    tile_width,
                    self._height,
                    source=settings.pattern_source,
                    colors=settings.gradient_colors,
                    watermark=settings.watermark,
                    seed=settings.seed,
                    dark_mode=settings.dark_mode,
                )
                grid = tile_pattern(strip, self._width, self._height)
                self._pattern_cache = (key, grid)
            return self._pattern_cache[1]

    def source_grid(self):
        """Returns the source image letterboxed into the output size."""
        with self._lock:
            if self.source_image is None:
                raise ValueError("No source image available, call set_source first")
            background = Image.new("RGBA", self.size, (0, 0, 0, 255))
            fitted = ImageOps.contain(self.source_image, self.size)
            left = (self._width - fitted.width) // 2
            top = (self._height - fitted.height) // 2
            background.alpha_composite(fitted, (left, top))
            return PixelGrid.from_image(background)

    def render(self, settings: StereogramSettings):
        """
        Renders the output selected by settings.output_mode.

        Returns:
            PixelGrid: The autostereogram, the depth field or the source image.
        """
        with self._lock:
            if settings.output_mode == OutputMode.SOURCE_IMAGE:
                return self.source_grid()

            depth = self.depth_grid(settings)
            if settings.output_mode == OutputMode.DEPTH_MAP:
                return depth.copy()

            min_disparity, max_disparity = self.disparity()
            pattern = self.pattern_grid(settings)
            return synthesize(
                depth,
                pattern,
                min_disparity,
                max_disparity,
                settings.disparity_scale,
                workers=settings.workers,
            )

    @staticmethod
    def save(grid, filename, overwrite=False):
        """Saves a rendered grid as PNG, adding a version suffix instead of overwriting."""
        if not overwrite:
            filename = unused_filename(filename)
        filename = save_image(grid, filename)
        print(f"Saved {filename}")
        return filename
