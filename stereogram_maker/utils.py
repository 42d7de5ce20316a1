# (c) 2024 Niels Provos
#

import io
import time
from functools import wraps
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import UnsupportedPatternSource


def timeit(func):
    @wraps(func)
    def timeit_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        end_time = time.perf_counter()
        total_time_ms = (end_time - start_time) * 1000.0
        print(f"Function {func.__name__} took {total_time_ms:.1f} ms")
        return result

    return timeit_wrapper


def filename_add_version(filename):
    filename = Path(filename)
    last_component = filename.stem.split("_")[-1]
    if last_component.startswith("v") and last_component[1:].isdigit():
        stem = "_".join(filename.stem.split("_")[:-1])
        version = int(last_component[1:])
        version += 1
        image_filename = f"{stem}_v{version}.png"
    else:
        image_filename = f"{filename.stem}_v2.png"

    return str(filename.parent / image_filename)


def unused_filename(filename):
    """
    Returns the filename or, if it already exists, the next versioned filename
    that does not exist yet.
    """
    filename = str(filename)
    while Path(filename).exists():
        filename = filename_add_version(filename)
    return filename


def load_image(source):
    """
    Loads an external image.

    Args:
        source (str, Path, bytes or PIL.Image.Image): A file path, encoded image bytes or an image.

    Returns:
        PIL.Image.Image: The decoded image in RGBA mode.

    Raises:
        UnsupportedPatternSource: If the image cannot be found or decoded.
    """
    if isinstance(source, Image.Image):
        return source.convert("RGBA")
    if isinstance(source, np.ndarray):
        return Image.fromarray(source).convert("RGBA")
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        with Image.open(source) as image:
            return image.convert("RGBA")
    except (FileNotFoundError, UnidentifiedImageError, OSError) as e:
        raise UnsupportedPatternSource(f"Cannot decode image {source}: {e}") from e


def load_depth_map(source):
    """Loads a depth map image as a 2D uint8 array of its luma."""
    image = load_image(source)
    return np.array(image.convert("L"))


def save_image(image, filename):
    """
    Saves a grid or image as a lossless PNG file.

    Args:
        image (PixelGrid or PIL.Image.Image): The raster to save.
        filename (str or Path): The output file name.

    Returns:
        str: The file name that was written.
    """
    if not isinstance(image, Image.Image):
        image = image.to_image()
    filename = Path(filename)
    if not filename.parent.exists():
        filename.parent.mkdir(parents=True)
    image.save(str(filename), format="PNG", compress_level=1)
    return str(filename)
