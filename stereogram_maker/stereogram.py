# (c) 2024 Niels Provos
#
"""
Synthesize autostereograms from a depth field and a pattern.

Each row is built from left to right. The first min_disparity columns are
seeded from the pattern, shifted by the local depth offset. Every later pixel
copies the pixel min_disparity - offset columns to its left in the row that is
being built. A larger offset shortens the local repeat period, which the
viewer perceives as the surface coming closer.
"""

import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from .errors import InvalidDimension
from .grid import PixelGrid
from .utils import timeit

MIN_DISPARITY_RATIO = 0.15
MAX_DISPARITY_RATIO = 0.2


def compute_disparity(
    width, min_ratio=MIN_DISPARITY_RATIO, max_ratio=MAX_DISPARITY_RATIO
):
    """
    Computes the disparity bounds for an output width.

    Args:
        width (int): The output width in pixels.

    Returns:
        tuple: (min_disparity, max_disparity). min_disparity is also the pattern tile width.
    """
    min_disparity = math.floor(min_ratio * width)
    max_disparity = math.floor(max_ratio * width)
    if min_disparity <= 0:
        raise InvalidDimension(
            f"Output width {width} is too small for a positive minimum disparity"
        )
    return min_disparity, max_disparity


def compute_offsets(depth, min_disparity, max_disparity, disparity_scale):
    """
    Computes the per pixel disparity offset from the red channel of a depth grid.

    Offsets are floored, never rounded.

    Args:
        depth (PixelGrid): The depth field.

    Returns:
        numpy.ndarray: A (height, width) array of integer offsets.
    """
    depth_value = depth.data[:, :, 0].astype(np.float64) / 255
    offsets = np.floor(
        depth_value * (max_disparity - min_disparity) * disparity_scale
    )
    return offsets.astype(np.int64)


def validate_parameters(depth, pattern, min_disparity, max_disparity, disparity_scale):
    if min_disparity <= 0:
        raise InvalidDimension(f"min_disparity must be positive, got {min_disparity}")
    if max_disparity < min_disparity:
        raise InvalidDimension(
            f"max_disparity {max_disparity} is smaller than min_disparity {min_disparity}"
        )
    if disparity_scale <= 0:
        raise InvalidDimension(f"disparity_scale must be positive, got {disparity_scale}")
    # the largest offset must still point at an already written pixel
    if math.floor((max_disparity - min_disparity) * disparity_scale) >= min_disparity:
        raise InvalidDimension(
            f"Disparity range {min_disparity}..{max_disparity} with scale "
            f"{disparity_scale} exceeds the pattern period"
        )
    if pattern.width < min_disparity:
        raise InvalidDimension(
            f"Pattern width {pattern.width} is narrower than min_disparity {min_disparity}"
        )
    if pattern.height < depth.height:
        raise InvalidDimension(
            f"Pattern height {pattern.height} is smaller than the output height {depth.height}"
        )


def _synthesize_band(output, pattern, offsets, min_disparity):
    """Fills a band of rows in place; columns strictly from left to right."""
    rows = np.arange(output.shape[0])
    for x in range(output.shape[1]):
        offset = offsets[:, x]
        if x < min_disparity:
            output[:, x] = pattern[rows, (x + offset) % min_disparity]
        else:
            output[:, x] = output[rows, x + offset - min_disparity]


@timeit
def synthesize(
    depth, pattern, min_disparity, max_disparity, disparity_scale=1.0, workers=1
):
    """
    Builds an autostereogram.

    Args:
        depth (PixelGrid): The depth field, 255 in the red channel is nearest.
        pattern (PixelGrid): The pattern, at least min_disparity wide and as tall as depth.
        min_disparity (int): The pattern period at the farthest depth.
        max_disparity (int): The disparity used to scale the offsets.
        disparity_scale (float): Multiplier for the depth effect.
        workers (int): Number of threads that build bands of rows in parallel.

    Returns:
        PixelGrid: The autostereogram with the size of the depth field.
    """
    validate_parameters(depth, pattern, min_disparity, max_disparity, disparity_scale)

    offsets = compute_offsets(depth, min_disparity, max_disparity, disparity_scale)
    output = PixelGrid(depth.width, depth.height)
    out = output.data
    pat = pattern.data[: depth.height]

    workers = max(1, min(workers, depth.height))
    if workers == 1:
        _synthesize_band(out, pat, offsets, min_disparity)
        return output

    bounds = np.linspace(0, depth.height, workers + 1).astype(int)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(
                _synthesize_band,
                out[start:end],
                pat[start:end],
                offsets[start:end],
                min_disparity,
            )
            for start, end in zip(bounds[:-1], bounds[1:])
        ]
        for future in futures:
            future.result()

    return output
