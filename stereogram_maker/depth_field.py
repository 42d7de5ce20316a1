# (c) 2024 Niels Provos
#
"""
Render an externally estimated depth map into an output sized depth field.

The depth map may have any resolution. It is scaled to fit the output while
keeping its aspect ratio and the remaining area is filled according to a
DepthPolicy:

 - clamp: the image fills the frame; its outermost columns are extended into
   the left and right margins so there is no depth jump at the border.
 - cutout: the image floats on a white (near) background, so it appears
   recessed into the page.
 - popout: the image floats on a black (far) background, so it appears to
   pop out of the page.
"""

import math
from enum import Enum

import cv2
import numpy as np
from PIL import Image

from . import constants as C
from .errors import InvalidDimension
from .grid import PixelGrid

DEFAULT_PADDING_FRACTION = 0.125
MIN_PADDING_FRACTION = 0.10
MAX_PADDING_FRACTION = 0.15
EDGE_GRAY = 128


class DepthPolicy(Enum):
    CLAMP = C.POLICY_CLAMP
    CUTOUT = C.POLICY_CUTOUT
    POPOUT = C.POLICY_POPOUT


BACKGROUND = {
    DepthPolicy.CLAMP: 0,
    DepthPolicy.CUTOUT: 255,
    DepthPolicy.POPOUT: 0,
}


def as_depth_array(depth):
    """
    Converts a depth raster into a 2D uint8 array.

    Args:
        depth (numpy.ndarray, PIL.Image.Image or PixelGrid): The depth raster. Color
            input is reduced to its luma, non-uint8 arrays are normalized to 0..255.

    Returns:
        numpy.ndarray: The depth values.
    """
    if isinstance(depth, PixelGrid):
        depth = depth.to_image()
    if isinstance(depth, Image.Image):
        return np.array(depth.convert("L"))

    depth = np.asarray(depth)
    if depth.ndim == 3:
        if depth.shape[2] == 4:
            depth = depth[:, :, :3]
        depth = cv2.cvtColor(np.ascontiguousarray(depth), cv2.COLOR_RGB2GRAY)
    if depth.ndim != 2 or depth.size == 0:
        raise InvalidDimension(f"Invalid depth map shape {depth.shape}")
    if depth.dtype != np.uint8:
        depth = cv2.normalize(
            depth.astype(np.float32), None, 0, 255, cv2.NORM_MINMAX, cv2.CV_8U
        )
    return depth


def fit_depth(depth, width, height, padding=0):
    """
    Scales the depth map uniformly to fit into (width - padding, height - padding).

    Returns:
        tuple: The resized depth array and its (left, top) position when centered.
    """
    src_height, src_width = depth.shape
    scale = min((width - padding) / src_width, (height - padding) / src_height)
    if scale <= 0:
        raise InvalidDimension(
            f"Cannot fit a {src_width}x{src_height} depth map into {width}x{height} "
            f"with padding {padding}"
        )

    scaled_width = min(width, max(1, round(src_width * scale)))
    scaled_height = min(height, max(1, round(src_height * scale)))
    interpolation = cv2.INTER_AREA if scale < 1 else cv2.INTER_LINEAR
    resized = cv2.resize(
        depth, (scaled_width, scaled_height), interpolation=interpolation
    )

    left = (width - scaled_width) // 2
    top = (height - scaled_height) // 2
    return resized, left, top


def edge_gradient(width, left, right):
    """
    Returns the horizontal multiplier ramp used to soften extended edges.

    The ramp is mid-gray at both frame edges and full white across the
    columns [left, right) that hold the actual image content.
    """
    ramp = np.full(width, 255.0, dtype=np.float32)
    if left > 0:
        ramp[:left] = np.linspace(EDGE_GRAY, 255, left, endpoint=False)
    right_margin = width - right
    if right_margin > 0:
        ramp[right:] = np.linspace(255, EDGE_GRAY, right_margin + 1)[1:]
    return ramp


def render_depth_field(
    depth,
    width,
    height,
    policy=DepthPolicy.CLAMP,
    near_is_bright=True,
    padding_fraction=DEFAULT_PADDING_FRACTION,
    soften_edges=True,
):
    """
    Renders a depth map into a width x height depth field.

    Args:
        depth: The estimated depth raster, see as_depth_array.
        width (int): The output width.
        height (int): The output height.
        policy (DepthPolicy): How to fill the area not covered by the depth map.
        near_is_bright (bool): Whether 255 in the depth map means near. When False
            the depth map is inverted so the depth field always uses 255 for near.
        padding_fraction (float): Padding as a fraction of the width for cutout and popout.
        soften_edges (bool): For clamp, multiply the edge gradient over the frame.

    Returns:
        PixelGrid: The depth field with the depth in the R, G and B channels.
    """
    if not isinstance(policy, DepthPolicy):
        raise ValueError(f"policy must be a DepthPolicy, got {policy}")
    if width <= 0 or height <= 0:
        raise InvalidDimension(f"Invalid output size {width}x{height}")
    if not MIN_PADDING_FRACTION <= padding_fraction <= MAX_PADDING_FRACTION:
        raise ValueError(
            f"padding_fraction must be between {MIN_PADDING_FRACTION} and {MAX_PADDING_FRACTION}"
        )

    depth = as_depth_array(depth)
    if not near_is_bright:
        depth = 255 - depth

    background = BACKGROUND[policy]
    padding = 0 if policy == DepthPolicy.CLAMP else math.floor(padding_fraction * width)

    resized, left, top = fit_depth(depth, width, height, padding)
    scaled_height, scaled_width = resized.shape
    right = width - scaled_width - left
    bottom = height - scaled_height - top

    if policy == DepthPolicy.CLAMP:
        frame = cv2.copyMakeBorder(resized, 0, 0, left, right, cv2.BORDER_REPLICATE)
        frame = cv2.copyMakeBorder(
            frame, top, bottom, 0, 0, cv2.BORDER_CONSTANT, value=background
        )
        if soften_edges:
            ramp = edge_gradient(width, left, left + scaled_width)
            frame = np.round(frame.astype(np.float32) * ramp / 255).astype(np.uint8)
    else:
        frame = cv2.copyMakeBorder(
            resized, top, bottom, left, right, cv2.BORDER_CONSTANT, value=background
        )

    return PixelGrid.from_array(frame)
