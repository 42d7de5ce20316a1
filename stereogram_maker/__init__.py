"""Stereogram Maker - turn photos into autostereograms.

This package provides tools for:
- Rendering an estimated depth map into an output sized depth field
- Generating tileable patterns from images or procedurally
- Synthesizing autostereograms from a depth field and a pattern
- Rendering in the background with coalesced requests
"""

__version__ = "0.1.0"
__author__ = "Niels Provos"
__email__ = "niels@provos.org"
__license__ = "AGPL-3.0-or-later"

from .controller import StereogramEngine
from .depth_field import DepthPolicy, render_depth_field
from .errors import (
    InvalidDimension,
    OutOfRangeAccess,
    StereogramError,
    UnsupportedPatternSource,
)
from .grid import PixelGrid
from .pattern import PatternKind, generate_pattern, tile_pattern
from .regenerate import Regenerator
from .settings import OutputMode, StereogramSettings
from .stereogram import compute_disparity, synthesize

__all__ = [
    "StereogramEngine",
    "DepthPolicy",
    "render_depth_field",
    "InvalidDimension",
    "OutOfRangeAccess",
    "StereogramError",
    "UnsupportedPatternSource",
    "PixelGrid",
    "PatternKind",
    "generate_pattern",
    "tile_pattern",
    "Regenerator",
    "OutputMode",
    "StereogramSettings",
    "compute_disparity",
    "synthesize",
]
