# (c) 2024 Niels Provos
#
"""
Errors raised by the stereogram engine.

All of them are recoverable: a caller that receives one should keep the
previously rendered output and report a generic failure.
"""


class StereogramError(Exception):
    """Base class for all errors raised while building a stereogram."""


class InvalidDimension(StereogramError, ValueError):
    """A grid, pattern or disparity size is degenerate or inconsistent."""


class OutOfRangeAccess(StereogramError, IndexError):
    """A pixel coordinate lies outside of the grid."""


class UnsupportedPatternSource(StereogramError, ValueError):
    """An external image could not be decoded or is missing."""
