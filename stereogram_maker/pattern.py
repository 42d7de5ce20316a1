# (c) 2024 Niels Provos
#
"""
Generate tileable pattern strips for autostereograms.

A pattern strip is tile_width pixels wide, where tile_width equals the minimum
disparity of the stereogram. It is either derived from an image supplied by
the user or drawn procedurally. Procedural patterns wrap around all four edges
so that repeating them never produces a visible seam.
"""

import math
from enum import Enum

import numpy as np
from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFont

from . import constants as C
from .errors import InvalidDimension, UnsupportedPatternSource
from .grid import PixelGrid
from .utils import load_image, timeit

# the shape counts are tuned for a strip of this size and scaled by area
REFERENCE_STRIP_SIZE = (256, 1024)
REFERENCE_SHAPE_COUNT = 900

NOISE_CELL_SIZE = 8
NOISE_MAX_INTENSITY = 0.7
SHADOW_OFFSET = 2
SHADOW_LIGHT = (0, 0, 0, 51)
SHADOW_DARK = (255, 255, 255, 26)


class PatternKind(Enum):
    IMAGE = C.PATTERN_IMAGE
    NOISE = C.PATTERN_NOISE
    CONFETTI = C.PATTERN_CONFETTI
    SPRINKLES = C.PATTERN_SPRINKLES


def _parse_color(color):
    if isinstance(color, str):
        return ImageColor.getrgb(color)[:3]
    if len(color) < 3:
        raise ValueError(f"Invalid color {color}")
    return tuple(int(value) for value in color[:3])


def _hsl(hue, saturation, lightness):
    return ImageColor.getrgb(f"hsl({hue:.2f}, {saturation:.2f}%, {lightness:.2f}%)")


def gradient_colors(colors=None, rng=None):
    """
    Returns the three color stops of the background gradient.

    Args:
        colors (list, optional): Three PIL color specifications. If omitted, the
            colors are derived from one random hue with the other two stops
            rotated by 120 and 240 degrees.
        rng (numpy.random.Generator, optional): The random number generator.

    Returns:
        list: Three (r, g, b) tuples.
    """
    if colors is not None:
        if len(colors) != 3:
            raise ValueError("A gradient needs exactly three colors")
        return [_parse_color(color) for color in colors]

    if rng is None:
        rng = np.random.default_rng()
    hue = rng.random() * 360
    return [
        _hsl(hue, 80 + rng.random() * 20, 50),
        _hsl((hue + 120) % 360, 80 + rng.random() * 20, 90),
        _hsl((hue + 240) % 360, 80 + rng.random() * 20, 50),
    ]


def create_gradient(width, height, colors=None, rng=None):
    """Creates a vertical RGB gradient with stops at 0, 0.5 and 1."""
    stops = gradient_colors(colors, rng)
    positions = (np.arange(height) + 0.5) / height
    column = np.stack(
        [np.interp(positions, [0.0, 0.5, 1.0], [c[i] for c in stops]) for i in range(3)],
        axis=-1,
    )
    gradient = np.repeat(column[:, np.newaxis, :], width, axis=1)
    return Image.fromarray(np.round(gradient).astype(np.uint8), "RGB")


def wrapped_offsets(width, height):
    """The nine translations that make a drawing wrap around a width x height torus."""
    return [(dx, dy) for dy in (0, -height, height) for dx in (0, -width, width)]


def _shape_count(width, height, count):
    if count is not None:
        return count
    reference_area = REFERENCE_STRIP_SIZE[0] * REFERENCE_STRIP_SIZE[1]
    return max(1, round(REFERENCE_SHAPE_COUNT * width * height / reference_area))


def _random_color(rng):
    hue = rng.random() * 360
    saturation = 50 + rng.random() * 50
    lightness = 40 + rng.random() * 40
    return _hsl(hue, saturation, lightness) + (255,)


def draw_circle_wrapped(draw, size, center, radius, fill):
    width, height = size
    for dx, dy in wrapped_offsets(width, height):
        x, y = center[0] + dx, center[1] + dy
        draw.ellipse([x - radius, y - radius, x + radius, y + radius], fill=fill)


def draw_line_wrapped(image, start, end, thickness, fill):
    """
    Draws a line with round end caps at all wrapped positions.

    The stroke is drawn opaque into a mask first and the color is blended
    through it once, so a translucent fill does not darken where the line
    body and its caps overlap.
    """
    width, height = image.size
    cap = thickness / 2
    mask = Image.new("L", image.size, 0)
    draw = ImageDraw.Draw(mask)
    for dx, dy in wrapped_offsets(width, height):
        x1, y1 = start[0] + dx, start[1] + dy
        x2, y2 = end[0] + dx, end[1] + dy
        draw.line([(x1, y1), (x2, y2)], fill=255, width=max(1, round(thickness)))
        for x, y in ((x1, y1), (x2, y2)):
            draw.ellipse([x - cap, y - cap, x + cap, y + cap], fill=255)

    alpha = fill[3] if len(fill) > 3 else 255
    if alpha < 255:
        mask = mask.point(lambda value: value * alpha // 255)
    bbox = mask.getbbox()
    if bbox:
        image.paste(tuple(fill[: len(image.getbands())]), bbox, mask.crop(bbox))


def generate_image_pattern(source, tile_width, height):
    """
    Fills a tile_width x height strip with copies of the source image.

    The source is scaled to tile_width keeping its aspect ratio and repeated
    vertically.
    """
    if source is None:
        raise UnsupportedPatternSource("The image pattern requires a source image")
    image = load_image(source)
    tile_height = max(1, round(tile_width * image.height / image.width))
    tile = image.resize((tile_width, tile_height), Image.LANCZOS)

    strip = Image.new("RGBA", (tile_width, height), (0, 0, 0, 0))
    for y in range(0, height, tile_height):
        strip.paste(tile, (0, y))
    return strip


def generate_noise_pattern(tile_width, height, colors=None, rng=None):
    """
    Generates blocky grayscale noise tinted by a colorful gradient.

    The gradient is combined with the overlay blend mode so that it colors
    the noise without washing out its texture.
    """
    if rng is None:
        rng = np.random.default_rng()

    cells_x = math.ceil(tile_width / NOISE_CELL_SIZE)
    cells_y = math.ceil(height / NOISE_CELL_SIZE)
    cells = np.floor(rng.random((cells_y, cells_x)) * NOISE_MAX_INTENSITY * 255)
    noise = np.repeat(np.repeat(cells, NOISE_CELL_SIZE, axis=0), NOISE_CELL_SIZE, axis=1)
    noise = noise[:height, :tile_width].astype(np.uint8)

    noise_image = Image.fromarray(noise, "L").convert("RGB")
    gradient = create_gradient(tile_width, height, colors, rng)
    return ImageChops.overlay(noise_image, gradient).convert("RGBA")


def generate_confetti_pattern(
    tile_width, height, colors=None, rng=None, dark_mode=False, count=None
):
    """
    Generates randomly colored circles with soft shadows on a gradient.

    Every circle is drawn at all nine wrapped positions so the strip tiles
    seamlessly in both directions.
    """
    if rng is None:
        rng = np.random.default_rng()

    image = create_gradient(tile_width, height, colors, rng)
    draw = ImageDraw.Draw(image, "RGBA")
    shadow = SHADOW_DARK if dark_mode else SHADOW_LIGHT
    size = (tile_width, height)

    for _ in range(_shape_count(tile_width, height, count)):
        x = rng.random() * tile_width
        y = rng.random() * height
        radius = 4 + rng.random() * 16
        fill = _random_color(rng)

        draw_circle_wrapped(
            draw, size, (x + SHADOW_OFFSET, y + SHADOW_OFFSET), radius, shadow
        )
        draw_circle_wrapped(draw, size, (x, y), radius, fill)

    return image.convert("RGBA")


def generate_sprinkles_pattern(
    tile_width, height, colors=None, rng=None, dark_mode=False, count=None
):
    """Generates short randomly angled sprinkles with round end caps on a gradient."""
    if rng is None:
        rng = np.random.default_rng()

    image = create_gradient(tile_width, height, colors, rng)
    shadow = SHADOW_DARK if dark_mode else SHADOW_LIGHT

    for _ in range(_shape_count(tile_width, height, count)):
        x1 = rng.random() * tile_width
        y1 = rng.random() * height
        length = 8 + rng.random() * 16
        angle = rng.random() * 2 * math.pi
        x2 = x1 + math.cos(angle) * length
        y2 = y1 + math.sin(angle) * length
        thickness = (1.5 + rng.random() * 4.5) * 1.5
        fill = _random_color(rng)

        draw_line_wrapped(
            image,
            (x1 + SHADOW_OFFSET, y1 + SHADOW_OFFSET),
            (x2 + SHADOW_OFFSET, y2 + SHADOW_OFFSET),
            thickness,
            shadow,
        )
        draw_line_wrapped(image, (x1, y1), (x2, y2), thickness, fill)

    return image.convert("RGBA")


def _bold_font(size):
    try:
        return ImageFont.truetype("DejaVuSans-Bold.ttf", size)
    except OSError:
        return ImageFont.load_default(size=size)


def stamp_watermark(image, text, font_size=None):
    """
    Stamps text at the top-left and the bottom-right corner of an image.

    The text is filled white and outlined black to stay legible on any
    background. It is applied once per strip, so the repeated pattern shows
    it as a non-repeating mark at the tile boundary.
    """
    if not text:
        return image

    image = image.copy()
    draw = ImageDraw.Draw(image)
    if font_size is None:
        font_size = max(8, image.width // 8)
    font = _bold_font(font_size)
    stroke = max(1, font_size // 10)
    margin = max(2, font_size // 4)

    left, top, right, bottom = draw.textbbox((0, 0), text, font=font, stroke_width=stroke)
    positions = [
        (margin - left, margin - top),
        (image.width - margin - right, image.height - margin - bottom),
    ]
    for position in positions:
        draw.text(
            position,
            text,
            font=font,
            fill=(255, 255, 255, 255),
            stroke_width=stroke,
            stroke_fill=(0, 0, 0, 255),
        )
    return image


def tile_pattern(strip, width, height):
    """
    Repeats a pattern strip to fill a width x height grid.

    Args:
        strip (PixelGrid): The pattern strip.
        width (int): The output width.
        height (int): The output height.

    Returns:
        PixelGrid: The tiled pattern.
    """
    if width <= 0 or height <= 0:
        raise InvalidDimension(f"Cannot tile a pattern to {width}x{height}")
    reps_y = math.ceil(height / strip.height)
    reps_x = math.ceil(width / strip.width)
    tiled = np.tile(strip.data, (reps_y, reps_x, 1))
    return PixelGrid.from_array(tiled[:height, :width])


@timeit
def generate_pattern(
    kind,
    tile_width,
    height,
    source=None,
    colors=None,
    watermark=None,
    seed=None,
    dark_mode=False,
):
    """
    Generates a pattern strip of the requested kind.

    Args:
        kind (PatternKind): The kind of pattern.
        tile_width (int): The width of the strip, equal to the minimum disparity.
        height (int): The height of the strip.
        source (optional): The source image for PatternKind.IMAGE.
        colors (list, optional): Three gradient colors for procedural patterns.
        watermark (str, optional): Text to stamp onto the strip.
        seed (int, optional): Seed for the procedural patterns.
        dark_mode (bool, optional): Use light shadows suited to dark backgrounds.

    Returns:
        PixelGrid: The tile_width x height pattern strip.
    """
    if not isinstance(kind, PatternKind):
        raise ValueError(f"kind must be a PatternKind, got {kind}")
    if tile_width <= 0 or height <= 0:
        raise InvalidDimension(f"Invalid pattern size {tile_width}x{height}")

    rng = np.random.default_rng(seed)
    generators = {
        PatternKind.IMAGE: lambda: generate_image_pattern(source, tile_width, height),
        PatternKind.NOISE: lambda: generate_noise_pattern(
            tile_width, height, colors=colors, rng=rng
        ),
        PatternKind.CONFETTI: lambda: generate_confetti_pattern(
            tile_width, height, colors=colors, rng=rng, dark_mode=dark_mode
        ),
        PatternKind.SPRINKLES: lambda: generate_sprinkles_pattern(
            tile_width, height, colors=colors, rng=rng, dark_mode=dark_mode
        ),
    }

    strip = generators[kind]()
    strip = stamp_watermark(strip, watermark)
    return PixelGrid.from_image(strip)
