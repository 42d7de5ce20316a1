#!/usr/bin/env python3
# (c) 2024 Niels Provos
#

import argparse
import os
import sys
from pathlib import Path

from . import constants as C
from .controller import StereogramEngine
from .depth_field import DepthPolicy
from .errors import StereogramError
from .pattern import PatternKind
from .settings import OutputMode, StereogramSettings


def settings_from_args(args):
    """Builds the render settings from a settings file and command line overrides."""
    if args.settings:
        settings = StereogramSettings.from_file(args.settings)
    else:
        settings = StereogramSettings()

    if args.pattern is not None:
        settings.pattern_kind = PatternKind(args.pattern)
    if args.pattern_image is not None:
        settings.pattern_source = args.pattern_image
        if args.pattern is None:
            settings.pattern_kind = PatternKind.IMAGE
    if args.colors is not None:
        settings.gradient_colors = args.colors
    if args.scale is not None:
        settings.disparity_scale = args.scale
    if args.policy is not None:
        settings.depth_policy = DepthPolicy(args.policy)
    if args.far_is_bright:
        settings.near_is_bright = False
    if args.output_mode is not None:
        settings.output_mode = OutputMode(args.output_mode)
    if args.watermark is not None:
        settings.watermark = args.watermark
    if args.seed is not None:
        settings.seed = args.seed
    if args.dark:
        settings.dark_mode = True
    if args.workers is not None:
        settings.workers = args.workers
    return settings


def create_parser():
    parser = argparse.ArgumentParser(
        description="Create an autostereogram from an image and its depth map"
    )
    parser.add_argument("-i", "--image", type=str, help="Path to the input image")
    parser.add_argument(
        "-d",
        "--depth",
        type=str,
        help="Path to a depth map for the image. Skips depth estimation.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=C.OUTPUT_FILE,
        help="Path of the PNG file to write",
    )
    parser.add_argument(
        "-p",
        "--pattern",
        type=str,
        choices=[kind.value for kind in PatternKind],
        help="Pattern to repeat in the stereogram",
    )
    parser.add_argument(
        "--pattern-image", type=str, help="Image to use for the image pattern"
    )
    parser.add_argument(
        "--colors",
        type=str,
        nargs=3,
        help="Three gradient colors for procedural patterns, e.g. red '#00ff00' 'hsl(240, 90%%, 50%%)'",
    )
    parser.add_argument(
        "-s", "--scale", type=float, help="Disparity scale between 0.1 and 1.75"
    )
    parser.add_argument(
        "--policy",
        type=str,
        choices=[policy.value for policy in DepthPolicy],
        help="How to treat the area around the depth map",
    )
    parser.add_argument(
        "--far-is-bright",
        action="store_true",
        help="The depth map uses bright values for far objects",
    )
    parser.add_argument(
        "--output-mode",
        type=str,
        choices=[mode.value for mode in OutputMode],
        help="What to write to the output file",
    )
    parser.add_argument("-w", "--watermark", type=str, help="Watermark text")
    parser.add_argument("--width", type=int, default=1024, help="Output width")
    parser.add_argument("--height", type=int, default=768, help="Output height")
    parser.add_argument("--seed", type=int, help="Seed for procedural patterns")
    parser.add_argument(
        "--dark", action="store_true", help="Use shadows suited for dark patterns"
    )
    parser.add_argument("--workers", type=int, help="Threads used for synthesis")
    parser.add_argument("--settings", type=str, help="Load settings from a JSON file")
    parser.add_argument(
        "--save-settings", type=str, help="Save the effective settings to a JSON file"
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Overwrite the output file instead of adding a version suffix",
    )
    return parser


def main(argv=None):
    os.environ["DISABLE_TELEMETRY"] = "YES"
    os.environ["PYTORCH_ENABLE_MPS_FALLBACK"] = "1"

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.image:
        print("Please provide the path to the input image using --image or -i option.")
        return 2

    try:
        settings = settings_from_args(args)
    except (ValueError, OSError) as e:
        print(f"Invalid settings: {e}")
        return 2

    if args.save_settings:
        try:
            filename = settings.to_file(args.save_settings)
        except OSError as e:
            print(f"Cannot save settings: {e}")
            return 2
        print(f"Saved settings to {filename}")

    try:
        engine = StereogramEngine(args.width, args.height)
        if args.depth is None:
            print(f"Estimating depth for {args.image}")
        engine.set_source(args.image, depth_map=args.depth)
        grid = engine.render(settings)
    except StereogramError as e:
        print(f"Failed to create the stereogram: {e}")
        return 1

    output = engine.save(grid, Path(args.output), overwrite=args.overwrite)
    print(f"Exported {settings.output_mode.value} to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
