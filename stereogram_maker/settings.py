# (c) 2024 Niels Provos

import json
import shutil
from enum import Enum
from pathlib import Path

from . import constants as C
from .depth_field import DepthPolicy
from .pattern import PatternKind

MIN_DISPARITY_SCALE = 0.1
MAX_DISPARITY_SCALE = 1.75


class OutputMode(Enum):
    AUTOSTEREOGRAM = C.OUTPUT_AUTOSTEREOGRAM
    DEPTH_MAP = C.OUTPUT_DEPTH_MAP
    SOURCE_IMAGE = C.OUTPUT_SOURCE_IMAGE


class StereogramSettings:
    """
    The complete set of user choices for one render.

    A settings object is passed into every render instead of being shared
    with the rendering code, so a render always sees one consistent set of
    values. Use copy() to hand a snapshot to a background render.
    """

    __slots__ = (
        "_disparity_scale",
        "_pattern_kind",
        "_pattern_source",
        "_gradient_colors",
        "_depth_policy",
        "_near_is_bright",
        "_output_mode",
        "_watermark",
        "_seed",
        "_dark_mode",
        "_workers",
    )

    def __init__(
        self,
        disparity_scale=1.0,
        pattern_kind=PatternKind.CONFETTI,
        pattern_source=None,
        gradient_colors=None,
        depth_policy=DepthPolicy.CLAMP,
        near_is_bright=True,
        output_mode=OutputMode.AUTOSTEREOGRAM,
        watermark=None,
        seed=None,
        dark_mode=False,
        workers=1,
    ):
        self.disparity_scale = disparity_scale
        self.pattern_kind = pattern_kind
        self.pattern_source = pattern_source
        self.gradient_colors = gradient_colors
        self.depth_policy = depth_policy
        self.near_is_bright = near_is_bright
        self.output_mode = output_mode
        self.watermark = watermark
        self.seed = seed
        self.dark_mode = dark_mode
        self.workers = workers

    @property
    def disparity_scale(self):
        return self._disparity_scale

    @disparity_scale.setter
    def disparity_scale(self, value):
        if (
            not isinstance(value, (float, int))
            or isinstance(value, bool)
            or not MIN_DISPARITY_SCALE <= value <= MAX_DISPARITY_SCALE
        ):
            raise ValueError(
                f"disparity_scale must be a number between {MIN_DISPARITY_SCALE} and {MAX_DISPARITY_SCALE}"
            )
        self._disparity_scale = float(value)

    @property
    def pattern_kind(self):
        return self._pattern_kind

    @pattern_kind.setter
    def pattern_kind(self, value):
        self._pattern_kind = PatternKind(value)

    @property
    def pattern_source(self):
        return self._pattern_source

    @pattern_source.setter
    def pattern_source(self, value):
        if not isinstance(value, (str, Path)) and value is not None:
            raise ValueError("pattern_source must be a Path, str object or None")
        self._pattern_source = str(value) if value is not None else None

    @property
    def gradient_colors(self):
        return self._gradient_colors

    @gradient_colors.setter
    def gradient_colors(self, value):
        if value is not None:
            if not isinstance(value, (list, tuple)) or len(value) != 3:
                raise ValueError("gradient_colors must be a list of three colors or None")
            value = list(value)
        self._gradient_colors = value

    @property
    def depth_policy(self):
        return self._depth_policy

    @depth_policy.setter
    def depth_policy(self, value):
        self._depth_policy = DepthPolicy(value)

    @property
    def near_is_bright(self):
        return self._near_is_bright

    @near_is_bright.setter
    def near_is_bright(self, value):
        if not isinstance(value, bool):
            raise ValueError("near_is_bright must be a boolean value")
        self._near_is_bright = value

    @property
    def output_mode(self):
        return self._output_mode

    @output_mode.setter
    def output_mode(self, value):
        self._output_mode = OutputMode(value)

    @property
    def watermark(self):
        return self._watermark

    @watermark.setter
    def watermark(self, value):
        if not isinstance(value, str) and value is not None:
            raise ValueError("watermark must be a str object or None")
        self._watermark = value if value else None

    @property
    def seed(self):
        return self._seed

    @seed.setter
    def seed(self, value):
        if value is not None and (not isinstance(value, int) or value < 0):
            raise ValueError("seed must be a non-negative integer or None")
        self._seed = value

    @property
    def dark_mode(self):
        return self._dark_mode

    @dark_mode.setter
    def dark_mode(self, value):
        if not isinstance(value, bool):
            raise ValueError("dark_mode must be a boolean value")
        self._dark_mode = value

    @property
    def workers(self):
        return self._workers

    @workers.setter
    def workers(self, value):
        if not isinstance(value, int) or value < 1:
            raise ValueError("workers must be a positive integer")
        self._workers = value

    def pattern_key(self):
        """The values that require the pattern to be regenerated when they change."""
        colors = tuple(self._gradient_colors) if self._gradient_colors else None
        return (
            self._pattern_kind,
            self._pattern_source,
            colors,
            self._watermark,
            self._seed,
            self._dark_mode,
        )

    def depth_key(self):
        """The values that require the depth field to be rendered again."""
        return (self._depth_policy, self._near_is_bright)

    def copy(self):
        return StereogramSettings.from_json(self.to_json())

    def to_json(self):
        data = {
            "disparity_scale": self._disparity_scale,
            "pattern_kind": self._pattern_kind.value,
            "pattern_source": self._pattern_source,
            "gradient_colors": self._gradient_colors,
            "depth_policy": self._depth_policy.value,
            "near_is_bright": self._near_is_bright,
            "output_mode": self._output_mode.value,
            "watermark": self._watermark,
            "seed": self._seed,
            "dark_mode": self._dark_mode,
            "workers": self._workers,
        }
        return json.dumps(data)

    @staticmethod
    def from_json(json_data):
        """
        Load the settings from a JSON string.

        Missing keys keep their default values.

        Args:
            json_data (str): The JSON string representation of the settings.

        Returns:
            StereogramSettings: The loaded settings.
        """
        settings = StereogramSettings()
        if json_data is None:
            return settings

        data = json.loads(json_data)
        for key in (
            "disparity_scale",
            "pattern_kind",
            "pattern_source",
            "gradient_colors",
            "depth_policy",
            "near_is_bright",
            "output_mode",
            "watermark",
            "seed",
            "dark_mode",
            "workers",
        ):
            if key in data:
                setattr(settings, key, data[key])
        return settings

    def to_file(self, file_path):
        """
        Save the settings to a JSON file.

        The file is written to a temporary file first and then moved into place,
        keeping a backup of the previous file until the move succeeded.

        Args:
            file_path (str): The settings file or a directory to store settings.json in.
        """
        state_file = Path(file_path)
        if state_file.is_dir():
            state_file = state_file / C.SETTINGS_FILE
        temp_file = state_file.with_suffix(".tmp")
        backup_file = state_file.with_suffix(".bak")

        try:
            with open(temp_file, "w", encoding="utf-8") as file:
                file.write(self.to_json())

            if state_file.exists():
                shutil.move(state_file, backup_file)

            shutil.move(temp_file, state_file)

            if backup_file.exists():
                backup_file.unlink()

        except Exception as e:
            if temp_file.exists():
                temp_file.unlink()
            if backup_file.exists() and not state_file.exists():
                shutil.move(backup_file, state_file)
            raise e

        return str(state_file)

    @staticmethod
    def from_file(file_path):
        state_file = Path(file_path)
        if state_file.is_dir():
            state_file = state_file / C.SETTINGS_FILE
        with open(state_file, "r", encoding="utf-8") as file:
            return StereogramSettings.from_json(file.read())

    def __eq__(self, other):
        if not isinstance(other, StereogramSettings):
            return False
        return self.to_json() == other.to_json()

    def __str__(self):
        return f"StereogramSettings({self.to_json()})"

    def __repr__(self):
        return str(self)
