# (c) 2024 Niels Provos
#

PATTERN_IMAGE = "image"
PATTERN_NOISE = "noise"
PATTERN_CONFETTI = "confetti"
PATTERN_SPRINKLES = "sprinkles"

POLICY_CLAMP = "clamp"
POLICY_CUTOUT = "cutout"
POLICY_POPOUT = "popout"

OUTPUT_AUTOSTEREOGRAM = "autostereogram"
OUTPUT_DEPTH_MAP = "depth-map"
OUTPUT_SOURCE_IMAGE = "source-image"

DEFAULT_DEPTH_MODEL = "depth-anything/Depth-Anything-V2-Small-hf"

SETTINGS_FILE = "settings.json"
OUTPUT_FILE = "autostereogram.png"
