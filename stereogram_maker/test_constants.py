import unittest
from . import constants as C
from .depth_field import DepthPolicy
from .pattern import PatternKind
from .settings import OutputMode


class TestConstants(unittest.TestCase):

    def test_unique_constants(self):
        constants_dict = {
            name: value for name, value in vars(C).items() if isinstance(value, str)
        }
        values = list(constants_dict.values())
        duplicates = set([value for value in values if values.count(value) > 1])
        if duplicates:
            non_unique_constants = {
                name: value
                for name, value in constants_dict.items()
                if value in duplicates
            }
            self.fail(f"String constants are not unique: {non_unique_constants}")

    def test_enums_use_constants(self):
        self.assertEqual(
            [kind.value for kind in PatternKind],
            [C.PATTERN_IMAGE, C.PATTERN_NOISE, C.PATTERN_CONFETTI, C.PATTERN_SPRINKLES],
        )
        self.assertEqual(
            [policy.value for policy in DepthPolicy],
            [C.POLICY_CLAMP, C.POLICY_CUTOUT, C.POLICY_POPOUT],
        )
        self.assertEqual(
            [mode.value for mode in OutputMode],
            [C.OUTPUT_AUTOSTEREOGRAM, C.OUTPUT_DEPTH_MAP, C.OUTPUT_SOURCE_IMAGE],
        )


if __name__ == "__main__":
    unittest.main()
