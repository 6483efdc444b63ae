import unittest

from pantry_backend.services.normalization import normalize_item_type


class NormalizeItemTypeTests(unittest.TestCase):
    def test_vision_style_labels(self):
        cases = {
            "Apples": "apple",
            "apple": "apple",
            "canned_beans": "canned bean",
            "red-bell-peppers": "red bell pepper",
            "Eggs!": "egg",
            " Brown-SUGAR ": "brown sugar",
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(normalize_item_type(raw), expected)

    def test_punctuation_only_collapses_to_empty(self):
        self.assertEqual(normalize_item_type(" ?! "), "")


if __name__ == "__main__":
    unittest.main()
