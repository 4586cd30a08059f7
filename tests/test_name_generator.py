import random
import unittest
from unittest.mock import patch

from derby_career.horse_name_generator import NameGenerator

SINGLE_NAME = {
    "lexicons": {"Adjective": ["Solo"], "Noun": ["Star"]},
    "tiers": {"only": {"weight": 1.0, "patterns": ["[Adjective] [Noun]"]}},
}


class NameGeneratorTests(unittest.TestCase):
    def test_default_lexicon_names_fit_rules(self):
        generator = NameGenerator(rng=random.Random(4))
        names = [generator.generate_unique() for _ in range(60)]

        self.assertEqual(len({n.lower() for n in names}), 60)
        for name in names:
            self.assertLessEqual(len(name), 28)
            self.assertNotIn("[", name)
            self.assertNotIn(name, {"Secretariat", "Seabiscuit", "Man o' War"})

    def test_repeats_get_roman_numerals(self):
        generator = NameGenerator(config=SINGLE_NAME, rng=random.Random(1))

        self.assertEqual(
            [generator() for _ in range(3)],
            ["Solo Star", "Solo Star II", "Solo Star III"],
        )

    def test_numeric_suffix_after_numerals_run_out(self):
        generator = NameGenerator(config=SINGLE_NAME, rng=random.Random(1))
        names = [generator() for _ in range(11)]

        self.assertEqual(names[-1], "Solo Star 2")

    def test_reserved_names_are_skipped(self):
        generator = NameGenerator(config=SINGLE_NAME, rng=random.Random(1))
        generator.reserve("solo  star")

        self.assertEqual(generator(), "Solo Star II")

    def test_overlong_patterns_fall_back_to_adjective_noun(self):
        config = {
            "rules": {"max_length": 12},
            "lexicons": {
                "Adjective": ["Solo"],
                "Noun": ["Star"],
                "Verb": ["Gallivanting"],
                "Thing": ["Across the Countryside"],
            },
            "tiers": {"phrase": {"weight": 1.0, "patterns": ["[Verb] [Thing]"]}},
        }
        generator = NameGenerator(config=config, rng=random.Random(2))

        self.assertEqual(generator.generate(), "Solo Star")

    def test_missing_file_warns_and_uses_generic_name(self):
        with patch("builtins.print") as fake_print:
            generator = NameGenerator("/nonexistent/horse_names.json", rng=random.Random(1))

        self.assertIn("Warning", fake_print.call_args[0][0])
        self.assertEqual(generator.generate(), "Generic Horse")


if __name__ == "__main__":
    unittest.main()
