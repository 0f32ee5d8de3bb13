import random
import unittest

from pydantic import ValidationError

from intervaltrainer.config.exercise import ExerciseConfig, settings_changes

from tests.fakes import ScriptedRandom


class ExerciseConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = ExerciseConfig()
        self.assertEqual(config.root_pitch, 60)
        self.assertAlmostEqual(config.note_duration, 0.3)
        self.assertAlmostEqual(config.note_gap, 0.3 * 0.15)

    def test_rejects_equal_intervals(self) -> None:
        with self.assertRaises(ValidationError):
            ExerciseConfig(comparison_intervals=(3, 3))

    def test_rejects_out_of_range_values(self) -> None:
        bad = [
            {"comparison_intervals": (0, 3)},
            {"comparison_intervals": (2, 13)},
            {"sequence_length": 1},
            {"sequence_length": 10},
            {"tempo": 20},
            {"tempo_jitter": (1.2, 0.8)},
            {"root_note": "H4"},
            {"direction": "sideways"},
        ]
        for kwargs in bad:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValidationError):
                    ExerciseConfig(**kwargs)

    def test_instrument_must_be_known(self) -> None:
        with self.assertRaises(ValidationError):
            ExerciseConfig(instrument="kazoo")
        self.assertEqual(ExerciseConfig(instrument="saxophone").instrument, "saxophone")
        self.assertEqual(ExerciseConfig(instrument="electric_piano").instrument, "electric_piano")

    def test_pick_instrument_skips_unknown_favourites(self) -> None:
        config = ExerciseConfig(instrument="violin", instrument_mode="random")
        self.assertEqual(config.pick_instrument(["kazoo", "cello"], ScriptedRandom(choice=[0])), "cello")
        self.assertEqual(config.pick_instrument(["kazoo"], random.Random(1)), "violin")

    def test_pick_instrument(self) -> None:
        single = ExerciseConfig(instrument="violin")
        self.assertEqual(single.pick_instrument(["flute", "cello"], random.Random(1)), "violin")

        rand = ExerciseConfig(instrument="violin", instrument_mode="random")
        self.assertEqual(rand.pick_instrument(["flute", "cello"], ScriptedRandom(choice=[1])), "cello")
        self.assertEqual(rand.pick_instrument([], random.Random(1)), "violin")

    def test_json_round_trips_through_model(self) -> None:
        config = ExerciseConfig(comparison_intervals=(5, 7), tempo=120)
        self.assertEqual(ExerciseConfig.model_validate_json(config.to_json()), config)


class SettingsChangesTests(unittest.TestCase):
    def test_reports_changed_settings(self) -> None:
        prev = ExerciseConfig(comparison_intervals=(2, 3), tempo=200)
        cur = ExerciseConfig(comparison_intervals=(2, 4), tempo=160, instrument="violin")
        self.assertEqual(
            settings_changes(cur, prev),
            ["comparison_intervals: 2,3 → 2,4", "tempo: 200 → 160"],
        )

    def test_no_previous_means_no_changes(self) -> None:
        self.assertEqual(settings_changes(ExerciseConfig(), None), [])
        self.assertEqual(settings_changes(ExerciseConfig(), ExerciseConfig()), [])


if __name__ == "__main__":
    unittest.main()
