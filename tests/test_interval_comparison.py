import random
import unittest

from intervaltrainer.config.exercise import ExerciseConfig
from intervaltrainer.drills.interval_comparison import (
    ARPEGGIO_OFFSETS,
    ROOT_REFERENCE_S,
    Direction,
    build_reference,
    generate_round,
)

from tests.fakes import ScriptedRandom


class GenerateRoundTests(unittest.TestCase):
    def test_scripted_draws_produce_expected_walk(self) -> None:
        config = ExerciseConfig(comparison_intervals=(2, 4), sequence_length=5, root_note="C4")
        rng = ScriptedRandom(randrange=[2], random=[0.2, 0.2], randint=[0], uniform=[1.0])

        descriptor = generate_round(config, rng)

        self.assertEqual(descriptor.pitches, (60, 62, 64, 68, 70, 72))
        self.assertEqual(descriptor.different_index, 2)
        self.assertEqual(descriptor.main_interval, 2)
        self.assertEqual(descriptor.different_interval, 4)
        self.assertIs(descriptor.direction, Direction.ASCENDING)
        self.assertTrue(descriptor.is_correct(2))
        self.assertFalse(descriptor.is_correct(0))

    def test_swapped_intervals_and_descending(self) -> None:
        config = ExerciseConfig(comparison_intervals=(2, 4), sequence_length=3, root_note="C4")
        rng = ScriptedRandom(randrange=[0], random=[0.9, 0.9], randint=[-1], uniform=[1.0])

        descriptor = generate_round(config, rng)

        self.assertIs(descriptor.direction, Direction.DESCENDING)
        self.assertEqual(descriptor.main_interval, 4)
        self.assertEqual(descriptor.different_interval, 2)
        self.assertEqual(descriptor.pitches, (59, 57, 53, 49))

    def test_fixed_direction_skips_direction_draw(self) -> None:
        config = ExerciseConfig(comparison_intervals=(3, 5), sequence_length=2, direction="descending")
        # Only one `random` draw is queued: the interval swap
        rng = ScriptedRandom(randrange=[1], random=[0.1], randint=[0], uniform=[1.0])

        descriptor = generate_round(config, rng)

        self.assertIs(descriptor.direction, Direction.DESCENDING)
        self.assertEqual(descriptor.steps, (-3, -5))

    def test_timing_uses_jittered_duration_and_fixed_gap(self) -> None:
        config = ExerciseConfig(tempo=120, sequence_length=4)
        rng = ScriptedRandom(randrange=[0], random=[0.2, 0.2], randint=[0], uniform=[1.1])

        descriptor = generate_round(config, rng)

        for note in descriptor.notes:
            self.assertAlmostEqual(note.duration, 0.5 * 1.1)
        for note in descriptor.notes[:-1]:
            self.assertAlmostEqual(note.gap_after, 0.5 * 0.15)
        self.assertEqual(descriptor.notes[-1].gap_after, 0.0)

    def test_random_rounds_hold_structure(self) -> None:
        rng = random.Random(1234)
        for length in range(2, 10):
            for pair in [(1, 2), (2, 3), (7, 5), (12, 1)]:
                config = ExerciseConfig(comparison_intervals=pair, sequence_length=length)
                for _ in range(25):
                    d = generate_round(config, rng)
                    self.assertEqual(len(d.notes), length + 1)
                    self.assertEqual(d.sequence_length, length)
                    self.assertTrue(0 <= d.different_index < length)
                    self.assertEqual({d.main_interval, d.different_interval}, set(pair))

                    sizes = [abs(s) for s in d.steps]
                    odd = [i for i, s in enumerate(sizes) if s != d.main_interval]
                    self.assertEqual(odd, [d.different_index])
                    self.assertEqual(sizes[d.different_index], d.different_interval)
                    self.assertTrue(all((s > 0) == (d.direction is Direction.ASCENDING) for s in d.steps))
                    self.assertLessEqual(abs(d.pitches[0] - config.root_pitch), config.start_window)

                    durations = {n.duration for n in d.notes}
                    self.assertEqual(len(durations), 1)
                    (duration,) = durations
                    self.assertGreaterEqual(duration, config.note_duration * 0.8 - 1e-9)
                    self.assertLessEqual(duration, config.note_duration * 1.2 + 1e-9)

    def test_interval_at(self) -> None:
        config = ExerciseConfig(comparison_intervals=(2, 4), sequence_length=5)
        rng = ScriptedRandom(randrange=[2], random=[0.2, 0.2], randint=[0], uniform=[1.0])
        d = generate_round(config, rng)
        self.assertEqual([d.interval_at(i) for i in range(5)], [2, 2, 4, 2, 2])


class BuildReferenceTests(unittest.TestCase):
    def test_root_reference_is_single_held_note(self) -> None:
        notes = build_reference(ExerciseConfig(root_note="A3"))
        self.assertEqual(len(notes), 1)
        self.assertEqual(notes[0].pitch, 57)
        self.assertEqual(notes[0].duration, ROOT_REFERENCE_S)

    def test_arpeggio_reference(self) -> None:
        config = ExerciseConfig(root_note="C4", reference_type="arpeggio")
        notes = build_reference(config)
        self.assertEqual([n.pitch for n in notes], [60 + o for o in ARPEGGIO_OFFSETS])
        self.assertEqual(notes[-1].gap_after, 0.0)
        self.assertTrue(all(n.gap_after > 0 for n in notes[:-1]))


if __name__ == "__main__":
    unittest.main()
