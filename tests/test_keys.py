import unittest

from intervaltrainer.theory.keys import interval_name, midi_to_note_str, note_name_to_midi, note_str_to_midi


class KeysTests(unittest.TestCase):
    def test_note_strings(self) -> None:
        self.assertEqual(note_str_to_midi("C4"), 60)
        self.assertEqual(note_str_to_midi("Db3"), 49)
        self.assertEqual(note_str_to_midi("g#5"), 80)
        self.assertEqual(note_name_to_midi("B#", 3), 48)
        self.assertEqual(midi_to_note_str(61), "C#4")

    def test_invalid_notes(self) -> None:
        for bad in ("", "C", "H4", "Cx"):
            with self.subTest(note=bad):
                with self.assertRaises(ValueError):
                    note_str_to_midi(bad)
        with self.assertRaises(ValueError):
            midi_to_note_str(128)

    def test_interval_names(self) -> None:
        self.assertEqual(interval_name(3), "minor 3rd")
        self.assertEqual(interval_name(-7), "perfect 5th")
        self.assertEqual(interval_name(12), "octave")
        self.assertEqual(interval_name(14), "major 2nd + 1 octave")
        self.assertEqual(interval_name(24), "unison + 2 octaves")


if __name__ == "__main__":
    unittest.main()
