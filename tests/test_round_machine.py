import asyncio
import unittest

from intervaltrainer.app.events import ANSWER_RECORDED, PLAYBACK_FAILED, STATE_CHANGED, EventBus
from intervaltrainer.app.round_machine import RoundState, RoundStateMachine
from intervaltrainer.audio.scheduler import PlaybackOutcome, PlaybackScheduler
from intervaltrainer.config.exercise import ExerciseConfig
from intervaltrainer.stats.stats import ProgressTracker

from tests.fakes import ManualClock, RecordingSynth, ScriptedRandom, settle


def _scripted_rng(rounds: int = 1) -> ScriptedRandom:
    # Each round: different step 2, ascending, main interval 2, no offset, base tempo
    return ScriptedRandom(
        randrange=[2] * rounds,
        random=[0.2, 0.2] * rounds,
        randint=[0] * rounds,
        uniform=[1.0] * rounds,
    )


class RoundMachineTests(unittest.IsolatedAsyncioTestCase):
    def _machine(self, rounds: int = 1):
        self.synth = RecordingSynth()
        self.events = EventBus()
        self.clock = ManualClock()
        self.scheduler = PlaybackScheduler(self.synth, events=self.events)
        self.tracker = ProgressTracker()
        config = ExerciseConfig(comparison_intervals=(2, 4), sequence_length=5, root_note="C4")
        return RoundStateMachine(
            config,
            self.scheduler,
            self.tracker,
            rng=_scripted_rng(rounds),
            clock=self.clock,
            events=self.events,
        )

    async def test_round_lifecycle(self) -> None:
        machine = self._machine()
        states = []
        self.events.subscribe(STATE_CHANGED, lambda change: states.append(change["to"]))

        task = machine.start_round()
        self.assertIs(machine.state, RoundState.PLAYING)
        self.assertIs(await task, PlaybackOutcome.COMPLETED)
        self.assertIs(machine.state, RoundState.AWAITING_ANSWER)
        self.assertEqual(machine.descriptor.pitches, (60, 62, 64, 68, 70, 72))

        result = machine.submit_answer(2)
        self.assertTrue(result.correct)
        self.assertIs(machine.state, RoundState.ANSWERED)
        self.assertEqual(
            states,
            [RoundState.GENERATING, RoundState.PLAYING, RoundState.AWAITING_ANSWER, RoundState.ANSWERED],
        )

    async def test_start_round_only_from_idle(self) -> None:
        machine = self._machine()
        await machine.start_round()
        self.assertIsNone(machine.start_round())
        self.assertIs(machine.state, RoundState.AWAITING_ANSWER)

    async def test_answer_ignored_while_playing(self) -> None:
        machine = self._machine()
        self.synth.gate = asyncio.Event()
        task = machine.start_round()
        await settle()

        self.assertIsNone(machine.submit_answer(2))
        self.assertEqual(self.tracker.counters.total_attempts, 0)

        self.synth.gate.set()
        await task
        self.assertIsNotNone(machine.submit_answer(2))

    async def test_incorrect_answer_and_single_scoring(self) -> None:
        machine = self._machine()
        answers = []
        self.events.subscribe(ANSWER_RECORDED, answers.append)
        await machine.start_round()

        result = machine.submit_answer(0)
        self.assertFalse(result.correct)
        self.assertEqual(result.different_index, 2)

        self.assertIsNone(machine.submit_answer(2))
        self.assertEqual(self.tracker.counters.total_attempts, 1)
        self.assertEqual(self.tracker.counters.correct_attempts, 0)
        self.assertEqual(len(answers), 1)

    async def test_out_of_range_answer_ignored(self) -> None:
        machine = self._machine()
        await machine.start_round()
        self.assertIsNone(machine.submit_answer(5))
        self.assertIsNone(machine.submit_answer(-1))
        self.assertIs(machine.state, RoundState.AWAITING_ANSWER)

    async def test_next_round_only_after_answer(self) -> None:
        machine = self._machine(rounds=2)
        await machine.start_round()
        first = machine.descriptor
        self.assertIsNone(machine.next_round())

        machine.submit_answer(2)
        task = machine.next_round()
        self.assertIsNotNone(task)
        self.assertIsNone(machine.last_answer)
        await task
        self.assertIsNot(machine.descriptor, first)
        self.assertIs(machine.state, RoundState.AWAITING_ANSWER)

    async def test_replay_repeats_identical_audio(self) -> None:
        machine = self._machine()
        await machine.start_round()
        descriptor = machine.descriptor
        first_pass = self.synth.audio_calls()
        self.synth.calls.clear()

        await machine.replay()

        self.assertIs(machine.descriptor, descriptor)
        self.assertEqual(self.synth.audio_calls(), first_pass)
        self.assertIs(machine.state, RoundState.AWAITING_ANSWER)

    async def test_replay_after_answer_keeps_round_answered(self) -> None:
        machine = self._machine()
        await machine.start_round()
        machine.submit_answer(1)

        await machine.replay()

        self.assertIs(machine.state, RoundState.ANSWERED)
        self.assertIsNone(machine.submit_answer(2))
        self.assertEqual(self.tracker.counters.total_attempts, 1)

    async def test_replay_ignored_while_playing(self) -> None:
        machine = self._machine()
        self.synth.gate = asyncio.Event()
        task = machine.start_round()
        await settle()
        self.assertIsNone(machine.replay())
        self.synth.gate.set()
        await task

    async def test_playback_failure_still_allows_answer(self) -> None:
        machine = self._machine()
        failures = []
        self.events.subscribe(PLAYBACK_FAILED, failures.append)
        self.synth.fail_with = RuntimeError("no device")

        self.assertIsNone(await machine.start_round())

        self.assertIs(machine.state, RoundState.AWAITING_ANSWER)
        self.assertEqual(len(failures), 1)
        self.assertIsNotNone(machine.submit_answer(2))

    async def test_answer_latency_counts_from_first_playback(self) -> None:
        machine = self._machine(rounds=2)
        await machine.start_round()

        self.clock.advance(30)
        await machine.replay()
        self.clock.advance(29.5)
        result = machine.submit_answer(2)
        self.assertAlmostEqual(result.latency_ms, 59_500)
        self.assertEqual(self.tracker.counters.elapsed_seconds, 59)

        await machine.next_round()
        self.clock.advance(61)
        machine.submit_answer(2)
        self.assertEqual(self.tracker.counters.elapsed_seconds, 59)
        self.assertEqual(self.tracker.counters.total_attempts, 2)

    async def test_stop_returns_to_idle_and_silences(self) -> None:
        machine = self._machine()
        self.synth.gate = asyncio.Event()
        task = machine.start_round()
        await settle()

        machine.stop()

        self.assertIs(machine.state, RoundState.IDLE)
        self.assertIsNone(machine.descriptor)
        self.assertFalse(self.scheduler.is_busy)
        self.assertIs(await task, PlaybackOutcome.CANCELLED)
        self.assertIs(machine.state, RoundState.IDLE)

    async def test_answer_ignored_while_reference_sounds(self) -> None:
        machine = self._machine()
        await machine.start_round()
        self.synth.gate = asyncio.Event()
        reference = machine.play_reference()
        await settle()
        self.assertTrue(self.scheduler.is_playing_reference)

        self.assertIsNone(machine.submit_answer(2))
        self.assertEqual(self.tracker.counters.total_attempts, 0)
        self.assertIs(machine.state, RoundState.AWAITING_ANSWER)

        self.synth.gate.set()
        await reference
        self.assertTrue(machine.submit_answer(2).correct)

    async def test_reference_playback(self) -> None:
        machine = self._machine()
        self.assertIs(await machine.play_reference(), PlaybackOutcome.COMPLETED)
        self.assertEqual(self.synth.pitches(), [60])

        self.synth.gate = asyncio.Event()
        task = machine.start_round()
        await settle()
        self.assertIsNone(machine.play_reference())
        self.synth.gate.set()
        await task

        self.synth.calls.clear()
        await machine.play_reference()
        self.assertEqual(self.synth.pitches(), [60])
        self.assertIs(machine.state, RoundState.AWAITING_ANSWER)


if __name__ == "__main__":
    unittest.main()
