import unittest

from luckydraw.draw.digit import DigitState
from luckydraw.draw.events import (
    DIGIT_STOPPED,
    SPIN_GROUP_STARTED,
    SPIN_GROUP_STOPPED,
    START_REQUESTED,
    EventHub,
)
from luckydraw.draw.session import SpinSessionController
from luckydraw.draw.timers import ManualScheduler
from luckydraw.draw.types import (
    AutoStopMode,
    OperatorPaced,
    Prize,
    RevealMode,
    Sequential,
    Simultaneous,
)

W, S, X = DigitState.WAITING, DigitState.SPINNING, DigitState.STOPPED


class SessionTestCase(unittest.TestCase):
    spin_mode = Sequential()
    digit_count = 3
    duration = 1000

    def setUp(self):
        self.scheduler = ManualScheduler()
        self.events = EventHub()
        self.events.keep_history = True
        self.completed = []
        self.prize = Prize(
            id="p",
            name="Prize",
            spin_mode=self.spin_mode,
            spin_duration_ms=self.duration,
            digit_count=self.digit_count,
        )
        self.session = SpinSessionController(
            self.prize, self.scheduler, self.events, on_complete=self.completed.append
        )

    def payloads(self, name):
        return [payload for n, payload in self.events.history if n == name]


class SequentialSessionTests(SessionTestCase):
    def test_digits_stop_one_per_interval(self):
        self.session.start("123")
        self.assertEqual(self.session.digit_states, (S, S, S))

        self.scheduler.advance(999)
        self.assertEqual(self.session.digit_states, (S, S, S))
        self.scheduler.advance(1)
        self.assertEqual(self.session.digit_states, (X, S, S))
        self.scheduler.advance(1000)
        self.assertEqual(self.session.digit_states, (X, X, S))
        self.scheduler.advance(999)
        self.assertEqual(self.completed, [])
        self.scheduler.advance(1)

        self.assertEqual(self.session.digit_states, (X, X, X))
        self.assertEqual(self.completed, ["123"])
        self.assertEqual(self.payloads(DIGIT_STOPPED), [0, 1, 2])
        self.assertEqual(len(self.payloads(SPIN_GROUP_STARTED)), 1)
        self.assertEqual(len(self.payloads(SPIN_GROUP_STOPPED)), 1)
        self.assertFalse(self.session.session_active)
        self.assertEqual(self.session.display(), "123")

    def test_start_while_active_is_noop(self):
        self.assertTrue(self.session.start("123"))
        self.scheduler.advance(1000)
        self.assertFalse(self.session.start("999"))
        self.assertEqual(self.session.target_number, "123")
        self.assertEqual(self.session.digit_states, (X, S, S))

    def test_clearing_target_recycles_active_session(self):
        self.session.start("123")
        self.scheduler.advance(1000)
        self.session.clear_target()

        self.assertEqual(self.session.digit_states, (W, W, W))
        self.assertFalse(self.session.session_active)
        self.assertEqual(self.session.spinning_digit_count, 0)
        self.assertEqual(self.scheduler.pending(), 0)
        self.scheduler.advance(10000)
        self.assertEqual(self.completed, [])
        self.assertEqual(len(self.payloads(SPIN_GROUP_STOPPED)), 1)

    def test_target_is_zero_padded(self):
        self.session.start("7")
        self.assertEqual(self.session.target_number, "007")
        self.scheduler.run_until_idle()
        self.assertEqual(self.completed, ["007"])

    def test_target_wider_than_display_is_rejected(self):
        self.session.start()
        with self.assertRaises(ValueError):
            self.session.set_target("1234")


class SimultaneousTimerTests(SessionTestCase):
    spin_mode = Simultaneous(AutoStopMode.TIMER)
    duration = 5000

    def test_all_digits_stop_together_with_one_notification(self):
        self.session.start("042")
        self.scheduler.advance(4999)
        self.assertEqual(self.session.digit_states, (S, S, S))
        self.scheduler.advance(1)
        self.assertEqual(self.session.digit_states, (X, X, X))
        self.assertEqual(self.payloads(DIGIT_STOPPED), [None])
        self.assertEqual(self.completed, ["042"])

    def test_reveal_is_ignored_for_timer_mode(self):
        self.session.start("042")
        self.assertFalse(self.session.reveal())
        self.assertEqual(self.completed, [])


class SimultaneousManualTests(SessionTestCase):
    spin_mode = Simultaneous(AutoStopMode.MANUAL)

    def test_reveal_requires_session_and_target(self):
        self.assertFalse(self.session.reveal())
        self.session.start()
        self.assertFalse(self.session.reveal())
        self.assertEqual(self.session.digit_states, (W, W, W))

        self.session.set_target("7")
        self.assertEqual(self.session.digit_states, (S, S, S))
        self.scheduler.advance(60000)
        self.assertEqual(self.completed, [])

        self.assertTrue(self.session.reveal())
        self.assertFalse(self.session.reveal())
        self.assertEqual(self.completed, ["007"])
        self.assertEqual(self.payloads(DIGIT_STOPPED), [None])


class OperatorPacedTimerTests(SessionTestCase):
    spin_mode = OperatorPaced(RevealMode.TIMER)

    def test_all_spin_then_stop_one_by_one(self):
        self.session.start("908")
        self.assertEqual(self.session.digit_states, (S, S, S))
        self.assertFalse(self.session.click(0))
        self.scheduler.advance(2000)
        self.assertEqual(self.session.digit_states, (X, X, S))
        self.scheduler.advance(1000)
        self.assertEqual(self.payloads(DIGIT_STOPPED), [0, 1, 2])
        self.assertEqual(self.completed, ["908"])


class OperatorPacedClickTests(SessionTestCase):
    spin_mode = OperatorPaced(RevealMode.CLICK)

    def test_one_digit_at_a_time(self):
        self.session.start("123")
        self.assertEqual(self.session.digit_states, (W, W, W))

        self.assertTrue(self.session.click(0))
        self.assertEqual(self.session.digit_states, (S, W, W))
        self.assertFalse(self.session.click(1))
        self.assertEqual(self.session.digit_states, (S, W, W))
        self.assertFalse(self.session.is_clickable(1))

        self.assertTrue(self.session.click(0))
        self.assertEqual(self.session.digit_states, (X, W, W))
        self.assertEqual(self.payloads(DIGIT_STOPPED), [0])

        # A stopped digit mid-cycle is rejected input.
        self.assertFalse(self.session.click(0))
        self.assertEqual(self.session.digit_states, (X, W, W))

        for index in (1, 2):
            self.session.click(index)
            self.session.click(index)
        self.assertEqual(self.session.digit_states, (X, X, X))
        self.assertEqual(self.completed, ["123"])
        self.assertEqual(len(self.payloads(SPIN_GROUP_STARTED)), 3)
        self.assertEqual(len(self.payloads(SPIN_GROUP_STOPPED)), 3)

    def test_new_target_after_full_cycle_starts_fresh(self):
        self.session.start("123")
        for index in range(3):
            self.session.click(index)
            self.session.click(index)
        self.assertEqual(self.completed, ["123"])

        self.session.set_target("456")
        self.assertTrue(self.session.click(1))
        self.assertEqual(self.session.digit_states, (W, S, W))
        self.assertTrue(self.session.session_active)
        self.assertEqual(self.session.target_number, "456")

    def test_first_click_without_target_requests_start(self):
        self.assertTrue(self.session.click(2))
        self.assertEqual(self.payloads(START_REQUESTED), [2])
        self.assertEqual(self.session.digit_states, (W, W, W))
        self.assertFalse(self.session.click(0))

        self.session.start("555")
        self.assertEqual(self.session.digit_states, (W, W, S))
        self.assertIsNone(self.session.pending_click)

    def test_after_completion_click_without_target_requests_start(self):
        self.session.start("123")
        for index in range(3):
            self.session.click(index)
            self.session.click(index)
        self.session.clear_target()
        self.assertEqual(self.session.digit_states, (X, X, X))

        self.assertTrue(self.session.click(0))
        self.assertEqual(self.payloads(START_REQUESTED), [0])
        self.session.start("789")
        self.assertEqual(self.session.digit_states, (S, W, W))

    def test_reset_while_spinning_signals_idle(self):
        self.session.start("123")
        self.session.click(1)
        self.session.reset()
        self.assertEqual(self.session.digit_states, (W, W, W))
        self.assertEqual(self.session.spinning_digit_count, 0)
        self.assertEqual(len(self.payloads(SPIN_GROUP_STOPPED)), 1)
        self.assertEqual(self.completed, [])


if __name__ == "__main__":
    unittest.main()
