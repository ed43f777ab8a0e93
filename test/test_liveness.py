import sys
import os
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from slime_bridge.core.liveness import LivenessState, LivenessTracker


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class TestLivenessTracker(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.tracker = LivenessTracker(retry_interval=3.0, clock=self.clock)

    def test_initial_state_due_immediately(self):
        self.assertEqual(self.tracker.state, LivenessState.NO_RESPONSE_SEEN)
        self.assertTrue(self.tracker.due())

    def test_retry_interval(self):
        self.tracker.mark_attempt()
        self.assertFalse(self.tracker.due())

        self.clock.now += 2.9
        self.assertFalse(self.tracker.due())

        self.clock.now += 0.1
        self.assertTrue(self.tracker.due())
        self.assertEqual(self.tracker.attempts, 1)

    def test_response_is_terminal(self):
        self.tracker.mark_response()
        self.assertTrue(self.tracker.response_seen)
        self.assertFalse(self.tracker.due())

        self.clock.now += 1000.0
        self.assertFalse(self.tracker.due())
        self.tracker.mark_response()
        self.assertEqual(self.tracker.state, LivenessState.RESPONSE_SEEN)


if __name__ == "__main__":
    unittest.main(verbosity=2)
