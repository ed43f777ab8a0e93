import queue
import sys
import os
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from slime_bridge.core.events import DesignSide, DeviceDesign, DeviceStatus
from slime_bridge.utils.status_monitor import StatusMonitor, format_status


class TestStatusMonitor(unittest.TestCase):

    def setUp(self):
        self.status_queue = queue.Queue(maxsize=1)
        self.monitor = StatusMonitor(self.status_queue, interval=0.0)
        self.status = DeviceStatus(
            design=DeviceDesign("#ff0000", DesignSide.LEFT),
            orientation_deg=(1.0, 2.0, 3.0),
            serial_number="ABC123",
        )

    def test_poll_logs_latest_snapshot(self):
        self.status_queue.put([self.status])
        with self.assertLogs("StatusMonitor", level="INFO") as logs:
            self.assertTrue(self.monitor.poll(timeout=0.1))
        self.assertEqual(self.monitor.latest, [self.status])
        self.assertTrue(any("ABC123" in line for line in logs.output))

    def test_poll_timeout(self):
        self.assertFalse(self.monitor.poll(timeout=0.01))
        self.assertIsNone(self.monitor.latest)

    def test_format_status(self):
        line = format_status(self.status)
        self.assertIn("left", line)
        self.assertIn("#ff0000", line)
        self.assertIn("yaw=    3.0", line)

    def test_status_to_dict(self):
        self.assertEqual(self.status.to_dict(), {
            "serial_number": "ABC123",
            "connected": True,
            "orientation_deg": [1.0, 2.0, 3.0],
            "design": {"color": "#ff0000", "side": "left"},
        })

    def test_thread_consumes_queue(self):
        self.monitor.start()
        try:
            self.status_queue.put([self.status], timeout=1.0)
            self.status_queue.put([self.status], timeout=1.0)
        finally:
            self.monitor.stop()
        self.assertEqual(self.monitor.latest, [self.status])


if __name__ == "__main__":
    unittest.main(verbosity=2)
