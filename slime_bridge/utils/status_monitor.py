"""
Status consumer that logs the latest device snapshot.
"""

import logging
import queue
import threading
import time
from typing import List, Optional

from slime_bridge.core.events import DeviceStatus


def format_status(status: DeviceStatus) -> str:
    roll, pitch, yaw = status.orientation_deg
    return (
        f"{status.serial_number or '?'} {status.design.side.value:<5} {status.design.color} "
        f"roll={roll:7.1f} pitch={pitch:7.1f} yaw={yaw:7.1f}"
    )


class StatusMonitor:
    """Reads snapshots from the aggregator and logs them at most every ``interval`` seconds."""

    def __init__(self, status_queue: queue.Queue, interval: float = 1.0):
        self._status_queue = status_queue
        self._interval = interval
        self._logger = logging.getLogger("StatusMonitor")
        self._latest: Optional[List[DeviceStatus]] = None
        self._last_log = 0.0
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def latest(self) -> Optional[List[DeviceStatus]]:
        """Most recent snapshot received."""
        return self._latest

    def start(self):
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="StatusMonitor")
        self._thread.daemon = True
        self._thread.start()

    def stop(self):
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None

    def poll(self, timeout: float = 0.1) -> bool:
        """
        Take one snapshot from the queue.

        Returns:
            True if a snapshot was received
        """
        try:
            self._latest = self._status_queue.get(timeout=timeout)
        except queue.Empty:
            return False

        now = time.monotonic()
        if now - self._last_log >= self._interval:
            self._last_log = now
            self._log_snapshot(self._latest)
        return True

    def _run(self):
        while not self._stop_event.is_set():
            self.poll()

    def _log_snapshot(self, snapshot: List[DeviceStatus]):
        if not snapshot:
            return
        self._logger.info(f"{len(snapshot)} device(s)")
        for status in snapshot:
            self._logger.info(f"  {format_status(status)}")
