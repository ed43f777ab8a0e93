"""
Aggregator: single owner of the device table, the estimators and the UDP socket.
"""

import logging
import queue
import socket
import threading
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .events import DeviceConnected, DeviceDesign, DeviceSample, DeviceStatus
from .liveness import LivenessTracker
from ..filters.orientation import OrientationEstimator
from ..protocol.codec import (
    DEFAULT_FIRMWARE_NAME,
    encode_handshake,
    encode_rotation_update,
    encode_sensor_descriptor,
)

RECV_BUFFER_SIZE = 65536  # largest UDP payload, so recv never truncates


@dataclass
class DeviceRecord:
    """Aggregator-side state of one controller."""
    serial_number: str
    design: DeviceDesign
    sensor_slot: int
    estimator: Any


def create_udp_socket(address: Tuple[str, int]) -> socket.socket:
    """Bind an ephemeral non-blocking UDP socket matching the address family."""
    if ":" in address[0]:
        sock = socket.socket(socket.AF_INET6, socket.SOCK_DGRAM)
        sock.bind(("::", 0))
    else:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.bind(("0.0.0.0", 0))
    sock.setblocking(False)
    return sock


class Aggregator:
    """
    Consumes acquisition events and forwards orientation to the tracker server.

    Provides:
    - Device table keyed by serial number with dense sensor slots
    - One orientation estimator per device
    - Handshake retries until the server answers
    - Best-effort status snapshots for display

    All state is touched from the thread running ``run()`` only. Producers
    talk to it through ``event_queue``; consumers read ``status_queue``.
    """

    def __init__(self,
                 address: Tuple[str, int],
                 event_queue: Optional[queue.Queue] = None,
                 status_queue: Optional[queue.Queue] = None,
                 sock: Optional[socket.socket] = None,
                 estimator_factory: Callable[[], Any] = OrientationEstimator,
                 firmware_name: str = DEFAULT_FIRMWARE_NAME,
                 retry_interval: float = 3.0,
                 drain_attempts: int = 2,
                 drain_delay: float = 0.002,
                 clock: Callable[[], float] = time.monotonic,
                 log_level: int = logging.INFO):
        """
        Initialize the aggregator.

        Args:
            address: Tracker server (host, port)
            event_queue: Queue fed by acquisition workers (created unbounded if None)
            status_queue: Queue read by the status consumer (created with maxsize=1 if None)
            sock: UDP socket to use (an ephemeral one is bound if None)
            estimator_factory: Callable returning a fresh orientation estimator
            firmware_name: Name sent in the handshake
            retry_interval: Seconds between handshake retries
            drain_attempts: Queue polls per iteration before giving up
            drain_delay: Sleep between empty polls in seconds
            clock: Monotonic time source
            log_level: Logging level
        """
        self._address = address
        self.event_queue: queue.Queue = event_queue if event_queue is not None else queue.Queue()
        self.status_queue: queue.Queue = status_queue if status_queue is not None else queue.Queue(maxsize=1)
        self._socket = sock if sock is not None else create_udp_socket(address)
        self._estimator_factory = estimator_factory
        self._handshake_packet = encode_handshake(firmware_name)
        self._liveness = LivenessTracker(retry_interval, clock)
        self._drain_attempts = drain_attempts
        self._drain_delay = drain_delay

        self._logger = logging.getLogger("Aggregator")
        self._logger.setLevel(log_level)

        self._devices: Dict[str, DeviceRecord] = {}

        # Thread control
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._failure: Optional[BaseException] = None

        # Statistics
        self._iteration_count = 0
        self._event_count = 0
        self._packets_sent = 0
        self._samples_dropped = 0
        self._snapshots_published = 0
        self._snapshots_dropped = 0

    @property
    def address(self) -> Tuple[str, int]:
        return self._address

    @property
    def local_address(self) -> Tuple[str, int]:
        """Address the outbound socket is bound to."""
        return self._socket.getsockname()[:2]

    @property
    def liveness(self) -> LivenessTracker:
        return self._liveness

    @property
    def failure(self) -> Optional[BaseException]:
        """Error that ended a loop started with start(), if any."""
        return self._failure

    @property
    def devices(self) -> Mapping[str, DeviceRecord]:
        """Read-only view of the device table."""
        return MappingProxyType(self._devices)

    def start(self) -> bool:
        """
        Run the loop in a daemon thread.

        Returns:
            True if started, False if already running
        """
        if self._running:
            self._logger.warning("Aggregator already running")
            return False
        self._running = True
        self._thread = threading.Thread(target=self._thread_main, name="Aggregator")
        self._thread.daemon = True
        self._thread.start()
        return True

    def stop(self, timeout: float = 1.0):
        """Ask the loop to exit after the current iteration."""
        self._running = False
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        self._thread = None

    def close(self):
        """Close the UDP socket."""
        self._socket.close()

    def run(self):
        """Run iterations until stop() is called. Socket and encode errors are fatal."""
        if self._thread is None:
            self._running = True
        self._logger.info(f"Forwarding to {self._address[0]}:{self._address[1]}")
        try:
            while self._running:
                self.run_once()
        except Exception:
            self._logger.critical("Aggregator loop failed", exc_info=True)
            raise
        finally:
            self._running = False

    def _thread_main(self):
        try:
            self.run()
        except Exception as e:
            self._failure = e

    def run_once(self) -> int:
        """
        Run one loop iteration.

        Returns:
            Number of events processed
        """
        if self._liveness.due():
            self._check_liveness()

        processed = 0
        for _ in range(self._drain_attempts):
            while True:
                try:
                    event = self.event_queue.get_nowait()
                except queue.Empty:
                    break
                self.handle_event(event)
                processed += 1
            if processed:
                break
            time.sleep(self._drain_delay)

        if processed:
            self._publish_status()

        self._iteration_count += 1
        return processed

    def handle_event(self, event):
        """Apply one acquisition event to the device table."""
        self._event_count += 1
        if isinstance(event, DeviceConnected):
            self._on_connected(event)
        elif isinstance(event, DeviceSample):
            self._on_sample(event)
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def snapshot(self) -> List[DeviceStatus]:
        """Current status of every known device, in table order."""
        return [
            DeviceStatus(
                design=record.design,
                orientation_deg=tuple(record.estimator.euler_angles_deg()),
                connected=True,
                serial_number=record.serial_number,
            )
            for record in self._devices.values()
        ]

    def get_statistics(self) -> Dict[str, Any]:
        """Get aggregator statistics."""
        return {
            "iteration_count": self._iteration_count,
            "event_count": self._event_count,
            "packets_sent": self._packets_sent,
            "samples_dropped": self._samples_dropped,
            "snapshots_published": self._snapshots_published,
            "snapshots_dropped": self._snapshots_dropped,
            "liveness_state": self._liveness.state.name,
            "handshake_attempts": self._liveness.attempts,
            "device_count": len(self._devices),
            "thread_running": self._running,
        }

    def _on_connected(self, event: DeviceConnected):
        # A reconnect replaces the old record: slot from the current table size, fresh estimator.
        record = DeviceRecord(
            serial_number=event.serial_number,
            design=event.design,
            sensor_slot=len(self._devices),
            estimator=self._estimator_factory(),
        )
        self._devices[event.serial_number] = record
        self._logger.info(
            f"Device {record.serial_number} ({record.design.side.value}, {record.design.color}) "
            f"registered as sensor {record.sensor_slot}"
        )
        self._send(encode_sensor_descriptor(record.sensor_slot))

    def _on_sample(self, event: DeviceSample):
        record = self._devices.get(event.serial_number)
        if record is None:
            self._samples_dropped += 1
            return

        for frame in event.frames:
            record.estimator.update(frame)
        self._send(encode_rotation_update(record.sensor_slot, record.estimator.rotation()))

    def _check_liveness(self):
        try:
            self._socket.recv(RECV_BUFFER_SIZE)
        except (BlockingIOError, InterruptedError, ConnectionResetError):
            pass
        else:
            self._liveness.mark_response()
            self._logger.info("Tracker server responded, handshake complete")
            return

        self._liveness.mark_attempt()
        self._logger.debug(
            f"No response yet, handshake attempt {self._liveness.attempts} "
            f"with {len(self._devices)} device(s)"
        )
        self._send(self._handshake_packet)
        for record in self._devices.values():
            self._send(encode_sensor_descriptor(record.sensor_slot))

    def _send(self, packet: bytes):
        self._socket.sendto(packet, self._address)
        self._packets_sent += 1

    def _publish_status(self):
        snapshot = self.snapshot()
        try:
            self.status_queue.put_nowait(snapshot)
        except queue.Full:
            # most recent wins: replace the snapshot the consumer has not read yet
            try:
                self.status_queue.get_nowait()
                self._snapshots_dropped += 1
            except queue.Empty:
                pass
            try:
                self.status_queue.put_nowait(snapshot)
            except queue.Full:
                self._snapshots_dropped += 1
                return
        self._snapshots_published += 1
