"""
Simulated controllers for testing and development without hardware.
"""

import logging
import threading
import time
from typing import List

import numpy as np
from scipy.spatial.transform import Rotation as R

from slime_bridge.core.base_source import BaseAcquisitionSource
from slime_bridge.core.events import DesignSide, DeviceDesign, ImuFrame
from slime_bridge.core.source_factory import register_source

SIMULATION_COLORS = ["#0ab9e6", "#ff3c28", "#e6ff00", "#1edc00"]


@register_source("simulation")
class SimulationSource(BaseAcquisitionSource):
    """
    Simulated controllers.

    Each controller runs on its own thread, announces itself once and then
    emits micro-batches of frames describing a steady rotation about the
    vertical axis with gravity on +z in the world frame.

    Parameters (config.params):
    - device_count: Number of controllers (default 2)
    - sample_rate: IMU samples per second (default 200)
    - frames_per_report: Frames per sample event (default 3)
    - rotation_rate: Yaw rate in rad/s (default 0.5)
    - noise_std: Gaussian noise added to every axis (default 0.0)
    """

    def __init__(self, event_queue, config):
        """Initialize simulated controllers."""
        super().__init__(event_queue, config)

        self._logger = logging.getLogger(f"SimulationSource[{config.name}]")

        params = config.params
        self._device_count = int(params.get("device_count", 2))
        self._sample_rate = float(params.get("sample_rate", 200.0))
        self._frames_per_report = int(params.get("frames_per_report", 3))
        self._rotation_rate = float(params.get("rotation_rate", 0.5))
        self._noise_std = float(params.get("noise_std", 0.0))

        self._threads: List[threading.Thread] = []
        self._stop_event = threading.Event()

    @property
    def serial_numbers(self) -> List[str]:
        return [f"SIM-{index:04d}" for index in range(self._device_count)]

    def start(self) -> bool:
        """Start one thread per simulated controller."""
        if self._is_running:
            self._logger.warning("Simulation already running")
            return False

        self._stop_event.clear()
        for index, serial_number in enumerate(self.serial_numbers):
            thread = threading.Thread(
                target=self._device_loop,
                args=(index, serial_number),
                name=f"SimulatedController[{serial_number}]",
            )
            thread.daemon = True
            thread.start()
            self._threads.append(thread)

        self._is_running = True
        self._logger.info(f"Started {self._device_count} simulated controller(s)")
        return True

    def stop(self) -> bool:
        """Stop all simulated controllers."""
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout=1.0)
        self._threads = []
        self._is_running = False
        self._logger.info("Simulation stopped")
        return True

    def design_for(self, index: int) -> DeviceDesign:
        side = DesignSide.LEFT if index % 2 == 0 else DesignSide.RIGHT
        return DeviceDesign(color=SIMULATION_COLORS[index % len(SIMULATION_COLORS)], side=side)

    def generate_frames(self, elapsed: float, count: int) -> List[ImuFrame]:
        """
        Frames for a controller spinning about world z.

        Args:
            elapsed: Time of the first frame in seconds since start
            count: Number of frames

        Returns:
            List of frames spaced by 1 / sample_rate
        """
        period = 1.0 / self._sample_rate
        frames = []
        for i in range(count):
            t = elapsed + i * period
            # world gravity seen from the rotated body
            body = R.from_rotvec([0.0, 0.0, self._rotation_rate * t])
            accel = body.inv().apply([0.0, 0.0, 1.0])
            gyro = np.array([0.0, 0.0, self._rotation_rate])
            if self._noise_std > 0.0:
                accel = accel + np.random.normal(0.0, self._noise_std, 3)
                gyro = gyro + np.random.normal(0.0, self._noise_std, 3)
            frames.append(ImuFrame(
                accel_x=float(accel[0]), accel_y=float(accel[1]), accel_z=float(accel[2]),
                gyro_x=float(gyro[0]), gyro_y=float(gyro[1]), gyro_z=float(gyro[2]),
            ))
        return frames

    def _device_loop(self, index: int, serial_number: str):
        """Emit events for one simulated controller."""
        self.emit_connected(serial_number, self.design_for(index))
        self._logger.info(f"Simulated controller {serial_number} connected")

        report_period = self._frames_per_report / self._sample_rate
        start_time = time.time()
        next_report = start_time
        while not self._stop_event.is_set():
            frames = self.generate_frames(next_report - start_time, self._frames_per_report)
            self.emit_sample(serial_number, frames)

            next_report += report_period
            delay = next_report - time.time()
            if delay > 0:
                self._stop_event.wait(delay)
