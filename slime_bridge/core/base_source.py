"""
Base abstract class for acquisition sources.
Defines the interface that every controller backend must follow.
"""

import queue
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable

from .events import DeviceConnected, DeviceDesign, DeviceSample, ImuFrame


@dataclass
class SourceConfig:
    """Acquisition source configuration."""
    name: str  # Source name/identifier
    params: Dict[str, Any] = None  # Backend specific parameters

    def __post_init__(self):
        if self.params is None:
            self.params = {}


class BaseAcquisitionSource(ABC):
    """Abstract base class for acquisition sources."""

    def __init__(self, event_queue: queue.Queue, config: SourceConfig):
        """
        Initialize the source.

        Args:
            event_queue: Shared queue consumed by the aggregator
            config: Source configuration
        """
        self._event_queue = event_queue
        self._config = config
        self._is_running = False

    @property
    def config(self) -> SourceConfig:
        """Get source configuration."""
        return self._config

    @property
    def is_running(self) -> bool:
        """Check if the source threads are running."""
        return self._is_running

    @abstractmethod
    def start(self) -> bool:
        """
        Start discovery and acquisition threads.

        Returns:
            True if started, False otherwise
        """
        pass

    @abstractmethod
    def stop(self) -> bool:
        """
        Stop all threads owned by the source.

        Returns:
            True if stopped, False otherwise
        """
        pass

    def emit_connected(self, serial_number: str, design: DeviceDesign):
        """Report a newly opened controller."""
        self._event_queue.put(DeviceConnected(serial_number, design))

    def emit_sample(self, serial_number: str, frames: Iterable[ImuFrame]):
        """Report a micro-batch of IMU frames."""
        self._event_queue.put(DeviceSample(serial_number, frames))
