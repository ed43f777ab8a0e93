"""
Event and status types exchanged between acquisition workers, the aggregator
and status consumers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Tuple


class DesignSide(Enum):
    """Which hand a controller is designed for."""
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class DeviceDesign:
    """Immutable controller appearance, set once at connection time."""
    color: str  # "#rrggbb"
    side: DesignSide

    def to_dict(self) -> Dict[str, Any]:
        return {"color": self.color, "side": self.side.value}


@dataclass(frozen=True)
class ImuFrame:
    """One calibrated IMU sample: acceleration in g, angular rate in rad/s."""
    accel_x: float
    accel_y: float
    accel_z: float
    gyro_x: float
    gyro_y: float
    gyro_z: float

    @property
    def accel(self) -> Tuple[float, float, float]:
        return (self.accel_x, self.accel_y, self.accel_z)

    @property
    def gyro(self) -> Tuple[float, float, float]:
        return (self.gyro_x, self.gyro_y, self.gyro_z)


@dataclass(frozen=True)
class DeviceConnected:
    """A controller was opened by its acquisition worker."""
    serial_number: str
    design: DeviceDesign


@dataclass(frozen=True)
class DeviceSample:
    """A micro-batch of consecutive IMU frames from one controller."""
    serial_number: str
    frames: Tuple[ImuFrame, ...]

    def __init__(self, serial_number: str, frames: Iterable[ImuFrame]):
        frames = tuple(frames)
        if not frames:
            raise ValueError("DeviceSample requires at least one frame")
        object.__setattr__(self, "serial_number", serial_number)
        object.__setattr__(self, "frames", frames)


@dataclass
class DeviceStatus:
    """One entry of a status snapshot."""
    design: DeviceDesign
    orientation_deg: Tuple[float, float, float] = (0.0, 0.0, 0.0)  # roll, pitch, yaw
    connected: bool = True
    serial_number: str = field(default="", compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert status to dictionary."""
        return {
            "serial_number": self.serial_number,
            "connected": self.connected,
            "orientation_deg": list(self.orientation_deg),
            "design": self.design.to_dict(),
        }
