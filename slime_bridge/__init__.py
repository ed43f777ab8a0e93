"""
Slime Bridge
Forwards motion controller orientation to a SlimeVR-compatible tracking
server over UDP, with plugin-based acquisition sources, per-device
orientation filtering, and handshake retries.
"""

from .core.events import DesignSide, DeviceDesign, ImuFrame, DeviceConnected, DeviceSample, DeviceStatus
from .core.aggregator import Aggregator
from .core.source_factory import AcquisitionSourceFactory, register_source
from .filters.orientation import OrientationEstimator


__version__ = "1.0.0"
__all__ = [
    "Aggregator",
    "AcquisitionSourceFactory",
    "register_source",
    "OrientationEstimator",
    "DesignSide",
    "DeviceDesign",
    "ImuFrame",
    "DeviceConnected",
    "DeviceSample",
    "DeviceStatus",
]
