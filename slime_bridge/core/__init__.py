from .events import (
    DesignSide,
    DeviceDesign,
    ImuFrame,
    DeviceConnected,
    DeviceSample,
    DeviceStatus,
)
from .liveness import LivenessState, LivenessTracker
from .aggregator import Aggregator, DeviceRecord
from .base_source import BaseAcquisitionSource, SourceConfig
from .source_factory import AcquisitionSourceFactory, register_source

__all__ = [
    "DesignSide",
    "DeviceDesign",
    "ImuFrame",
    "DeviceConnected",
    "DeviceSample",
    "DeviceStatus",
    "LivenessState",
    "LivenessTracker",
    "Aggregator",
    "DeviceRecord",
    "BaseAcquisitionSource",
    "SourceConfig",
    "AcquisitionSourceFactory",
    "register_source",
]
