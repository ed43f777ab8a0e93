"""
Tracker UDP wire protocol.
"""

from .codec import (
    PACKET_HANDSHAKE,
    PACKET_SENSOR_INFO,
    PACKET_ROTATION_DATA,
    ProtocolEncodeError,
    encode_handshake,
    encode_sensor_descriptor,
    encode_rotation_update,
    decode_packet_type,
)

__all__ = [
    "PACKET_HANDSHAKE",
    "PACKET_SENSOR_INFO",
    "PACKET_ROTATION_DATA",
    "ProtocolEncodeError",
    "encode_handshake",
    "encode_sensor_descriptor",
    "encode_rotation_update",
    "decode_packet_type",
]
