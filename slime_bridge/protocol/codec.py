"""
Binary encoders for the tracker UDP protocol.

Every datagram starts with a common header, all fields big-endian:
  [0:4]   packet_type  (uint32)
  [4:12]  packet_id    (uint64, always 1)

Handshake (type 3):
  board, imu, mcu_type      (3 x int32, all 0)
  imu_info                  (3 x int32, all 0)
  build                     (int32, 0)
  firmware_name             (uint8 length + UTF-8 bytes)
  mac_address               (6 bytes, 00:0F:00:0F:00:0F)

SensorInfo (type 15):
  sensor_id                 (uint8)
  sensor_status             (uint8, 1 = active)

RotationData (type 17):
  sensor_id                 (uint8)
  data_type                 (uint8, 1)
  quaternion                (4 x float32: X, Y, Z, W)
  calibration_info          (uint8, 0)
"""

import struct
from typing import Sequence

PACKET_HANDSHAKE = 3
PACKET_SENSOR_INFO = 15
PACKET_ROTATION_DATA = 17

PACKET_ID = 1
SENSOR_STATUS_ACTIVE = 1
ROTATION_DATA_TYPE = 1
CALIBRATION_INFO = 0

DEFAULT_FIRMWARE_NAME = "slime-bridge"
MAC_ADDRESS = bytes([0x00, 0x0F, 0x00, 0x0F, 0x00, 0x0F])

_HEADER = struct.Struct(">IQ")
_HANDSHAKE_BODY = struct.Struct(">iiiiiii")
_SENSOR_INFO_BODY = struct.Struct(">BB")
_ROTATION_BODY = struct.Struct(">BB4fB")


class ProtocolEncodeError(ValueError):
    """Raised when a value cannot be represented on the wire."""


def _header(packet_type: int) -> bytes:
    return _HEADER.pack(packet_type, PACKET_ID)


def _check_slot(sensor_slot: int) -> None:
    if not 0 <= sensor_slot <= 0xFF:
        raise ProtocolEncodeError(f"Sensor slot {sensor_slot} out of range 0..255")


def encode_handshake(firmware_name: str = DEFAULT_FIRMWARE_NAME) -> bytes:
    """
    Build the handshake that registers this bridge as a tracker source.

    Args:
        firmware_name: Name announced to the server

    Returns:
        Encoded datagram
    """
    name = firmware_name.encode("utf-8")
    if len(name) > 0xFF:
        raise ProtocolEncodeError(f"Firmware name too long: {len(name)} bytes")

    board = imu = mcu_type = 0
    imu_info = (0, 0, 0)
    build = 0
    body = _HANDSHAKE_BODY.pack(board, imu, mcu_type, *imu_info, build)
    return _header(PACKET_HANDSHAKE) + body + bytes([len(name)]) + name + MAC_ADDRESS


def encode_sensor_descriptor(sensor_slot: int) -> bytes:
    """Announce one active sensor endpoint."""
    _check_slot(sensor_slot)
    return _header(PACKET_SENSOR_INFO) + _SENSOR_INFO_BODY.pack(sensor_slot, SENSOR_STATUS_ACTIVE)


def encode_rotation_update(sensor_slot: int, quaternion: Sequence[float]) -> bytes:
    """
    Build a rotation update for one sensor.

    Args:
        sensor_slot: Sensor id assigned by the aggregator
        quaternion: Orientation [x, y, z, w]

    Returns:
        Encoded datagram
    """
    _check_slot(sensor_slot)
    quat = [float(q) for q in quaternion]
    if len(quat) != 4:
        raise ProtocolEncodeError(f"Quaternion must have 4 components, got {len(quat)}")

    body = _ROTATION_BODY.pack(sensor_slot, ROTATION_DATA_TYPE, *quat, CALIBRATION_INFO)
    return _header(PACKET_ROTATION_DATA) + body


def decode_packet_type(data: bytes) -> int:
    """Return the packet type of an encoded datagram."""
    if len(data) < _HEADER.size:
        raise ProtocolEncodeError(f"Datagram too short: {len(data)} bytes")
    packet_type, _packet_id = _HEADER.unpack_from(data, 0)
    return packet_type
