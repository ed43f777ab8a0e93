"""
Tests for the tracker packet encoders.
"""

import struct
import sys
import os
import unittest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from slime_bridge.protocol.codec import (
    PACKET_HANDSHAKE,
    PACKET_SENSOR_INFO,
    PACKET_ROTATION_DATA,
    ProtocolEncodeError,
    decode_packet_type,
    encode_handshake,
    encode_rotation_update,
    encode_sensor_descriptor,
)


class TestCodec(unittest.TestCase):
    """Byte layouts of the three outbound packets."""

    def test_handshake_layout(self):
        packet = encode_handshake("slime-bridge")

        self.assertEqual(len(packet), 12 + 28 + 1 + 12 + 6)
        packet_type, packet_id = struct.unpack_from(">IQ", packet, 0)
        self.assertEqual(packet_type, PACKET_HANDSHAKE)
        self.assertEqual(packet_id, 1)
        # board, imu, mcu_type, imu_info x3, build
        self.assertEqual(struct.unpack_from(">7i", packet, 12), (0,) * 7)
        self.assertEqual(packet[40], 12)
        self.assertEqual(packet[41:53], b"slime-bridge")
        self.assertEqual(packet[53:], bytes([0x00, 0x0F, 0x00, 0x0F, 0x00, 0x0F]))

    def test_handshake_custom_name(self):
        packet = encode_handshake("abc")
        self.assertEqual(packet[40], 3)
        self.assertEqual(packet[41:44], b"abc")
        self.assertEqual(len(packet), 12 + 28 + 1 + 3 + 6)

    def test_handshake_name_too_long(self):
        with self.assertRaises(ProtocolEncodeError):
            encode_handshake("x" * 256)

    def test_sensor_descriptor_layout(self):
        packet = encode_sensor_descriptor(5)
        self.assertEqual(packet, b"\x00\x00\x00\x0f" + b"\x00" * 7 + b"\x01" + b"\x05\x01")

    def test_rotation_update_layout(self):
        packet = encode_rotation_update(2, [0.1, 0.2, 0.3, 0.9])

        self.assertEqual(len(packet), 31)
        fields = struct.unpack(">IQBB4fB", packet)
        self.assertEqual(fields[0], PACKET_ROTATION_DATA)
        self.assertEqual(fields[1], 1)
        self.assertEqual(fields[2], 2)  # sensor id
        self.assertEqual(fields[3], 1)  # data type
        for expected, actual in zip([0.1, 0.2, 0.3, 0.9], fields[4:8]):
            self.assertAlmostEqual(expected, actual, places=6)
        self.assertEqual(fields[8], 0)  # calibration info

    def test_slot_out_of_range(self):
        with self.assertRaises(ProtocolEncodeError):
            encode_sensor_descriptor(256)
        with self.assertRaises(ProtocolEncodeError):
            encode_rotation_update(-1, [0.0, 0.0, 0.0, 1.0])

    def test_quaternion_length(self):
        with self.assertRaises(ProtocolEncodeError):
            encode_rotation_update(0, [0.0, 0.0, 1.0])

    def test_decode_packet_type(self):
        self.assertEqual(decode_packet_type(encode_handshake()), PACKET_HANDSHAKE)
        self.assertEqual(decode_packet_type(encode_sensor_descriptor(0)), PACKET_SENSOR_INFO)
        with self.assertRaises(ProtocolEncodeError):
            decode_packet_type(b"\x00\x00")


if __name__ == "__main__":
    unittest.main(verbosity=2)
