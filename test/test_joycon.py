"""
Test Joy-Con report parsing and the subcommand exchange against a fake HID device.
"""

import math
import struct
import sys
import os
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from slime_bridge.core.events import DesignSide
from slime_bridge.plugins.joycon_source import (
    ACCEL_SCALE,
    GYRO_SCALE,
    PRODUCT_JOYCON_L,
    PRODUCT_JOYCON_R,
    JoyconDevice,
    JoyconError,
    build_subcommand,
    parse_body_color,
    parse_calibration,
    parse_imu_report,
)


def make_imu_report(samples, report_id=0x30):
    report = bytearray(49)
    report[0] = report_id
    for i, sample in enumerate(samples):
        struct.pack_into("<6h", report, 13 + 12 * i, *sample)
    return list(report)


class FakeHidDevice:
    """Answers SPI reads from a dict and acknowledges every other subcommand."""

    def __init__(self, spi):
        self.spi = spi
        self.written = []
        self.pending = []

    def write(self, data):
        data = bytes(data)
        self.written.append(data)
        subcommand = data[10]
        reply = bytearray(49)
        reply[0] = 0x21
        reply[13] = 0x80
        reply[14] = subcommand
        if subcommand == 0x10:
            address = struct.unpack_from("<I", data, 11)[0]
            size = data[15]
            payload = self.spi.get(address, bytes(size))
            reply[15:20] = data[11:16]
            reply[20:20 + size] = payload
        # an unrelated input report first, as real controllers interleave them
        self.pending.append(make_imu_report([(0,) * 6] * 3))
        self.pending.append(list(reply))
        return len(data)

    def read(self, size, timeout_ms=0):
        if self.pending:
            return self.pending.pop(0)
        return []

    def close(self):
        pass


class TestReportParsing(unittest.TestCase):

    def test_build_subcommand(self):
        packet = build_subcommand(17, 0x40, [0x01])
        self.assertEqual(packet, bytes([0x01, 0x01, 0x00, 0x01, 0x40, 0x40, 0x00, 0x01, 0x40, 0x40, 0x40, 0x01]))

    def test_parse_calibration(self):
        block = struct.pack("<12h", 1, 2, 3, 100, 100, 100, -4, -5, -6, 200, 200, 200)
        self.assertEqual(parse_calibration(block), ((1, 2, 3), (-4, -5, -6)))

    def test_parse_body_color(self):
        self.assertEqual(parse_body_color([0x0A, 0xB9, 0xE6]), "#0ab9e6")

    def test_left_report(self):
        report = make_imu_report([(4096, 0, 0, 100, 0, 0)] * 3)
        frames = parse_imu_report(report, ((0, 0, 0), (0, 0, 0)), DesignSide.LEFT)

        self.assertEqual(len(frames), 3)
        self.assertAlmostEqual(frames[0].accel_x, 4096 * ACCEL_SCALE)
        self.assertAlmostEqual(frames[0].gyro_x, 100 * GYRO_SCALE)
        self.assertAlmostEqual(GYRO_SCALE, 0.07000839246 * 360.0 / 350.0 * math.pi / 180.0)

    def test_right_report_is_mirrored_and_offset(self):
        report = make_imu_report([(10, 20, 30, 40, 50, 60)] * 3)
        frames = parse_imu_report(report, ((10, 10, 10), (0, 0, 0)), DesignSide.RIGHT)

        frame = frames[0]
        self.assertAlmostEqual(frame.accel_x, 0.0)
        self.assertAlmostEqual(frame.accel_y, -10 * ACCEL_SCALE)
        self.assertAlmostEqual(frame.accel_z, -20 * ACCEL_SCALE)
        self.assertAlmostEqual(frame.gyro_x, 40 * GYRO_SCALE)
        self.assertAlmostEqual(frame.gyro_y, -50 * GYRO_SCALE)
        self.assertAlmostEqual(frame.gyro_z, -60 * GYRO_SCALE)

    def test_non_imu_reports(self):
        offsets = ((0, 0, 0), (0, 0, 0))
        self.assertIsNone(parse_imu_report([], offsets, DesignSide.LEFT))
        self.assertIsNone(parse_imu_report(make_imu_report([], report_id=0x21), offsets, DesignSide.LEFT))
        self.assertIsNone(parse_imu_report([0x30] * 10, offsets, DesignSide.LEFT))


class TestJoyconDevice(unittest.TestCase):

    def make_device(self, product_id, spi):
        device = JoyconDevice({"path": b"/dev/hidraw0", "product_id": product_id,
                               "serial_number": "98b6e9000001"}, reply_attempts=5)
        device._device = FakeHidDevice(spi)
        return device

    def test_factory_calibration_and_design(self):
        factory = struct.pack("<12h", 5, 6, 7, 0, 0, 0, 8, 9, 10, 0, 0, 0)
        device = self.make_device(PRODUCT_JOYCON_R, {
            0x6050: bytes([0xFF, 0x3C, 0x28]),
            0x6020: factory,
        })

        design = device.read_design()
        self.assertEqual(design.color, "#ff3c28")
        self.assertEqual(design.side, DesignSide.RIGHT)
        self.assertEqual(device.read_calibration(), ((5, 6, 7), (8, 9, 10)))

    def test_user_calibration_preferred(self):
        user = struct.pack("<12h", 1, 1, 1, 0, 0, 0, 2, 2, 2, 0, 0, 0)
        factory = struct.pack("<12h", 9, 9, 9, 0, 0, 0, 9, 9, 9, 0, 0, 0)
        device = self.make_device(PRODUCT_JOYCON_L, {
            0x8026: b"\xb2\xa1",
            0x8028: user,
            0x6020: factory,
        })
        self.assertEqual(device.read_calibration(), ((1, 1, 1), (2, 2, 2)))

    def test_enable_imu_reports(self):
        device = self.make_device(PRODUCT_JOYCON_L, {})
        device.enable_imu_reports()

        sent = [(packet[10], packet[11]) for packet in device._device.written]
        self.assertEqual(sent, [(0x30, 0b1001), (0x40, 0x01), (0x03, 0x30)])
        counters = [packet[1] for packet in device._device.written]
        self.assertEqual(counters, [0, 1, 2])

    def test_missing_reply(self):
        device = self.make_device(PRODUCT_JOYCON_L, {})
        device._device.write = lambda data: len(data)
        with self.assertRaises(JoyconError):
            device.subcommand(0x40, [0x01])


if __name__ == "__main__":
    unittest.main(verbosity=2)
