"""
Nintendo Joy-Con / Pro Controller acquisition over HID.

Input report 0x30 (standard full mode, 49 bytes):
  [0]      report id (0x30)
  [1:13]   timer, battery, buttons, sticks, vibrator
  [13:49]  3 x IMU sample, each 6 x int16 LE:
           accel_x, accel_y, accel_z, gyro_1, gyro_2, gyro_3

Sensor ranges: accel +-8 g, gyro +-2000 dps.
"""

import logging
import math
import struct
import threading
from typing import Dict, List, Optional, Sequence, Tuple

import hid

from slime_bridge.core.base_source import BaseAcquisitionSource
from slime_bridge.core.events import DesignSide, DeviceDesign, ImuFrame
from slime_bridge.core.source_factory import register_source

VENDOR_ID = 0x057E
PRODUCT_JOYCON_L = 0x2006
PRODUCT_JOYCON_R = 0x2007
PRODUCT_PRO_CONTROLLER = 0x2009
PRODUCT_SIDES = {
    PRODUCT_JOYCON_L: DesignSide.LEFT,
    PRODUCT_JOYCON_R: DesignSide.RIGHT,
    PRODUCT_PRO_CONTROLLER: DesignSide.LEFT,
}

REPORT_SIZE = 49
REPORT_STANDARD_FULL = 0x30
REPORT_SUBCOMMAND_REPLY = 0x21
IMU_DATA_OFFSET = 13
IMU_SAMPLE_SIZE = 12
IMU_SAMPLES_PER_REPORT = 3

SUBCMD_SET_INPUT_MODE = 0x03
SUBCMD_SPI_READ = 0x10
SUBCMD_SET_PLAYER_LIGHTS = 0x30
SUBCMD_ENABLE_IMU = 0x40

SPI_FACTORY_IMU_CALIBRATION = 0x6020
SPI_BODY_COLOR = 0x6050
SPI_USER_IMU_MAGIC = 0x8026
SPI_USER_IMU_CALIBRATION = 0x8028
USER_CALIBRATION_MAGIC = b"\xb2\xa1"

PLAYER_LIGHTS = 0b1001  # LED 1 and LED 4
NEUTRAL_RUMBLE = bytes([0x00, 0x01, 0x40, 0x40, 0x00, 0x01, 0x40, 0x40])

ACCEL_SCALE = 0.00024414435  # 16000 / 65535 / 1000, g per LSB
GYRO_SCALE = (
    0.07000839246        # 4588 / 65535, dps per LSB
    * 360.0 / 350.0      # empirical correction
    * (math.pi / 180.0)  # rad/s
)

Offsets = Tuple[Tuple[int, int, int], Tuple[int, int, int]]
ZERO_OFFSETS: Offsets = ((0, 0, 0), (0, 0, 0))


class JoyconError(RuntimeError):
    """Controller did not answer a subcommand."""


def build_subcommand(counter: int, subcommand: int, args: Sequence[int] = ()) -> bytes:
    """Output report 0x01: counter, neutral rumble, subcommand and arguments."""
    return bytes([0x01, counter & 0x0F]) + NEUTRAL_RUMBLE + bytes([subcommand]) + bytes(args)


def parse_calibration(data: Sequence[int]) -> Offsets:
    """
    Extract accel and gyro origins from a 24 byte IMU calibration block.

    Layout: acc origin xyz, acc sensitivity xyz, gyro origin xyz,
    gyro sensitivity xyz, all int16 LE. Only the origins are used.
    """
    values = struct.unpack("<12h", bytes(data[:24]))
    return (tuple(values[0:3]), tuple(values[6:9]))


def parse_body_color(data: Sequence[int]) -> str:
    """'#rrggbb' from the first three bytes of the color block."""
    return "#{:02x}{:02x}{:02x}".format(data[0], data[1], data[2])


def accel_to_g(raw: int) -> float:
    return raw * ACCEL_SCALE


def gyro_to_rad(raw: int) -> float:
    return raw * GYRO_SCALE


def parse_imu_report(report: Sequence[int], offsets: Offsets,
                     side: DesignSide) -> Optional[List[ImuFrame]]:
    """
    Convert a standard full mode report into calibrated frames.

    Returns:
        Three frames, or None if the report carries no IMU data
    """
    if len(report) < REPORT_SIZE or report[0] != REPORT_STANDARD_FULL:
        return None

    data = bytes(report[:REPORT_SIZE])
    acc_origin, gyro_origin = offsets
    # right Joy-Con is mounted mirrored: flip y and z
    sign = -1.0 if side is DesignSide.RIGHT else 1.0

    frames = []
    for i in range(IMU_SAMPLES_PER_REPORT):
        ax, ay, az, g1, g2, g3 = struct.unpack_from("<6h", data, IMU_DATA_OFFSET + i * IMU_SAMPLE_SIZE)
        frames.append(ImuFrame(
            accel_x=accel_to_g(ax - acc_origin[0]),
            accel_y=sign * accel_to_g(ay - acc_origin[1]),
            accel_z=sign * accel_to_g(az - acc_origin[2]),
            gyro_x=gyro_to_rad(g1 - gyro_origin[0]),
            gyro_y=sign * gyro_to_rad(g2 - gyro_origin[1]),
            gyro_z=sign * gyro_to_rad(g3 - gyro_origin[2]),
        ))
    return frames


class JoyconDevice:
    """Blocking HID session with one controller."""

    def __init__(self, info: Dict, read_timeout_ms: int = 100, reply_attempts: int = 50):
        self.path = info["path"]
        self.product_id = info.get("product_id", 0)
        self.side = PRODUCT_SIDES.get(self.product_id, DesignSide.LEFT)
        self.serial_number = info.get("serial_number") or ""
        self._read_timeout_ms = read_timeout_ms
        self._reply_attempts = reply_attempts
        self._counter = 0
        self._device = None

    def open(self):
        self._device = hid.device()
        self._device.open_path(self.path)
        if not self.serial_number:
            self.serial_number = self._device.get_serial_number_string() or self.path.hex()

    def close(self):
        if self._device is not None:
            self._device.close()
            self._device = None

    def read(self) -> List[int]:
        """Read one input report; empty list on timeout."""
        return self._device.read(REPORT_SIZE, self._read_timeout_ms)

    def subcommand(self, subcommand: int, args: Sequence[int] = ()) -> List[int]:
        """Send a subcommand and wait for its 0x21 reply."""
        self._device.write(build_subcommand(self._counter, subcommand, args))
        self._counter = (self._counter + 1) & 0x0F

        for _ in range(self._reply_attempts):
            report = self.read()
            if len(report) > 14 and report[0] == REPORT_SUBCOMMAND_REPLY and report[14] == subcommand:
                return report
        raise JoyconError(f"No reply to subcommand 0x{subcommand:02x}")

    def spi_read(self, address: int, size: int) -> List[int]:
        args = list(struct.pack("<I", address)) + [size]
        reply = self.subcommand(SUBCMD_SPI_READ, args)
        return reply[20:20 + size]

    def read_design(self) -> DeviceDesign:
        return DeviceDesign(color=parse_body_color(self.spi_read(SPI_BODY_COLOR, 3)), side=self.side)

    def read_calibration(self) -> Offsets:
        """User calibration if present, factory calibration otherwise."""
        if bytes(self.spi_read(SPI_USER_IMU_MAGIC, 2)) == USER_CALIBRATION_MAGIC:
            return parse_calibration(self.spi_read(SPI_USER_IMU_CALIBRATION, 24))
        return parse_calibration(self.spi_read(SPI_FACTORY_IMU_CALIBRATION, 24))

    def enable_imu_reports(self):
        self.subcommand(SUBCMD_SET_PLAYER_LIGHTS, [PLAYER_LIGHTS])
        self.subcommand(SUBCMD_ENABLE_IMU, [0x01])
        self.subcommand(SUBCMD_SET_INPUT_MODE, [REPORT_STANDARD_FULL])


@register_source("joycon")
class JoyconSource(BaseAcquisitionSource):
    """
    Joy-Con and Pro Controller source.

    A scanner thread enumerates HID devices every ``scan_interval`` seconds and
    starts one worker thread per controller. A worker that loses its device
    exits; the scanner starts a new one when the device shows up again.

    Parameters (config.params):
    - scan_interval: Seconds between HID enumerations (default 1.0)
    - read_timeout_ms: HID read timeout (default 100)
    """

    def __init__(self, event_queue, config):
        super().__init__(event_queue, config)
        self._logger = logging.getLogger("JoyconSource")
        self._scan_interval = float(config.params.get("scan_interval", 1.0))
        self._read_timeout_ms = int(config.params.get("read_timeout_ms", 100))

        self._stop_event = threading.Event()
        self._scanner: Optional[threading.Thread] = None
        self._workers: Dict[bytes, threading.Thread] = {}
        self._workers_lock = threading.Lock()

    def start(self) -> bool:
        if self._is_running:
            self._logger.warning("Joy-Con scanner already running")
            return False
        self._stop_event.clear()
        self._scanner = threading.Thread(target=self._scan_loop, name="JoyconScanner")
        self._scanner.daemon = True
        self._scanner.start()
        self._is_running = True
        self._logger.info("Scanning for Joy-Con controllers")
        return True

    def stop(self) -> bool:
        self._stop_event.set()
        if self._scanner:
            self._scanner.join(timeout=2.0)
            self._scanner = None
        with self._workers_lock:
            workers = list(self._workers.values())
            self._workers.clear()
        for worker in workers:
            worker.join(timeout=1.0)
        self._is_running = False
        return True

    def active_paths(self) -> List[bytes]:
        with self._workers_lock:
            return [path for path, worker in self._workers.items() if worker.is_alive()]

    def _scan_loop(self):
        while not self._stop_event.is_set():
            for info in hid.enumerate(VENDOR_ID):
                if info.get("product_id") in PRODUCT_SIDES:
                    self._ensure_worker(info)
            self._stop_event.wait(self._scan_interval)

    def _ensure_worker(self, info: Dict):
        path = info["path"]
        with self._workers_lock:
            worker = self._workers.get(path)
            if worker is not None and worker.is_alive():
                return
            worker = threading.Thread(target=self._device_loop, args=(info,), name=f"Joycon[{path!r}]")
            worker.daemon = True
            self._workers[path] = worker
        worker.start()

    def _device_loop(self, info: Dict):
        device = JoyconDevice(info, read_timeout_ms=self._read_timeout_ms)
        try:
            device.open()
            design = device.read_design()
            offsets = device.read_calibration()
            self.emit_connected(device.serial_number, design)
            self._logger.info(f"Joy-Con {device.serial_number} connected ({design.side.value}, {design.color})")
            device.enable_imu_reports()

            while not self._stop_event.is_set():
                frames = parse_imu_report(device.read(), offsets, device.side)
                if frames:
                    self.emit_sample(device.serial_number, frames)
        except (OSError, ValueError) as e:
            # hidapi raises OSError/ValueError on read from an unplugged device
            self._logger.info(f"Joy-Con {device.serial_number or info['path']!r} disconnected: {e}")
        except JoyconError as e:
            self._logger.warning(f"Joy-Con {device.serial_number or info['path']!r} setup failed: {e}")
        finally:
            device.close()
