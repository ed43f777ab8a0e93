import numpy as np
from typing import Tuple
from scipy.spatial.transform import Rotation as R

from ..core.events import ImuFrame

WORLD_UP = np.array([0.0, 0.0, 1.0])


class OrientationEstimator:
    """
    Complementary filter for a 6-axis IMU.
    Gyro rate (rad/s, body frame) is integrated every sample; the accelerometer
    pulls roll/pitch back toward gravity. Yaw is gyro only.
    Quaternion convention: [x, y, z, w]
    """
    def __init__(
        self,
        sample_period: float = 0.005,
        accel_gain: float = 0.02,
        accel_tolerance: float = 0.5,
    ):
        if sample_period <= 0.0:
            raise ValueError("sample_period must be positive")
        if not 0.0 <= accel_gain <= 1.0:
            raise ValueError("accel_gain must be in [0, 1]")
        self.sample_period = sample_period
        self.accel_gain = accel_gain
        self.accel_tolerance = accel_tolerance
        self._rotation = R.identity()
        self.update_count = 0

    def reset(self):
        self._rotation = R.identity()
        self.update_count = 0

    def update(self, frame: ImuFrame) -> np.ndarray:
        gyro = np.asarray(frame.gyro, dtype=float)
        self._rotation = self._rotation * R.from_rotvec(gyro * self.sample_period)

        accel = np.asarray(frame.accel, dtype=float)
        norm = np.linalg.norm(accel)
        if norm > 1e-6 and abs(norm - 1.0) <= self.accel_tolerance:
            # gravity as currently seen in the world frame
            measured_up = self._rotation.apply(accel / norm)
            axis = np.cross(measured_up, WORLD_UP)
            axis_norm = np.linalg.norm(axis)
            if axis_norm > 1e-9:
                angle = np.arctan2(axis_norm, np.dot(measured_up, WORLD_UP))
                correction = R.from_rotvec(axis / axis_norm * angle * self.accel_gain)
                self._rotation = correction * self._rotation

        self.update_count += 1
        return self.rotation()

    def rotation(self) -> np.ndarray:
        """Current orientation as [x, y, z, w]."""
        return self._rotation.as_quat()

    def euler_angles_deg(self) -> Tuple[float, float, float]:
        """Current orientation as (roll, pitch, yaw) in degrees."""
        roll, pitch, yaw = self._rotation.as_euler("xyz", degrees=True)
        return (float(roll), float(pitch), float(yaw))
