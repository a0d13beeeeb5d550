"""
Motion data models - raw sensor events and recorded samples

Attitude Convention:
Euler angles follow the head-tracking sensor: pitch about x, roll about y,
yaw about z, composed as R = Rz(yaw) · Rx(pitch) · Ry(roll) (intrinsic Z-X-Y).
Angles are radians; acceleration is in g with gravity removed; rotation
rate is rad/s.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

EULER_SEQUENCE = 'ZXY'


@dataclass(frozen=True)
class Vector3:
    """Three-axis reading (acceleration or angular rate)"""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Attitude:
    """Euler orientation in radians"""
    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.pitch, self.roll, self.yaw)

    def to_matrix(self) -> np.ndarray:
        """
        Build the 3×3 rotation matrix for this attitude.

        Returns:
            Orthonormal float64 array of shape (3, 3)
        """
        rotation = Rotation.from_euler(EULER_SEQUENCE, [self.yaw, self.pitch, self.roll])
        return rotation.as_matrix()

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> 'Attitude':
        """
        Extract Euler angles from a 3×3 rotation matrix.

        Args:
            matrix: Orthonormal rotation matrix

        Returns:
            Attitude with pitch in [-π/2, π/2]
        """
        yaw, pitch, roll = Rotation.from_matrix(matrix).as_euler(EULER_SEQUENCE)
        return cls(pitch=float(pitch), roll=float(roll), yaw=float(yaw))


@dataclass(frozen=True)
class RawMotionEvent:
    """
    One update from the motion sensor, before calibration.

    timestamp is optional: when the sensor does not stamp events the
    recording session stamps them with its wall clock on ingest.
    """
    attitude: Attitude
    acceleration: Vector3 = Vector3()
    rotation_rate: Vector3 = Vector3()
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class MotionSample:
    """Recorded sample: calibrated attitude plus raw acceleration and rate"""
    timestamp: float
    acceleration: Vector3
    rotation_rate: Vector3
    attitude: Attitude
    label: str = ""
