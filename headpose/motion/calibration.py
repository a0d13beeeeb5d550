"""
Frame Calibrator - reference-frame correction for sensor orientation

The user can declare the current head orientation as "zero". Every later
attitude is then expressed relative to that reference:

    calibrated = R_raw · R_ref⁻¹

so that the reference orientation itself maps to identity. R_ref is a pure
rotation, so its inverse is stored as the transpose; no general matrix
inversion is performed, which keeps the reference orthonormal over long
sessions.

The mirror used by a 3D viewport is a display-only post-multiplication and
is exposed separately via display_transform(); it never touches recorded data.

Usage:
    calibrator = FrameCalibrator()
    calibrator.set_reference(latest_event.attitude)   # no-op if None
    calibrated = calibrator.calibrate(event.attitude)
"""

import logging
import threading
from typing import Optional

import numpy as np

from .models import Attitude

logger = logging.getLogger(__name__)

# Viewport mirror: flips x so the head model faces the viewer
MIRROR_TRANSFORM = np.diag([-1.0, 1.0, 1.0, 1.0])


class FrameCalibrator:
    """
    Holds the reference orientation and projects raw attitudes into it.

    The stored reference inverse is replaced wholesale under a lock, so a
    sensor thread calling calibrate() never sees a half-updated matrix.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._reference_inverse: np.ndarray = np.eye(3)
        self._calibrated = False

    @property
    def is_calibrated(self) -> bool:
        """True once a reference has been captured (and not reset)"""
        return self._calibrated

    @property
    def reference_inverse(self) -> np.ndarray:
        """Copy of the current reference inverse (3×3)"""
        with self._lock:
            return self._reference_inverse.copy()

    def set_reference(self, raw_attitude: Optional[Attitude]) -> bool:
        """
        Capture the current raw attitude as the new zero orientation.

        Best effort: with no live sample available the call does nothing.

        Args:
            raw_attitude: Latest raw attitude from the sensor, or None

        Returns:
            True if the reference was replaced
        """
        if raw_attitude is None:
            logger.info("Calibration skipped - no live sensor sample")
            return False

        inverse = raw_attitude.to_matrix().T
        with self._lock:
            self._reference_inverse = inverse
            self._calibrated = True

        logger.info(
            f"✓ Reference frame set (pitch={raw_attitude.pitch:.3f}, "
            f"roll={raw_attitude.roll:.3f}, yaw={raw_attitude.yaw:.3f})"
        )
        return True

    def reset(self):
        """Restore the identity reference"""
        with self._lock:
            self._reference_inverse = np.eye(3)
            self._calibrated = False
        logger.info("Reference frame reset to identity")

    def calibrate_matrix(self, raw_attitude: Attitude) -> np.ndarray:
        """Calibrated 3×3 rotation for a raw attitude"""
        with self._lock:
            reference_inverse = self._reference_inverse
        return raw_attitude.to_matrix() @ reference_inverse

    def calibrate(self, raw_attitude: Attitude) -> Attitude:
        """
        Express a raw attitude relative to the reference frame.

        Args:
            raw_attitude: Attitude as reported by the sensor

        Returns:
            Calibrated attitude (unchanged while no reference is set)
        """
        if not self._calibrated:
            return raw_attitude
        return Attitude.from_matrix(self.calibrate_matrix(raw_attitude))

    def display_transform(self, raw_attitude: Attitude) -> np.ndarray:
        """
        4×4 homogeneous transform for a 3D viewport: MIRROR · R_raw · R_ref⁻¹.

        Display only - the result is not stored or persisted.
        """
        transform = np.eye(4)
        transform[:3, :3] = self.calibrate_matrix(raw_attitude)
        return MIRROR_TRANSFORM @ transform
