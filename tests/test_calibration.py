import numpy as np
import pytest

from headpose.motion import Attitude, FrameCalibrator, MIRROR_TRANSFORM


def test_attitude_matrix_is_orthonormal():
    matrix = Attitude(pitch=0.4, roll=-0.7, yaw=2.1).to_matrix()
    assert np.allclose(matrix @ matrix.T, np.eye(3))
    assert np.linalg.det(matrix) == pytest.approx(1.0)


def test_attitude_matrix_round_trip():
    attitude = Attitude(pitch=0.3, roll=-1.2, yaw=0.9)
    recovered = Attitude.from_matrix(attitude.to_matrix())
    assert recovered.as_tuple() == pytest.approx(attitude.as_tuple())


def test_pitch_is_rotation_about_x():
    matrix = Attitude(pitch=0.5).to_matrix()
    assert matrix[0] == pytest.approx([1.0, 0.0, 0.0])


def test_uncalibrated_passes_attitude_through_unchanged():
    calibrator = FrameCalibrator()
    attitude = Attitude(pitch=0.1, roll=0.2, yaw=0.3)
    assert calibrator.calibrate(attitude) is attitude
    assert not calibrator.is_calibrated


def test_reference_orientation_maps_to_identity():
    calibrator = FrameCalibrator()
    reference = Attitude(pitch=0.3, roll=-0.2, yaw=1.0)

    assert calibrator.set_reference(reference)
    calibrated = calibrator.calibrate(reference)

    assert calibrated.as_tuple() == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)
    assert np.allclose(calibrator.calibrate_matrix(reference), np.eye(3))


def test_reference_is_right_multiplied():
    calibrator = FrameCalibrator()
    calibrator.set_reference(Attitude(yaw=0.5))
    calibrated = calibrator.calibrate(Attitude(yaw=0.8))
    assert calibrated.yaw == pytest.approx(0.3)
    assert calibrated.pitch == pytest.approx(0.0, abs=1e-12)


def test_reference_inverse_is_transpose():
    calibrator = FrameCalibrator()
    reference = Attitude(pitch=0.2, roll=0.1, yaw=-0.4)
    calibrator.set_reference(reference)
    assert np.allclose(calibrator.reference_inverse, reference.to_matrix().T)


def test_set_reference_without_sample_is_noop():
    calibrator = FrameCalibrator()
    calibrator.set_reference(Attitude(yaw=1.0))
    before = calibrator.reference_inverse

    assert calibrator.set_reference(None) is False
    assert np.array_equal(calibrator.reference_inverse, before)
    assert calibrator.is_calibrated


def test_recalibration_replaces_reference_wholesale():
    calibrator = FrameCalibrator()
    calibrator.set_reference(Attitude(yaw=1.0))
    calibrator.set_reference(Attitude(pitch=0.5))
    calibrated = calibrator.calibrate(Attitude(pitch=0.5))
    assert calibrated.as_tuple() == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)


def test_reset_restores_identity():
    calibrator = FrameCalibrator()
    calibrator.set_reference(Attitude(roll=0.7))
    calibrator.reset()
    assert not calibrator.is_calibrated
    assert np.array_equal(calibrator.reference_inverse, np.eye(3))


def test_display_transform_applies_mirror():
    calibrator = FrameCalibrator()
    raw = Attitude(pitch=0.2, yaw=0.4)
    transform = calibrator.display_transform(raw)

    assert transform.shape == (4, 4)
    assert np.allclose(transform[:3, :3], MIRROR_TRANSFORM[:3, :3] @ raw.to_matrix())
    assert transform[3] == pytest.approx([0.0, 0.0, 0.0, 1.0])
    # display transform leaves the calibrated attitude untouched
    assert calibrator.calibrate(raw) == raw
