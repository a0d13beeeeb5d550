import pytest

from headpose.motion import Attitude, FrameCalibrator, RawMotionEvent, Vector3
from headpose.recorder import MotionRecorder
from headpose.session import RecordingSession, SessionStore


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_event(pitch=0.0, roll=0.0, yaw=0.0, timestamp=None, acc=(0.0, 0.0, 0.0), rot=(0.0, 0.0, 0.0)):
    return RawMotionEvent(
        attitude=Attitude(pitch=pitch, roll=roll, yaw=yaw),
        acceleration=Vector3(*acc),
        rotation_rate=Vector3(*rot),
        timestamp=timestamp,
    )


@pytest.fixture
def wall_clock():
    return FakeClock(1718000000.0)


@pytest.fixture
def mono_clock():
    return FakeClock(50.0)


@pytest.fixture
def session(wall_clock, mono_clock):
    return RecordingSession(FrameCalibrator(), clock=wall_clock, monotonic=mono_clock)


@pytest.fixture
def store(tmp_path, wall_clock):
    return SessionStore(base_dir=tmp_path / 'sessions', clock=wall_clock)


@pytest.fixture
def recorder(store, session):
    return MotionRecorder(store=store, session=session, sensor_available=True)
