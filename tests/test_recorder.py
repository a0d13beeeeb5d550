import json

import pytest

from headpose.errors import InvalidStateTransition
from headpose.motion import Attitude
from headpose.session import SessionState, parse

from .conftest import make_event


def _rows(recorder, file_name):
    return recorder.store.load(file_name).decode("utf-8").splitlines()


def test_walk_example(recorder):
    recorder.start("walk")
    for i, pitch in enumerate((0.0, 0.1, 0.2)):
        recorder.on_motion(make_event(pitch=pitch, timestamp=100.0 + i))
    recorder.stop()
    session_file = recorder.save("walk")

    lines = _rows(recorder, session_file.file_name)
    assert lines[0] == "Timestamp,AccX,AccY,AccZ,RotX,RotY,RotZ,Pitch,Roll,Yaw,Label"
    assert len(lines) == 4
    rows = [line.split(",") for line in lines[1:]]
    assert [row[10] for row in rows] == ["walk", "walk", "walk"]
    assert [row[7] for row in rows] == ["0.0", "0.1", "0.2"]


def test_idle_samples_never_reach_saved_file(recorder):
    recorder.on_motion(make_event(pitch=0.9, timestamp=1.0))
    recorder.start("walk")
    recorder.on_motion(make_event(pitch=0.1, timestamp=2.0))
    recorder.stop()
    recorder.on_motion(make_event(pitch=0.8, timestamp=3.0))
    session_file = recorder.save()

    samples = parse(recorder.store.load(session_file.file_name))
    assert [s.attitude.pitch for s in samples] == [0.1]


def test_sessions_do_not_accumulate(recorder):
    recorder.start("a")
    recorder.on_motion(make_event(timestamp=1.0))
    recorder.stop()
    recorder.start("b")
    recorder.on_motion(make_event(timestamp=2.0))
    recorder.on_motion(make_event(timestamp=3.0))
    recorder.stop()

    samples = parse(recorder.store.load(recorder.save().file_name))
    assert [s.timestamp for s in samples] == [2.0, 3.0]


def test_save_defaults_to_start_label(recorder, wall_clock):
    recorder.start("head nod")
    recorder.stop()
    session_file = recorder.save()
    assert session_file.file_name == f"head_nod-{int(wall_clock.now)}.csv"


def test_save_while_active_raises(recorder):
    recorder.start("walk")
    with pytest.raises(InvalidStateTransition):
        recorder.save()
    assert recorder.list() == []


def test_save_uses_recording_read_before_next_start(recorder, monkeypatch):
    recorder.start("walk")
    recorder.on_motion(make_event(timestamp=1.0))
    recorder.on_motion(make_event(timestamp=2.0))
    recorder.stop()

    finished_recording = recorder.session.finished_recording

    def read_then_start_next():
        result = finished_recording()
        recorder.session.start("run")
        recorder.on_motion(make_event(timestamp=9.0))
        return result

    monkeypatch.setattr(recorder.session, "finished_recording", read_then_start_next)

    session_file = recorder.save()
    assert session_file.file_name.startswith("walk-")
    samples = parse(recorder.store.load(session_file.file_name))
    assert [s.timestamp for s in samples] == [1.0, 2.0]
    assert {s.label for s in samples} == {"walk"}


def test_calibrate_then_same_attitude_is_identity(recorder):
    raw = Attitude(pitch=0.4, roll=-0.3, yaw=1.2)
    recorder.on_motion(make_event(pitch=raw.pitch, roll=raw.roll, yaw=raw.yaw))
    assert recorder.calibrate() is True

    recorder.start("calibrated")
    recorder.on_motion(make_event(pitch=raw.pitch, roll=raw.roll, yaw=raw.yaw, timestamp=5.0))
    sample = recorder.session.buffer.snapshot()[0]
    assert sample.attitude.as_tuple() == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)


def test_calibrate_without_sample_is_noop(recorder):
    assert recorder.calibrate() is False
    assert not recorder.calibrator.is_calibrated


def test_calibrate_after_disconnect_is_noop(recorder):
    recorder.on_motion(make_event(yaw=1.0))
    recorder.on_disconnect()
    assert recorder.calibrate() is False
    assert not recorder.sensor_available


def test_sensor_failure_marks_unavailable(recorder):
    recorder.on_failure(RuntimeError("bluetooth dropped"))
    assert not recorder.sensor_available
    assert not recorder.controls().motion_button_enabled


def test_toggle(recorder):
    assert recorder.toggle("walk") is SessionState.ACTIVE
    assert recorder.toggle("walk") is SessionState.IDLE


def test_delete_and_list(recorder):
    recorder.start("walk")
    recorder.stop()
    session_file = recorder.save()
    assert recorder.list() == [session_file.file_name]
    recorder.delete(session_file.file_name)
    assert recorder.list() == []


def test_delete_all_and_export(recorder, wall_clock):
    for label in ("a", "b"):
        recorder.start(label)
        recorder.stop()
        recorder.save()
        wall_clock.advance(1)

    targets = recorder.export_targets()
    assert len(targets) == 2
    assert all(p.exists() for p in targets)

    result = recorder.delete_all()
    assert result.ok
    assert result.attempted == 2
    assert recorder.export_targets() == []


def test_status(recorder, mono_clock):
    recorder.start("walk")
    recorder.on_motion(make_event(timestamp=1.0))
    mono_clock.advance(1.5)

    status = recorder.status()
    assert status.state is SessionState.ACTIVE
    assert status.sample_count == 1
    assert status.duration == "00:01:500"
    assert status.controls.motion_button_title == "Stop Tracking"
    assert status.saved_files == []

    payload = json.loads(recorder.get_status_json())
    assert payload["type"] == "status"
    assert payload["state"] == "active"
    assert payload["controls"]["reference_button_visible"] is True
