"""
Motion Recorder - sensor listener and command facade for the recording pipeline

Wires the pipeline together:

    sensor feed ──▶ FrameCalibrator ──▶ RecordingSession ──▶ SampleBuffer
                                               │ stop + save
                                               ▼
                                 serialize() ──▶ SessionStore

The recorder receives sensor events through the MotionListener interface and
commands from the interaction layer (start, stop, calibrate, save, delete,
delete_all, export_targets, list). Commands are synchronous and raise the
error kinds in headpose.errors; save/delete perform file I/O and should be
called off the sensor thread.

Usage:
    recorder = MotionRecorder(store=SessionStore('./data/sessions'))
    recorder.on_connect()
    recorder.start("walk")
    recorder.on_motion(event)        # from the sensor callback
    recorder.calibrate()
    recorder.stop()
    session_file = recorder.save()
"""

import json
import logging
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional

from .motion.calibration import FrameCalibrator
from .motion.listener import MotionListener
from .motion.models import RawMotionEvent
from .session.manager import (
    ControlState, RecordingSession, SessionState, derive_controls, format_elapsed,
)
from .session.serializer import serialize
from .session.storage import DeleteAllResult, SessionFile, SessionStore

logger = logging.getLogger(__name__)


@dataclass
class RecorderStatus:
    """
    Snapshot of pipeline state for presenters.

    Provides everything a UI needs to render duration, buttons and file list.
    """
    state: SessionState
    label: str
    elapsed_seconds: float
    duration: str
    sample_count: int
    dropped_count: int
    sensor_available: bool
    calibrated: bool
    controls: ControlState
    saved_files: List[str]

    def to_dict(self) -> dict:
        data = asdict(self)
        data['state'] = self.state.value
        return data


class MotionRecorder(MotionListener):
    """
    Owns the calibrator, recording session and session store.

    Threading Model:
    - Sensor thread: on_motion() / on_connect() / on_disconnect() / on_failure()
    - Timer thread: status() / elapsed()
    - User-action thread: commands
    """

    def __init__(
        self,
        store: SessionStore,
        calibrator: Optional[FrameCalibrator] = None,
        session: Optional[RecordingSession] = None,
        sensor_available: bool = False
    ):
        """
        Initialize motion recorder.

        Args:
            store: SessionStore for saved sessions
            calibrator: FrameCalibrator (created if None)
            session: RecordingSession (created around the calibrator if None)
            sensor_available: Initial sensor availability
        """
        self.store = store
        self.session = session or RecordingSession(calibrator)
        if calibrator is not None:
            self.session.calibrator = calibrator
        self.calibrator = self.session.calibrator

        self._lock = threading.Lock()
        self._sensor_available = sensor_available
        self._latest_event: Optional[RawMotionEvent] = None

        logger.info(f"MotionRecorder initialized (store: {store.base_dir})")

    # ----------------------- Sensor events -----------------------

    def on_motion(self, event: RawMotionEvent) -> bool:
        with self._lock:
            self._latest_event = event
            self._sensor_available = True
        return self.session.ingest(event)

    def on_connect(self):
        with self._lock:
            self._sensor_available = True
        logger.info("Sensor connected")

    def on_disconnect(self):
        with self._lock:
            self._sensor_available = False
            self._latest_event = None
        logger.warning("Sensor disconnected")

    def on_failure(self, error: Exception):
        with self._lock:
            self._sensor_available = False
            self._latest_event = None
        logger.error(f"Sensor failure: {error}")

    @property
    def sensor_available(self) -> bool:
        return self._sensor_available

    # ----------------------- Commands -----------------------

    def start(self, label: str = "") -> float:
        """
        Start recording.

        Raises:
            InvalidStateTransition: If already recording
        """
        return self.session.start(label)

    def stop(self) -> bool:
        """Stop recording; no-op if idle"""
        return self.session.stop()

    def toggle(self, label: str = "") -> SessionState:
        """Single-button start/stop"""
        if self.session.is_active:
            self.stop()
        else:
            self.start(label)
        return self.session.state

    def calibrate(self) -> bool:
        """
        Use the latest raw attitude as the new reference frame.

        Best effort: does nothing when the sensor is unavailable or has not
        delivered a sample yet.

        Returns:
            True if the reference was replaced
        """
        with self._lock:
            event = self._latest_event if self._sensor_available else None
        return self.calibrator.set_reference(event.attitude if event else None)

    def save(self, label: Optional[str] = None) -> SessionFile:
        """
        Serialize the stopped session and persist it.

        Args:
            label: Label for rows and file name (defaults to the start label)

        Returns:
            SessionFile for the saved CSV

        Raises:
            InvalidStateTransition: If a recording is still active
            PersistenceError: If the file could not be written
        """
        session_label, samples = self.session.finished_recording()
        if label is None:
            label = session_label

        session_file = self.store.save(serialize(samples, label), label)
        logger.info(f"Saved {len(samples)} samples to {session_file.file_name}")
        return session_file

    def list(self) -> List[str]:
        return self.store.list()

    def delete(self, file_name: str):
        self.store.delete(file_name)

    def delete_all(self) -> DeleteAllResult:
        return self.store.delete_all()

    def export_targets(self) -> List[Path]:
        return self.store.export_targets()

    # ----------------------- Queries -----------------------

    def elapsed(self) -> float:
        return self.session.elapsed()

    def controls(self) -> ControlState:
        return derive_controls(self._sensor_available, self.session.state)

    def status(self, include_files: bool = True) -> RecorderStatus:
        """
        Current pipeline status.

        Args:
            include_files: List saved files (touches the disk)

        Returns:
            RecorderStatus snapshot
        """
        elapsed = self.session.elapsed()
        return RecorderStatus(
            state=self.session.state,
            label=self.session.label,
            elapsed_seconds=elapsed,
            duration=format_elapsed(elapsed),
            sample_count=len(self.session.buffer),
            dropped_count=self.session.dropped_count,
            sensor_available=self._sensor_available,
            calibrated=self.calibrator.is_calibrated,
            controls=self.controls(),
            saved_files=self.store.list() if include_files else [],
        )

    def get_status_json(self) -> str:
        """Status as JSON for WebSocket broadcast (no disk access)"""
        return json.dumps({
            'type': 'status',
            **self.status(include_files=False).to_dict(),
        })
