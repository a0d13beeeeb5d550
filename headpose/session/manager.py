"""
Recording Session - start/stop lifecycle for motion capture

This module owns the recording state machine:
- Session lifecycle (start, stop)
- Elapsed-time tracking for the duration display
- Gating of sensor samples into the session buffer

Session States:
1. IDLE: No capture; incoming samples are dropped silently
2. ACTIVE: Capturing; samples are calibrated and appended to the buffer

Transitions:
- start(): IDLE → ACTIVE (fresh buffer). Starting while ACTIVE raises
  InvalidStateTransition and leaves the running session untouched.
- stop(): ACTIVE → IDLE (buffer kept for saving). Idempotent while IDLE.

Threading Model:
- Sensor thread: ingest() at sensor rate
- Timer thread: elapsed() every ~10 ms
- User-action thread: start()/stop()
The session lock is held across the state check and the append, so once
stop() returns no further sample can reach the stopped buffer.

Usage:
    session = RecordingSession(calibrator)
    session.start(label="walk")
    session.ingest(event)          # from the sensor callback
    print(format_elapsed(session.elapsed()))
    session.stop()
    label, samples = session.finished_recording()
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..errors import InvalidStateTransition
from ..motion.calibration import FrameCalibrator
from ..motion.models import MotionSample, RawMotionEvent
from .buffer import SampleBuffer

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Recording lifecycle states"""
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class ControlState:
    """
    Presentation state derived from sensor availability and session state.

    Computed on demand; never stored as independent flags.
    """
    motion_button_title: str
    motion_button_enabled: bool
    reference_button_visible: bool
    is_collecting: bool


def derive_controls(sensor_available: bool, state: SessionState) -> ControlState:
    """
    Map {sensor_available, session_state} to button titles and visibility.

    Args:
        sensor_available: True if the sensor is connected and authorized
        state: Current recording state

    Returns:
        ControlState for the presenter
    """
    active = state is SessionState.ACTIVE
    return ControlState(
        motion_button_title="Stop Tracking" if active else "Start Tracking",
        motion_button_enabled=sensor_available or active,
        reference_button_visible=active,
        is_collecting=active,
    )


def format_elapsed(seconds: float) -> str:
    """
    Render a duration as MM:SS:mmm.

    Example:
        format_elapsed(83.456) -> "01:23:456"
    """
    total_ms = int(round(max(seconds, 0.0) * 1000))
    minutes, remainder_ms = divmod(total_ms, 60_000)
    secs, millis = divmod(remainder_ms, 1000)
    return f"{minutes:02d}:{secs:02d}:{millis:03d}"


class RecordingSession:
    """
    Recording state machine delegating calibrated samples to a SampleBuffer.

    Created once per process; the buffer is replaced on every start().
    """

    def __init__(
        self,
        calibrator: Optional[FrameCalibrator] = None,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic
    ):
        """
        Initialize recording session.

        Args:
            calibrator: FrameCalibrator applied to every ingested attitude
            clock: Wall clock used for sample timestamps and started_at
            monotonic: Monotonic clock used for elapsed time
        """
        self.calibrator = calibrator or FrameCalibrator()
        self._clock = clock
        self._monotonic = monotonic
        self._lock = threading.Lock()

        self.state = SessionState.IDLE
        self.label = ""
        self.started_at: Optional[float] = None
        self.buffer = SampleBuffer()

        self._start_mono: Optional[float] = None
        self._frozen_elapsed = 0.0
        self._last_timestamp: Optional[float] = None
        self.dropped_count = 0

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def start(self, label: str = "") -> float:
        """
        Begin a new recording.

        Args:
            label: Session label remembered as the default for saving

        Returns:
            started_at wall-clock timestamp

        Raises:
            InvalidStateTransition: If a recording is already active
        """
        with self._lock:
            if self.state is SessionState.ACTIVE:
                logger.error("Cannot start recording - session already active")
                raise InvalidStateTransition("start", self.state.value)

            self.buffer = SampleBuffer()
            self.label = label
            self.started_at = self._clock()
            self._start_mono = self._monotonic()
            self._frozen_elapsed = 0.0
            self._last_timestamp = None
            self.dropped_count = 0
            self.state = SessionState.ACTIVE

        logger.info(f"✓ Recording started (label: '{label}')")
        return self.started_at

    def ingest(self, event: RawMotionEvent) -> bool:
        """
        Calibrate a raw event and append it while ACTIVE.

        Safe to call from the sensor callback thread. Events arriving while
        IDLE are discarded without error.

        Args:
            event: Raw sensor event

        Returns:
            True if the sample was appended, False if dropped
        """
        if not self.is_active:
            self._drop()
            return False

        attitude = self.calibrator.calibrate(event.attitude)

        with self._lock:
            if self.state is not SessionState.ACTIVE:
                self.dropped_count += 1
                return False

            timestamp = event.timestamp if event.timestamp is not None else self._clock()
            # Wall clock may step backwards; keep timestamps non-decreasing
            if self._last_timestamp is not None and timestamp < self._last_timestamp:
                timestamp = self._last_timestamp
            self._last_timestamp = timestamp

            self.buffer.append(MotionSample(
                timestamp=timestamp,
                acceleration=event.acceleration,
                rotation_rate=event.rotation_rate,
                attitude=attitude,
            ))
        return True

    def _drop(self):
        with self._lock:
            self.dropped_count += 1
        logger.debug("Sample dropped - no active recording")

    def stop(self) -> bool:
        """
        End the current recording, keeping its buffer for saving.

        Returns:
            True if a recording was stopped, False if already IDLE
        """
        with self._lock:
            if self.state is not SessionState.ACTIVE:
                logger.debug("Stop ignored - no active recording")
                return False

            self._frozen_elapsed = self._monotonic() - self._start_mono
            self.state = SessionState.IDLE
            count = len(self.buffer)

        logger.info(
            f"✓ Recording stopped | Samples: {count} | "
            f"Duration: {format_elapsed(self._frozen_elapsed)}"
        )
        return True

    def finished_recording(self) -> Tuple[str, List[MotionSample]]:
        """
        Label and samples of the stopped recording, read under the session lock.

        Returns:
            (label, samples) of the most recent recording

        Raises:
            InvalidStateTransition: If a recording is still active
        """
        with self._lock:
            if self.state is SessionState.ACTIVE:
                logger.error("Cannot save - recording still active")
                raise InvalidStateTransition("save", self.state.value)
            return self.label, self.buffer.snapshot()

    def elapsed(self) -> float:
        """
        Seconds since start while ACTIVE, else the value frozen at stop.
        """
        with self._lock:
            if self.state is SessionState.ACTIVE:
                return self._monotonic() - self._start_mono
            return self._frozen_elapsed
