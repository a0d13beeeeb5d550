"""
headpose - motion-sensor recording pipeline

Calibrates head-tracking orientation samples, buffers them during timed
recording sessions and stores each session as a labeled CSV file.
"""
from .errors import (
    HeadposeError, InvalidStateTransition, PersistenceError, NotFound, SerializationError,
)
from .recorder import MotionRecorder, RecorderStatus

__all__ = [
    'HeadposeError', 'InvalidStateTransition', 'PersistenceError', 'NotFound',
    'SerializationError', 'MotionRecorder', 'RecorderStatus',
]
