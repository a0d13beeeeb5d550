"""
Session Management - recording lifecycle, CSV serialization and file storage
"""
from .buffer import SampleBuffer
from .manager import (
    RecordingSession, SessionState, ControlState, derive_controls, format_elapsed,
)
from .serializer import serialize, parse, HEADER
from .storage import SessionStore, SessionFile, DeleteAllResult, sanitize

__all__ = [
    'SampleBuffer',
    'RecordingSession', 'SessionState', 'ControlState', 'derive_controls', 'format_elapsed',
    'serialize', 'parse', 'HEADER',
    'SessionStore', 'SessionFile', 'DeleteAllResult', 'sanitize',
]
