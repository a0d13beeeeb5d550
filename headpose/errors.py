"""
Error kinds raised by the recording pipeline.

- InvalidStateTransition: programming error (start while active, save while active)
- PersistenceError: I/O failure on save/delete, carries the underlying cause
- NotFound: delete/load of a session file that does not exist
- SerializationError: malformed session CSV on parse
"""

from typing import Optional


class HeadposeError(Exception):
    """Base class for all pipeline errors"""


class InvalidStateTransition(HeadposeError):
    """Recording state machine used out of order"""

    def __init__(self, operation: str, state: str):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while {state}")


class PersistenceError(HeadposeError):
    """Session file I/O failed"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class NotFound(HeadposeError):
    """Session file does not exist"""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"Session file '{file_name}' not found")


class SerializationError(HeadposeError):
    """Session CSV could not be parsed"""
