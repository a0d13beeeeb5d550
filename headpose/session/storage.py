"""
Session Store - flat directory of recorded session CSV files

This module handles persistent storage of recorded sessions:
- Atomic saves (temp file + fsync + rename)
- Listing straight from the directory on every call
- Single and bulk deletion with per-file error reporting
- Absolute paths for an external export/share mechanism

File Structure:
sessions/
├── walk-1718000000.csv
├── head_nod-1718000123.csv
└── head_nod-1718000123-1.csv   # same label within the same second

Usage:
    store = SessionStore(base_dir='./data/sessions')

    session_file = store.save(csv_bytes, label='head nod')
    names = store.list()
    store.delete(session_file.file_name)
    result = store.delete_all()
    if result.partial:
        ...
"""

import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Union

from ..errors import NotFound, PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_STEM = "session"

# Leaves room for "-<unix seconds>", a "-N" counter and the suffix within
# the usual 255-byte file name limit
MAX_STEM_BYTES = 235


@dataclass(frozen=True)
class SessionFile:
    """A persisted session CSV"""
    file_name: str
    path: Path


@dataclass
class DeleteAllResult:
    """
    Outcome of SessionStore.delete_all().

    Partial success is reported as such rather than collapsed into a boolean.
    """
    attempted: int = 0
    deleted: List[str] = field(default_factory=list)
    failed: Dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True if every attempted deletion succeeded (including zero attempts)"""
        return not self.failed

    @property
    def partial(self) -> bool:
        """True if some deletions succeeded and some failed"""
        return bool(self.deleted) and bool(self.failed)


def sanitize(label: str) -> str:
    """
    Make a label safe for use in a file name.

    Spaces and path separators become underscores and leading dots are
    dropped (hidden files are never listed); the result is cut to
    MAX_STEM_BYTES of UTF-8 and an empty label falls back to "session".
    """
    stem = label.replace(' ', '_').replace('/', '_').replace(os.sep, '_')
    stem = stem.lstrip('.')
    stem = stem.encode('utf-8')[:MAX_STEM_BYTES].decode('utf-8', errors='ignore')
    return stem or DEFAULT_STEM


class SessionStore:
    """
    Manages the on-disk collection of session files.

    The directory is the source of truth: nothing is cached between calls.
    Saves are serialized by a lock so two saves in the same second cannot
    pick the same file name.
    """

    def __init__(
        self,
        base_dir: Union[str, Path] = './data/sessions',
        suffix: str = '.csv',
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize session store.

        Args:
            base_dir: Directory holding session files (created if missing)
            suffix: Registered file suffix; only these files are listed
            clock: Wall clock for the unix timestamp in file names
        """
        self.base_dir = Path(base_dir).resolve()
        self.suffix = suffix
        self._clock = clock
        self._save_lock = threading.Lock()

        self.base_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"SessionStore initialized (base_dir: {self.base_dir})")

    def path_for(self, file_name: str) -> Path:
        """
        Resolve a listed file name to its absolute path.

        Raises:
            NotFound: If the name is not a plain session file name
        """
        if Path(file_name).name != file_name or not file_name.endswith(self.suffix):
            raise NotFound(file_name)
        return self.base_dir / file_name

    def _unique_name(self, stem: str) -> str:
        base = f"{stem}-{int(self._clock())}"
        name = f"{base}{self.suffix}"
        counter = 1
        while (self.base_dir / name).exists():
            name = f"{base}-{counter}{self.suffix}"
            counter += 1
        return name

    def save(self, data: bytes, label: str) -> SessionFile:
        """
        Persist a serialized session atomically.

        Args:
            data: Serialized CSV bytes
            label: Session label (sanitized into the file name)

        Returns:
            SessionFile for the new file

        Raises:
            PersistenceError: On any I/O failure; no partial file is left
                under the final name and existing files are untouched
        """
        with self._save_lock:
            file_name = sanitize(label)
            tmp_path = None

            try:
                file_name = self._unique_name(file_name)
                final_path = self.base_dir / file_name
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.base_dir, prefix='.save-', suffix='.tmp'
                )
                tmp_path = Path(tmp_name)
                with os.fdopen(fd, 'wb') as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, final_path)
            except OSError as e:
                logger.error(f"Failed to save session '{file_name}': {e}")
                if tmp_path is not None:
                    try:
                        tmp_path.unlink()
                    except FileNotFoundError:
                        pass
                    except OSError as cleanup_error:
                        logger.warning(f"Could not remove temp file {tmp_path}: {cleanup_error}")
                raise PersistenceError(f"Failed to save session '{file_name}'", e) from e

        logger.info(f"✓ Session saved: {final_path} ({len(data)} bytes)")
        return SessionFile(file_name=file_name, path=final_path)

    def list(self) -> List[str]:
        """
        List persisted session files.

        Returns:
            Sorted file names ending with the registered suffix

        Raises:
            PersistenceError: If the directory cannot be read
        """
        try:
            return sorted(
                entry.name
                for entry in self.base_dir.iterdir()
                if entry.is_file()
                and entry.name.endswith(self.suffix)
                and not entry.name.startswith('.')
            )
        except OSError as e:
            logger.error(f"Error listing sessions: {e}")
            raise PersistenceError("Failed to list sessions", e) from e

    def load(self, file_name: str) -> bytes:
        """
        Read a session file's bytes.

        Raises:
            NotFound: If the file does not exist
            PersistenceError: On other I/O failures
        """
        path = self.path_for(file_name)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise NotFound(file_name) from e
        except OSError as e:
            raise PersistenceError(f"Failed to read '{file_name}'", e) from e

    def delete(self, file_name: str):
        """
        Remove one session file.

        Raises:
            NotFound: If the file does not exist
            PersistenceError: On other I/O failures
        """
        path = self.path_for(file_name)
        try:
            path.unlink()
        except FileNotFoundError as e:
            logger.warning(f"Delete requested for missing file '{file_name}'")
            raise NotFound(file_name) from e
        except OSError as e:
            logger.error(f"Failed to delete '{file_name}': {e}")
            raise PersistenceError(f"Failed to delete '{file_name}'", e) from e

        logger.info(f"✓ Session deleted: {file_name}")

    def delete_all(self) -> DeleteAllResult:
        """
        Delete every currently listed file, continuing past failures.

        Returns:
            DeleteAllResult with the deleted names and per-file errors
        """
        result = DeleteAllResult()

        for file_name in self.list():
            result.attempted += 1
            try:
                self.delete(file_name)
                result.deleted.append(file_name)
            except (NotFound, PersistenceError) as e:
                result.failed[file_name] = e

        if result.failed:
            logger.warning(
                f"Deleted {len(result.deleted)}/{result.attempted} sessions; "
                f"failures: {list(result.failed)}"
            )
        else:
            logger.info(f"✓ Deleted {len(result.deleted)} sessions")

        return result

    def export_targets(self) -> List[Path]:
        """Absolute paths of every listed file, for an external exporter"""
        return [self.base_dir / name for name in self.list()]
