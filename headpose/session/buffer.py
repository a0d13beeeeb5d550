"""Thread-safe append-only buffer of motion samples for one session."""
import threading
from typing import List, Optional

from ..motion.models import MotionSample


class SampleBuffer:
    """
    Ordered store of samples for a single recording session.

    Appends are serialized with a lock. Samples are frozen dataclasses, so
    once appended they cannot change; snapshot() returns a copy of the list
    so a reader never sees a half-written append.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self._samples: List[MotionSample] = []

    def append(self, sample: MotionSample) -> None:
        """
        Append a sample.

        Raises:
            ValueError: If the timestamp is older than the last sample's
        """
        with self.lock:
            if self._samples and sample.timestamp < self._samples[-1].timestamp:
                raise ValueError(
                    f"Sample timestamp {sample.timestamp} precedes "
                    f"last timestamp {self._samples[-1].timestamp}"
                )
            self._samples.append(sample)

    def snapshot(self) -> List[MotionSample]:
        with self.lock:
            return list(self._samples)

    def last_timestamp(self) -> Optional[float]:
        with self.lock:
            return self._samples[-1].timestamp if self._samples else None

    def __len__(self) -> int:
        with self.lock:
            return len(self._samples)
