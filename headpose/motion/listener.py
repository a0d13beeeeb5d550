"""
Motion Listener - consumer interface for sensor callbacks

The sensor collaborator delivers four kinds of events. Anything that wants
to receive them implements one method per event kind; MotionRecorder is the
main implementation.
"""

from abc import ABC, abstractmethod

from .models import RawMotionEvent


class MotionListener(ABC):
    """Receives sensor events; may be called from any thread"""

    @abstractmethod
    def on_motion(self, event: RawMotionEvent):
        """New orientation/acceleration update"""

    @abstractmethod
    def on_connect(self):
        """Sensor became available"""

    @abstractmethod
    def on_disconnect(self):
        """Sensor went away"""

    @abstractmethod
    def on_failure(self, error: Exception):
        """Sensor reported an error"""
