"""Configuration dataclasses for the recording pipeline and its HTTP host."""
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class RecorderConfig:
    sessions_dir: Path = Path('./data/sessions')
    file_suffix: str = '.csv'
    broadcast_rate_hz: float = 10.0  # WebSocket status pushes

    @classmethod
    def from_env(cls) -> 'RecorderConfig':
        """
        Build config for the HTTP host.

        Environment Variables:
        - HEADPOSE_SESSIONS_DIR: Directory for session CSV files (default: ./data/sessions)
        - HEADPOSE_BROADCAST_HZ: WebSocket status broadcast rate (default: 10)
        """
        config = cls()
        sessions_dir = os.environ.get('HEADPOSE_SESSIONS_DIR')
        if sessions_dir:
            config.sessions_dir = Path(sessions_dir)
        broadcast_hz = os.environ.get('HEADPOSE_BROADCAST_HZ')
        if broadcast_hz:
            config.broadcast_rate_hz = float(broadcast_hz)
        return config
