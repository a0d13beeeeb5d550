"""
Status Broadcast - periodic push of recorder status to WebSocket clients

This is the timer tick of the pipeline: it reads the recorder (thread-safe)
and pushes elapsed time, sample counts and button state to every connected
client. It runs as an asyncio task in the FastAPI event loop and never
touches the disk.
"""

import asyncio
import logging
import time
from typing import List

logger = logging.getLogger(__name__)


class StatusSubscribers:
    """
    WebSocket clients receiving status broadcasts.

    A client whose send fails is dropped on that publish; the broadcast
    continues to the remaining clients.
    """

    def __init__(self):
        self.clients: List['WebSocket'] = []

    def __len__(self) -> int:
        return len(self.clients)

    async def connect(self, websocket: 'WebSocket'):
        await websocket.accept()
        self.clients.append(websocket)
        logger.info(f"Status client connected ({len(self.clients)} subscribed)")

    def disconnect(self, websocket: 'WebSocket'):
        if websocket in self.clients:
            self.clients.remove(websocket)
            logger.info(f"Status client disconnected ({len(self.clients)} subscribed)")

    async def publish(self, message: str) -> int:
        """
        Send one status message to every client.

        Returns:
            Number of clients the message reached
        """
        delivered = 0
        for websocket in list(self.clients):
            try:
                await websocket.send_text(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping status client after failed send: {e}")
                self.disconnect(websocket)
        return delivered


async def status_broadcast_loop(
    recorder: 'MotionRecorder',
    subscribers: StatusSubscribers,
    broadcast_rate_hz: float = 10.0
):
    """
    Asyncio task broadcasting recorder status.

    Args:
        recorder: MotionRecorder instance
        subscribers: StatusSubscribers receiving the messages
        broadcast_rate_hz: Broadcast rate in Hz (default 10.0 = 100ms intervals)
    """
    logger.info(f"Status broadcast loop started ({broadcast_rate_hz} Hz)")

    broadcast_interval = 1.0 / broadcast_rate_hz

    while True:
        try:
            loop_start = time.time()

            if subscribers:
                await subscribers.publish(recorder.get_status_json())

            elapsed = time.time() - loop_start
            sleep_time = max(0, broadcast_interval - elapsed)
            if sleep_time > 0:
                await asyncio.sleep(sleep_time)
            else:
                logger.debug(f"Status broadcast exceeded budget: {elapsed*1000:.1f}ms")

        except asyncio.CancelledError:
            logger.info("Status broadcast loop stopped")
            raise
        except Exception as e:
            logger.error(f"Error in status broadcast loop: {e}", exc_info=True)
            await asyncio.sleep(0.1)
