"""
headpose API - HTTP command surface for the motion recording pipeline
FastAPI application hosting a MotionRecorder for a remote UI or sensor bridge

Architecture:
- Sensor Feed: POST /api/motion (batched events) + connect/disconnect notices
- Commands: start/stop/toggle/calibrate/save/delete/delete-all/export/list
- Status Broadcast: WebSocket push of elapsed time and button state @ 10 Hz
- File I/O runs in worker threads, off the event loop
"""

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException
from fastapi.responses import Response
from contextlib import asynccontextmanager
from pydantic import BaseModel
import asyncio
import logging
import time
from typing import List, Optional

from .broadcast import StatusSubscribers, status_broadcast_loop
from .config import RecorderConfig
from .errors import (
    HeadposeError, InvalidStateTransition, NotFound, PersistenceError,
)
from .motion import Attitude, RawMotionEvent, Vector3
from .recorder import MotionRecorder
from .session import SessionStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==========================================
# Global State
# ==========================================

# Global instances (initialized in lifespan)
subscribers = StatusSubscribers()
recorder: Optional[MotionRecorder] = None
broadcast_task = None


# ==========================================
# Data Models
# ==========================================

class Vector3Model(BaseModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class AttitudeModel(BaseModel):
    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0


class MotionEventModel(BaseModel):
    """Raw sensor event"""
    attitude: AttitudeModel
    acceleration: Vector3Model = Vector3Model()
    rotation_rate: Vector3Model = Vector3Model()
    timestamp: Optional[float] = None

    def to_event(self) -> RawMotionEvent:
        return RawMotionEvent(
            attitude=Attitude(**self.attitude.model_dump()),
            acceleration=Vector3(**self.acceleration.model_dump()),
            rotation_rate=Vector3(**self.rotation_rate.model_dump()),
            timestamp=self.timestamp,
        )


class MotionBatchRequest(BaseModel):
    """Batch of sensor events, delivered in order"""
    events: List[MotionEventModel]


class StartRequest(BaseModel):
    label: str = ""


class SaveRequest(BaseModel):
    label: Optional[str] = None


# ==========================================
# Application Lifecycle
# ==========================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    global recorder, broadcast_task

    logger.info("🚀 headpose recorder starting...")

    config = RecorderConfig.from_env()
    store = SessionStore(base_dir=config.sessions_dir, suffix=config.file_suffix)
    recorder = MotionRecorder(store=store)

    broadcast_task = asyncio.create_task(
        status_broadcast_loop(recorder, subscribers, broadcast_rate_hz=config.broadcast_rate_hz)
    )

    logger.info("✓ Recorder initialized")

    yield

    logger.info("🛑 headpose recorder shutting down...")

    if broadcast_task:
        broadcast_task.cancel()
        try:
            await broadcast_task
        except asyncio.CancelledError:
            pass

    if recorder and recorder.session.is_active:
        recorder.stop()

    logger.info("✓ Shutdown complete")


# ==========================================
# FastAPI Application
# ==========================================

app = FastAPI(
    title="headpose API",
    description="Head-motion sensor recording pipeline",
    version="1.0.0",
    lifespan=lifespan
)


def _http_error(e: HeadposeError) -> HTTPException:
    """Map pipeline errors to HTTP status codes"""
    if isinstance(e, InvalidStateTransition):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PersistenceError):
        return HTTPException(status_code=500, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


# ==========================================
# REST API Endpoints
# ==========================================

@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "status": "running",
        "version": "1.0.0",
        "service": "headpose recorder"
    }


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "websocket_clients": len(subscribers),
        "sensor_available": recorder.sensor_available,
        "recording": recorder.session.is_active
    }


@app.get("/api/status")
async def get_status():
    """Current recorder status"""
    try:
        status = await asyncio.to_thread(recorder.status)
    except HeadposeError as e:
        logger.error(f"Error reading status: {e}")
        raise _http_error(e)

    return {
        "success": True,
        **status.to_dict()
    }


@app.post("/api/sensor/connect")
async def sensor_connect():
    """Sensor bridge reports the sensor as available"""
    recorder.on_connect()
    return {"success": True, "sensor_available": True}


@app.post("/api/sensor/disconnect")
async def sensor_disconnect():
    """Sensor bridge reports the sensor as gone"""
    recorder.on_disconnect()
    return {"success": True, "sensor_available": False}


@app.post("/api/motion")
async def ingest_motion(batch: MotionBatchRequest):
    """Feed raw sensor events into the pipeline"""
    accepted = 0
    for event in batch.events:
        if recorder.on_motion(event.to_event()):
            accepted += 1

    return {
        "success": True,
        "received": len(batch.events),
        "accepted": accepted
    }


@app.post("/api/session/start")
async def start_session(request: StartRequest):
    """Start a new recording"""
    logger.info(f"Starting recording with label: '{request.label}'")

    try:
        started_at = recorder.start(request.label)
    except HeadposeError as e:
        logger.error(f"Error starting recording: {e}")
        raise _http_error(e)

    return {
        "success": True,
        "started_at": started_at,
        "status": "active"
    }


@app.post("/api/session/stop")
async def stop_session():
    """Stop the current recording (no-op if idle)"""
    stopped = recorder.stop()
    return {
        "success": True,
        "stopped": stopped,
        "elapsed_seconds": recorder.elapsed()
    }


@app.post("/api/session/toggle")
async def toggle_session(request: StartRequest):
    """Single-button start/stop"""
    state = recorder.toggle(request.label)
    return {
        "success": True,
        "status": state.value
    }


@app.post("/api/calibrate")
async def calibrate():
    """Use the latest sensor orientation as the new reference frame"""
    calibrated = recorder.calibrate()
    return {
        "success": True,
        "calibrated": calibrated
    }


@app.get("/api/sessions")
async def list_sessions():
    """List saved session files"""
    try:
        files = await asyncio.to_thread(recorder.list)
    except HeadposeError as e:
        logger.error(f"Error listing sessions: {e}")
        raise _http_error(e)

    return {
        "success": True,
        "files": files
    }


@app.post("/api/sessions")
async def save_session(request: SaveRequest):
    """Save the stopped recording as CSV"""
    try:
        session_file = await asyncio.to_thread(recorder.save, request.label)
    except HeadposeError as e:
        logger.error(f"Error saving session: {e}")
        raise _http_error(e)

    return {
        "success": True,
        "file_name": session_file.file_name,
        "path": str(session_file.path)
    }


@app.get("/api/sessions/export")
async def export_sessions():
    """Absolute paths of every saved session, for an external exporter"""
    try:
        paths = await asyncio.to_thread(recorder.export_targets)
    except HeadposeError as e:
        logger.error(f"Error resolving export targets: {e}")
        raise _http_error(e)

    return {
        "success": True,
        "paths": [str(p) for p in paths]
    }


@app.get("/api/sessions/{file_name}")
async def download_session(file_name: str):
    """Download one session file"""
    try:
        data = await asyncio.to_thread(recorder.store.load, file_name)
    except HeadposeError as e:
        logger.error(f"Error reading session '{file_name}': {e}")
        raise _http_error(e)

    return Response(
        content=data,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'}
    )


@app.delete("/api/sessions/{file_name}")
async def delete_session(file_name: str):
    """Delete one session file"""
    try:
        await asyncio.to_thread(recorder.delete, file_name)
    except HeadposeError as e:
        logger.warning(f"Error deleting session '{file_name}': {e}")
        raise _http_error(e)

    return {
        "success": True,
        "file_name": file_name
    }


@app.delete("/api/sessions")
async def delete_all_sessions():
    """Delete every session file, reporting per-file failures"""
    try:
        result = await asyncio.to_thread(recorder.delete_all)
    except HeadposeError as e:
        logger.error(f"Error deleting sessions: {e}")
        raise _http_error(e)

    return {
        "success": result.ok,
        "partial": result.partial,
        "attempted": result.attempted,
        "deleted": result.deleted,
        "failed": {name: str(err) for name, err in result.failed.items()}
    }


# ==========================================
# WebSocket Endpoint
# ==========================================

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket connection for status broadcasts"""
    await subscribers.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            logger.debug(f"Received from client: {data}")

    except WebSocketDisconnect:
        subscribers.disconnect(websocket)
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
        subscribers.disconnect(websocket)


# ==========================================
# Run Application
# ==========================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "headpose.api:app",
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
