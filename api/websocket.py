import json
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from typing import List
import logging

import core.globals
from config import DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)
router = APIRouter()

START_ACTION = "start-transcription"

class ConnectionManager:
    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, message: dict):
        """Send a job event to every connected client."""
        disconnected = []
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.warning(f"Error sending ws message (disconnecting client): {e}")
                disconnected.append(connection)

        for conn in disconnected:
            self.disconnect(conn)

ws_manager = ConnectionManager()

async def handle_client_message(websocket: WebSocket, message: dict):
    """Clients may submit jobs on the same socket they receive events on."""
    if message.get("action") != START_ACTION:
        await websocket.send_json({"event": "error", "message": f"Unknown action: {message.get('action')}"})
        return
    if core.globals.job_manager is None:
        await websocket.send_json({"event": "error", "message": "Job manager not initialized"})
        return

    job = await core.globals.job_manager.submit(
        message.get("source_file_path"),
        message.get("language_tag") or DEFAULT_LANGUAGE,
    )
    if job is not None:
        await websocket.send_json({"event": "queued", "job_id": job.id})

@router.websocket("/ws/progress")
async def websocket_progress(websocket: WebSocket):
    await ws_manager.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await websocket.send_json({"event": "error", "message": "Messages must be JSON objects"})
                continue
            if not isinstance(message, dict):
                await websocket.send_json({"event": "error", "message": "Messages must be JSON objects"})
                continue
            await handle_client_message(websocket, message)
    except WebSocketDisconnect:
        ws_manager.disconnect(websocket)
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
        ws_manager.disconnect(websocket)
