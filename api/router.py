from fastapi import APIRouter

import core.globals
from api.websocket import router as ws_router, ws_manager
from api.transcription import router as transcription_router

api_router = APIRouter()

# Mount the sub-routers
api_router.include_router(ws_router)
api_router.include_router(transcription_router)

@api_router.get("/api/health")
async def health():
    manager = core.globals.job_manager
    return {
        "ready": manager is not None,
        "active_jobs": len(manager.jobs) if manager else 0,
        "listeners": len(ws_manager.active_connections),
    }
