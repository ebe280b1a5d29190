from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional

import core.globals
from config import DEFAULT_LANGUAGE

router = APIRouter(prefix="/api", tags=["transcription"])

class TranscriptionRequest(BaseModel):
    source_file_path: Optional[str] = None
    language_tag: str = DEFAULT_LANGUAGE

def _manager():
    if core.globals.job_manager is None:
        raise HTTPException(status_code=503, detail="Job manager not initialized")
    return core.globals.job_manager

@router.post("/transcription")
async def submit_transcription(req: TranscriptionRequest):
    """Queues a job; progress and results arrive over /ws/progress."""
    manager = _manager()
    # Unknown tags still run; their status text falls back to the default language
    job = await manager.submit(req.source_file_path, req.language_tag)
    if job is None:
        raise HTTPException(status_code=400, detail="MissingInputError: no source file path supplied")
    return {"job_id": job.id, "status": job.status.value}

@router.get("/transcription/current")
async def current_jobs():
    manager = _manager()
    return {"jobs": [job.to_dict() for job in manager.jobs.values()]}

@router.get("/transcription/{id}")
async def get_job(id: str):
    job = _manager().get_job(id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found or already finished")
    return job.to_dict()

@router.get("/system")
async def system_info(language_tag: str = DEFAULT_LANGUAGE):
    """Engine paths and the hardware strategy a new job would get."""
    manager = _manager()
    strategy = manager.strategy_for(language_tag)
    location = manager.location
    return {
        "platform": manager.os_name,
        "arch": manager.arch,
        "transcoder": str(location.transcoder_path),
        "recognition_engine": str(location.recognition_engine_path),
        "model": str(location.model_path),
        "use_gpu": strategy.use_gpu,
        "threads": strategy.thread_count,
        "strategy": strategy.label,
        "advisory": strategy.advisory_message,
    }
