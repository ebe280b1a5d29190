import logging
import subprocess
import sys
from pathlib import Path
from typing import Awaitable, Callable, List

from core.errors import MissingArtifactError, PipelineError, RecognitionExitError
from core.messages import get_messages
from schemas.events import Completed, Failed, FinalResult, JobEvent
from schemas.models import JobStatus, TranscriptionJob

logger = logging.getLogger(__name__)

Emitter = Callable[[JobEvent], Awaitable[None]]


def reveal_command(path: Path, os_name: str = sys.platform) -> List[str]:
    if os_name == "darwin":
        return ["open", "-R", str(path)]
    if os_name == "win32":
        return ["explorer", f"/select,{path}"]
    return ["xdg-open", str(path.parent)]


def reveal_in_file_manager(path: Path):
    """Best effort; a missing file manager must not fail a finished job."""
    try:
        subprocess.Popen(
            reveal_command(path),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        logger.warning(f"Could not reveal {path}: {e}")


class ResultReporter:
    """Turns the recognition outcome into the job's terminal events."""

    def __init__(self, emit: Emitter, reveal_artifact: bool = False):
        self.emit = emit
        self.reveal_artifact = reveal_artifact

    async def report(self, job: TranscriptionJob, exit_code: int) -> JobStatus:
        if exit_code != 0:
            return await self.report_failure(
                job,
                RecognitionExitError(f"Recognition engine exited with code {exit_code}", exit_code=exit_code),
            )

        artifact = job.transcript_path
        if not artifact.is_file():
            return await self.report_failure(
                job,
                MissingArtifactError(f"Recognition finished but {artifact} was not written", exit_code=0),
            )

        text = artifact.read_text(encoding="utf-8", errors="replace")
        t = get_messages(job.language_tag)
        job.advance(JobStatus.COMPLETED)
        await self.emit(FinalResult(
            job_id=job.id,
            text=text,
            artifact_path=str(artifact),
            banner=f"{t['done']}\n{t['result']}",
        ))
        await self.emit(Completed(job_id=job.id))
        logger.info(f"Job {job.id} completed: {artifact}")

        if self.reveal_artifact:
            reveal_in_file_manager(artifact)
        return job.status

    async def report_failure(self, job: TranscriptionJob, error: PipelineError) -> JobStatus:
        if job.status == JobStatus.TRANSCODING:
            job.advance(JobStatus.TRANSCODE_FAILED)
        elif job.status == JobStatus.RECOGNIZING:
            job.advance(JobStatus.RECOGNITION_FAILED)
        job.error = error.message
        logger.error(f"Job {job.id} failed in {job.status.value}: {error.kind}: {error.message}")
        await self.emit(Failed(
            job_id=job.id,
            error_kind=error.kind,
            message=error.message,
            exit_code=error.exit_code,
        ))
        return job.status
