import asyncio
import logging
import platform
import sys
from typing import Awaitable, Callable, Dict, List, Optional

from config import AppConfig, DEFAULT_LANGUAGE
from core.errors import MissingInputError, PipelineError
from core.hardware import StrategyRecord, select_strategy
from core.media_processor import transcode
from core.messages import get_messages
from core.platform_resolver import EngineLocation, is_macos, normalize_arch
from core.reporter import ResultReporter
from core.transcriber import run_recognition
from schemas.events import Failed, JobEvent, ProgressUpdate, StageChanged, StatusMessage, TranscriptChunk
from schemas.models import JobStatus, TranscriptionJob

logger = logging.getLogger(__name__)


class JobManager:
    def __init__(
        self,
        config: AppConfig,
        location: EngineLocation,
        os_name: Optional[str] = None,
        machine: Optional[str] = None,
    ):
        self.config = config
        self.location = location
        self.os_name = os_name or sys.platform
        self.arch = normalize_arch(machine or platform.machine())
        # Only jobs that have not reached a terminal state
        self.jobs: Dict[str, TranscriptionJob] = {}
        self.event_callbacks: List[Callable[[dict], Awaitable[None]]] = []
        self.reporter = ResultReporter(self.emit, reveal_artifact=config.reveal_artifact)

        # One worker drains the queue, so jobs run strictly one at a time
        self._process_queue_task = None
        self._job_queue: asyncio.Queue = asyncio.Queue()

    def add_event_callback(self, callback: Callable[[dict], Awaitable[None]]):
        self.event_callbacks.append(callback)

    async def emit(self, event: JobEvent):
        message = event.to_message()
        for cb in self.event_callbacks:
            try:
                await cb(message)
            except Exception as e:
                logger.error(f"Error in event callback: {e}")

    async def start(self):
        """Starts the background task that processes queued jobs."""
        if self._process_queue_task is None:
            self._process_queue_task = asyncio.create_task(self._process_jobs())

    async def stop(self):
        if self._process_queue_task:
            self._process_queue_task.cancel()
            try:
                await self._process_queue_task
            except asyncio.CancelledError:
                pass
            self._process_queue_task = None

    def strategy_for(self, language_tag: str = DEFAULT_LANGUAGE) -> StrategyRecord:
        return select_strategy(is_macos(self.os_name), self.arch, language_tag)

    def create_job(self, source_path: str, language_tag: str = DEFAULT_LANGUAGE) -> TranscriptionJob:
        strategy = self.strategy_for(language_tag)
        job = TranscriptionJob.create(source_path, self.config, strategy, language_tag)
        # Timestamps name the job's files; step past an id that is still live
        while job.id in self.jobs:
            job = TranscriptionJob.create(
                source_path, self.config, strategy, language_tag,
                created_at_ms=job.created_at_ms + 1,
            )
        return job

    async def submit(self, source_path: Optional[str], language_tag: str = DEFAULT_LANGUAGE) -> Optional[TranscriptionJob]:
        """
        Queues one job. An empty source path is rejected with a single
        MissingInputError event and nothing is spawned.
        """
        if not source_path or not str(source_path).strip():
            error = MissingInputError("No source file path supplied")
            logger.warning(error.message)
            await self.emit(Failed(job_id=None, error_kind=error.kind, message=error.message))
            return None

        job = self.create_job(str(source_path), language_tag or DEFAULT_LANGUAGE)
        self.jobs[job.id] = job
        self._job_queue.put_nowait(job)
        logger.info(f"Queued job {job.id} for {job.source_path}")
        return job

    def get_job(self, job_id: str) -> Optional[TranscriptionJob]:
        return self.jobs.get(job_id)

    async def _process_jobs(self):
        """Continuously pulls jobs from the queue and processes them one by one."""
        while True:
            try:
                job: TranscriptionJob = await self._job_queue.get()
                await self.run_job(job)
                self._job_queue.task_done()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error processing job queue: {e}")

    async def _advance(self, job: TranscriptionJob, status: JobStatus):
        job.advance(status)
        await self.emit(StageChanged(job_id=job.id, status=status.value))

    async def run_job(self, job: TranscriptionJob) -> JobStatus:
        """Transcode, then recognize, then report. Every outcome ends in one terminal event."""
        t = get_messages(job.language_tag)
        try:
            await self.emit(StatusMessage(job.id, t["analyzing"]))
            logger.info(f"[system] arch={self.arch}, strategy={job.strategy.label}")
            await self.emit(StatusMessage(job.id, job.strategy.advisory_message))

            await self._advance(job, JobStatus.TRANSCODING)
            await transcode(
                self.location.transcoder_path,
                job.source_path,
                job.temp_audio_path,
                timeout=self.config.stage_timeout,
                settle_delay=self.config.settle_delay,
            )

            await self._advance(job, JobStatus.RECOGNIZING)

            async def on_text(text: str):
                await self.emit(TranscriptChunk(job_id=job.id, text=text))

            async def on_progress(percent: int):
                job.progress_percent = percent
                await self.emit(ProgressUpdate(job_id=job.id, percent=percent))

            exit_code = await run_recognition(
                self.location,
                job.temp_audio_path,
                job.output_prefix,
                job.strategy,
                on_text=on_text,
                on_progress=on_progress,
                timeout=self.config.stage_timeout,
            )
            await self.reporter.report(job, exit_code)
        except PipelineError as e:
            await self.reporter.report_failure(job, e)
        except Exception as e:
            logger.exception(f"Unexpected error in job {job.id}: {e}")
            await self.reporter.report_failure(job, PipelineError(str(e)))
        finally:
            self.jobs.pop(job.id, None)
        return job.status
