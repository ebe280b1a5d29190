import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from config import AppConfig, DEFAULT_LANGUAGE
from core.hardware import StrategyRecord


class JobStatus(str, Enum):
    CREATED            = "created"
    TRANSCODING        = "transcoding"
    TRANSCODE_FAILED   = "transcode_failed"
    RECOGNIZING        = "recognizing"
    RECOGNITION_FAILED = "recognition_failed"
    COMPLETED          = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    JobStatus.TRANSCODE_FAILED,
    JobStatus.RECOGNITION_FAILED,
    JobStatus.COMPLETED,
})

# Stages only move forward; there is no cancel edge
TRANSITIONS = {
    JobStatus.CREATED:     {JobStatus.TRANSCODING},
    JobStatus.TRANSCODING: {JobStatus.TRANSCODE_FAILED, JobStatus.RECOGNIZING},
    JobStatus.RECOGNIZING: {JobStatus.RECOGNITION_FAILED, JobStatus.COMPLETED},
}


class InvalidTransitionError(ValueError):
    pass


def output_prefix_for(config: AppConfig, source_path: str, created_at_ms: int) -> Path:
    """downloads/trans_result_<ts>, or trans_result_<stem>_<ts> when source names are enabled."""
    if config.include_source_name:
        stem = Path(source_path).stem
        return config.downloads_dir / f"trans_result_{stem}_{created_at_ms}"
    return config.downloads_dir / f"trans_result_{created_at_ms}"


@dataclass
class TranscriptionJob:
    source_path: str
    created_at_ms: int
    temp_audio_path: Path
    output_prefix: Path
    strategy: StrategyRecord
    language_tag: str        = DEFAULT_LANGUAGE
    status: JobStatus        = JobStatus.CREATED
    progress_percent: int    = 0
    error: Optional[str]     = field(default=None, repr=False)

    @classmethod
    def create(
        cls,
        source_path: str,
        config: AppConfig,
        strategy: StrategyRecord,
        language_tag: str = DEFAULT_LANGUAGE,
        created_at_ms: Optional[int] = None,
    ) -> "TranscriptionJob":
        ts = created_at_ms if created_at_ms is not None else int(time.time() * 1000)
        return cls(
            source_path=source_path,
            created_at_ms=ts,
            temp_audio_path=config.temp_dir / f"temp_{ts}.wav",
            output_prefix=output_prefix_for(config, source_path, ts),
            strategy=strategy,
            language_tag=language_tag,
        )

    @property
    def id(self) -> str:
        return str(self.created_at_ms)

    @property
    def transcript_path(self) -> Path:
        return self.output_prefix.with_name(self.output_prefix.name + ".txt")

    @property
    def subtitle_path(self) -> Path:
        return self.output_prefix.with_name(self.output_prefix.name + ".srt")

    def advance(self, new_status: JobStatus):
        if new_status not in TRANSITIONS.get(self.status, set()):
            raise InvalidTransitionError(
                f"Job {self.id}: cannot move from {self.status.value} to {new_status.value}"
            )
        self.status = new_status

    def to_dict(self) -> dict:
        return {
            "job_id": self.id,
            "source_path": self.source_path,
            "language_tag": self.language_tag,
            "status": self.status.value,
            "progress": self.progress_percent,
            "temp_audio_path": str(self.temp_audio_path),
            "output_prefix": str(self.output_prefix),
            "use_gpu": self.strategy.use_gpu,
            "threads": self.strategy.thread_count,
        }
