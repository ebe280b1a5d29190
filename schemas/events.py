from dataclasses import dataclass
from typing import Optional, Union

RESULT_DELIMITER = "=" * 40


@dataclass(frozen=True)
class StatusMessage:
    """Human-readable status line (environment analysis, strategy advisory)."""
    job_id: Optional[str]
    text: str

    def to_message(self) -> dict:
        return {"event": "status", "job_id": self.job_id, "text": self.text}


@dataclass(frozen=True)
class StageChanged:
    job_id: str
    status: str

    def to_message(self) -> dict:
        return {"event": "status_change", "job_id": self.job_id, "status": self.status}


@dataclass(frozen=True)
class TranscriptChunk:
    """Raw text from the recognition engine's primary output, as it arrives."""
    job_id: str
    text: str

    def to_message(self) -> dict:
        return {"event": "transcript", "job_id": self.job_id, "text": self.text}


@dataclass(frozen=True)
class ProgressUpdate:
    job_id: str
    percent: int

    def to_message(self) -> dict:
        return {"event": "progress", "job_id": self.job_id, "percent": self.percent}


@dataclass(frozen=True)
class FinalResult:
    job_id: str
    text: str
    artifact_path: str
    banner: str = ""

    def display_text(self) -> str:
        """Full transcript set apart from previously streamed partial lines."""
        return f"\n{RESULT_DELIMITER}\n{self.banner}{self.artifact_path}\n{RESULT_DELIMITER}\n{self.text}"

    def to_message(self) -> dict:
        return {
            "event": "final_result",
            "job_id": self.job_id,
            "text": self.text,
            "artifact": self.artifact_path,
            "display": self.display_text(),
        }


@dataclass(frozen=True)
class Completed:
    job_id: str

    def to_message(self) -> dict:
        return {"event": "completed", "job_id": self.job_id}


@dataclass(frozen=True)
class Failed:
    job_id: Optional[str]
    error_kind: str
    message: str
    exit_code: Optional[int] = None

    def to_message(self) -> dict:
        return {
            "event": "failed",
            "job_id": self.job_id,
            "error": self.error_kind,
            "message": self.message,
            "exit_code": self.exit_code,
        }


JobEvent = Union[StatusMessage, StageChanged, TranscriptChunk, ProgressUpdate, FinalResult, Completed, Failed]
