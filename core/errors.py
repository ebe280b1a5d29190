from typing import Optional


class PipelineError(Exception):
    """Base error for the transcription pipeline. Always terminal for the job."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code

    @property
    def kind(self) -> str:
        return type(self).__name__


class MissingInputError(PipelineError):
    """Raised when a job is submitted without a source file path."""


class UnsupportedPlatformError(PipelineError):
    """Raised when no engine binary is known for the host OS/architecture."""


class SpawnError(PipelineError):
    """Raised when an engine binary cannot be launched (missing or not executable)."""


class TranscodeExitError(PipelineError):
    """Raised when the transcoder exits non-zero or leaves no output behind."""


class RecognitionExitError(PipelineError):
    """Raised when the recognition engine exits non-zero."""


class MissingArtifactError(PipelineError):
    """Raised when recognition exits cleanly but the transcript file is absent."""


class StageTimeoutError(PipelineError):
    """Raised when an engine exceeds the configured stage timeout and is killed."""
