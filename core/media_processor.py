import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from core.engine import run_engine
from core.errors import TranscodeExitError

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000


def build_transcode_args(transcoder_path: Path, source_path: str, output_path: Path) -> List[str]:
    """ffmpeg command producing Whisper-compatible 16kHz, mono, 16-bit WAV."""
    return [
        str(transcoder_path),
        "-i", str(source_path),
        "-ar", str(SAMPLE_RATE),  # 16 kHz sample rate
        "-ac", "1",               # Mono channel
        "-c:a", "pcm_s16le",      # 16-bit PCM
        "-y",                     # Overwrite output
        str(output_path),
    ]


def _output_ready(output_path: Path) -> bool:
    try:
        return output_path.is_file() and output_path.stat().st_size > 0
    except OSError:
        return False


async def transcode(
    transcoder_path: Path,
    source_path: str,
    output_path: Path,
    timeout: Optional[float] = None,
    settle_delay: float = 0.0,
) -> Path:
    """
    Normalizes the source media into the job's temp WAV.
    Returns only once the process has exited cleanly and the WAV is on disk,
    so the recognition stage never reads a half-written file.
    Raises SpawnError, StageTimeoutError or TranscodeExitError.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    args = build_transcode_args(transcoder_path, source_path, output_path)

    result = await run_engine(args, timeout=timeout, name="ffmpeg")

    if result.exit_code != 0:
        logger.error(f"FFmpeg extraction failed for {source_path} (code {result.exit_code})")
        for line in result.stderr_tail:
            logger.error(line)
        detail = result.stderr_tail[-1] if result.stderr_tail else "unsupported or malformed input"
        raise TranscodeExitError(
            f"Transcoding failed (code {result.exit_code}): {detail}",
            exit_code=result.exit_code,
        )

    if settle_delay > 0:
        await asyncio.sleep(settle_delay)

    if not _output_ready(output_path):
        raise TranscodeExitError(
            f"Transcoder exited cleanly but produced no audio at {output_path}",
            exit_code=result.exit_code,
        )

    logger.info(f"Transcoded {source_path} -> {output_path}")
    return output_path
