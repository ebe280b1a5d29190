import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from core.engine import run_engine
from core.hardware import StrategyRecord
from core.platform_resolver import EngineLocation
from core.progress import ProgressMonitor

logger = logging.getLogger(__name__)

RECOGNITION_LANGUAGE = "auto"
NO_GPU_FLAG = "-ng"


def build_recognition_args(
    location: EngineLocation,
    audio_path: Path,
    output_prefix: Path,
    strategy: StrategyRecord,
) -> List[str]:
    """
    whisper.cpp command line. '--print-colors' must stay off: it writes
    escape codes into the .srt file.
    """
    args = [
        str(location.recognition_engine_path),
        "-m", str(location.model_path),
        "-f", str(audio_path),
        "-l", RECOGNITION_LANGUAGE,
        "-t", str(strategy.thread_count),
        "--print-progress",
        "-otxt",
        "-osrt",
        "-of", str(output_prefix),
    ]
    if not strategy.use_gpu:
        args.append(NO_GPU_FLAG)
    return args


async def run_recognition(
    location: EngineLocation,
    audio_path: Path,
    output_prefix: Path,
    strategy: StrategyRecord,
    on_text: Callable[[str], Awaitable[None]],
    on_progress: Callable[[int], Awaitable[None]],
    timeout: Optional[float] = None,
) -> int:
    """
    Runs the recognition engine over the normalized WAV.
    stdout goes to on_text as live transcript; stderr only feeds the
    progress monitor. Returns the engine's exit code.
    """
    output_prefix.parent.mkdir(parents=True, exist_ok=True)
    args = build_recognition_args(location, audio_path, output_prefix, strategy)
    if not strategy.use_gpu:
        logger.info("GPU disabled for this run (-ng)")
    logger.info(f"Running whisper: {' '.join(args)}")

    monitor = ProgressMonitor(on_progress)
    result = await run_engine(
        args,
        on_stdout=on_text,
        on_stderr_line=monitor.feed,
        timeout=timeout,
        name="whisper",
    )
    if result.exit_code != 0:
        for line in result.stderr_tail:
            logger.error(line)
    return result.exit_code
