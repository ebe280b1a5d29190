import asyncio
import codecs
import logging
import re
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence

from core.errors import SpawnError, StageTimeoutError

logger = logging.getLogger(__name__)

READ_SIZE = 4096
STDERR_TAIL_LINES = 20

_LINE_BREAK = re.compile(r"\r\n|\r|\n")

TextHandler = Callable[[str], Awaitable[None]]


@dataclass
class EngineResult:
    exit_code: int
    stderr_tail: List[str] = field(default_factory=list)


async def _pump_chunks(stream: asyncio.StreamReader, handler: TextHandler):
    """Forwards raw output chunk by chunk without splitting multi-byte characters."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        data = await stream.read(READ_SIZE)
        if not data:
            break
        text = decoder.decode(data)
        if text:
            await handler(text)
    rest = decoder.decode(b"", final=True)
    if rest:
        await handler(rest)


async def _pump_lines(stream: asyncio.StreamReader, handler: Optional[TextHandler], tail: deque):
    """
    Splits output on \\n and \\r (ffmpeg redraws its status line with \\r)
    and hands complete lines to the handler.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    while True:
        data = await stream.read(READ_SIZE)
        if not data:
            break
        buffer += decoder.decode(data)
        parts = _LINE_BREAK.split(buffer)
        buffer = parts.pop()
        for line in parts:
            if not line:
                continue
            tail.append(line)
            if handler:
                await handler(line)
    buffer += decoder.decode(b"", final=True)
    if buffer:
        tail.append(buffer)
        if handler:
            await handler(buffer)


async def run_engine(
    argv: Sequence[str],
    on_stdout: Optional[TextHandler] = None,
    on_stderr_line: Optional[TextHandler] = None,
    timeout: Optional[float] = None,
    name: str = "engine",
) -> EngineResult:
    """
    Runs one engine subprocess to completion without blocking the event loop.
    Both output streams are drained concurrently; no ordering holds between them.
    """
    logger.debug(f"Running {name}: {' '.join(str(a) for a in argv)}")
    try:
        proc = await asyncio.create_subprocess_exec(
            *[str(a) for a in argv],
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise SpawnError(f"{name} failed to start: {e}") from e

    tail: deque = deque(maxlen=STDERR_TAIL_LINES)

    async def _discard(_text: str):
        return None

    async def _drive() -> int:
        await asyncio.gather(
            _pump_chunks(proc.stdout, on_stdout or _discard),
            _pump_lines(proc.stderr, on_stderr_line, tail),
        )
        return await proc.wait()

    try:
        if timeout is None:
            exit_code = await _drive()
        else:
            exit_code = await asyncio.wait_for(_drive(), timeout)
    except asyncio.TimeoutError:
        logger.error(f"{name} exceeded {timeout}s, killing PID {proc.pid}")
        _kill(proc)
        await proc.wait()
        raise StageTimeoutError(f"{name} timed out after {timeout}s")
    except Exception:
        # A failing output handler must not leave the engine running
        _kill(proc)
        await proc.wait()
        raise
    finally:
        _kill(proc)

    logger.debug(f"{name} exited with code {exit_code}")
    return EngineResult(exit_code=exit_code, stderr_tail=list(tail))


def _kill(proc: asyncio.subprocess.Process):
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
