import re
from typing import Awaitable, Callable, List

# whisper.cpp --print-progress writes e.g. "whisper_print_progress_callback: progress =  42%"
PROGRESS_PATTERN = re.compile(r"progress\s*=\s*(\d+)%")


def parse_progress(chunk: str) -> List[int]:
    """Returns one percentage per match in the chunk; anything else is dropped."""
    values = []
    for match in PROGRESS_PATTERN.finditer(chunk):
        value = int(match.group(1))
        if 0 <= value <= 100:
            values.append(value)
    return values


class ProgressMonitor:
    """Taps the recognition engine's diagnostic stream for progress events."""

    def __init__(self, on_progress: Callable[[int], Awaitable[None]]):
        self.on_progress = on_progress
        self.last_percent = 0

    async def feed(self, chunk: str) -> int:
        """Emits an event per match and returns how many were emitted."""
        values = parse_progress(chunk)
        for value in values:
            self.last_percent = value
            await self.on_progress(value)
        return len(values)
