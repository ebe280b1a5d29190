"""Shared fixtures: an isolated AppConfig and fake ffmpeg/whisper engines."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from config import AppConfig
from core.platform_resolver import EngineLocation

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="fake engines are POSIX shell scripts")

FAKE_FFMPEG = """#!/bin/sh
echo "$@" > "$0.args"
for last; do :; done
printf 'RIFF0000WAVEfmt ' > "$last"
exit 0
"""

FAKE_FFMPEG_BAD_INPUT = """#!/bin/sh
echo "$@" > "$0.args"
echo "Invalid data found when processing input" >&2
exit 1
"""

FAKE_FFMPEG_NO_OUTPUT = """#!/bin/sh
exit 0
"""

FAKE_ENGINE_HANGS = """#!/bin/sh
exec sleep 5
"""


def fake_whisper_script(exit_code: int = 0, transcript: str | None = "hello world") -> str:
    write = ""
    if transcript is not None:
        write = "printf '%s\\n' '" + transcript + "' > \"$prefix.txt\"\n"
        write += "printf '1\\n00:00:00,000 --> 00:00:01,000\\n%s\\n' '" + transcript + "' > \"$prefix.srt\"\n"
    return (
        "#!/bin/sh\n"
        'echo "$@" > "$0.args"\n'
        'prefix=""\n'
        'while [ $# -gt 0 ]; do\n'
        '  if [ "$1" = "-of" ]; then prefix="$2"; fi\n'
        "  shift\n"
        "done\n"
        "printf 'whisper_init_from_file: loading model\\n' >&2\n"
        "printf '[00:00:00.000 --> 00:00:01.000]   hello world\\n'\n"
        "printf 'whisper_print_progress_callback: progress =  42%%\\n' >&2\n"
        + write
        + f"exit {exit_code}\n"
    )


def write_engine(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    path.chmod(0o755)
    return path


def recorded_args(engine: Path) -> list[str]:
    return (engine.parent / (engine.name + ".args")).read_text(encoding="utf-8").split()


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        resource_root=tmp_path / "resources",
        temp_dir=tmp_path / "tmp",
        downloads_dir=tmp_path / "downloads",
        log_file=tmp_path / "transcriber.log",
    )


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    p = tmp_path / "interview.mp4"
    p.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return p


@pytest.fixture
def engines(tmp_path: Path) -> EngineLocation:
    bin_dir = tmp_path / "resources" / "bin"
    model = tmp_path / "resources" / "models" / "ggml-base.bin"
    model.parent.mkdir(parents=True, exist_ok=True)
    model.write_bytes(b"ggml")
    return EngineLocation(
        transcoder_path=write_engine(bin_dir / "ffmpeg", FAKE_FFMPEG),
        recognition_engine_path=write_engine(bin_dir / "whisper-mac-x64", fake_whisper_script()),
        model_path=model,
    )


class EventRecorder:
    """Collects emitted reply-channel messages in order."""

    def __init__(self) -> None:
        self.messages: list[dict] = []

    async def __call__(self, message: dict) -> None:
        self.messages.append(message)

    def of(self, event: str) -> list[dict]:
        return [m for m in self.messages if m["event"] == event]

    def names(self) -> list[str]:
        return [m["event"] for m in self.messages]


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
