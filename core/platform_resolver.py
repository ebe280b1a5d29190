import logging
import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from config import AppConfig, MODEL_FILE
from core.errors import UnsupportedPlatformError

logger = logging.getLogger(__name__)

TRANSCODER_BINARY = "ffmpeg"
WHISPER_WINDOWS   = "whisper-win-x64.exe"
WHISPER_MAC_ARM64 = "whisper-mac-arm64"
WHISPER_MAC_X64   = "whisper-mac-x64"

_ARCH_ALIASES = {
    "arm64": "arm64",
    "aarch64": "arm64",
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
}


@dataclass(frozen=True)
class EngineLocation:
    transcoder_path: Path
    recognition_engine_path: Path
    model_path: Path


def normalize_arch(machine: str) -> str:
    """Maps platform.machine() spellings onto 'arm64' / 'x64'."""
    key = (machine or "").strip().lower()
    return _ARCH_ALIASES.get(key, key)


def is_macos(os_name: str) -> bool:
    return os_name == "darwin"


def recognition_binary_name(os_name: str, arch: str) -> str:
    """Picks the whisper binary for (os, arch) or raises UnsupportedPlatformError."""
    arch = normalize_arch(arch)
    if os_name == "win32":
        return WHISPER_WINDOWS
    if is_macos(os_name):
        return WHISPER_MAC_ARM64 if arch == "arm64" else WHISPER_MAC_X64
    raise UnsupportedPlatformError(
        f"No recognition engine bundled for platform={os_name!r} arch={arch!r}"
    )


def resolve_engine_location(
    config: AppConfig,
    os_name: Optional[str] = None,
    machine: Optional[str] = None,
) -> EngineLocation:
    """
    Resolves absolute engine paths once at startup.
    Explicit overrides in the config win over the platform table.
    """
    os_name = os_name or sys.platform
    machine = machine or platform.machine()
    bin_dir = config.resource_root / "bin"

    if config.recognition_engine_path is not None:
        whisper_path = config.recognition_engine_path
    else:
        whisper_path = bin_dir / recognition_binary_name(os_name, machine)

    location = EngineLocation(
        transcoder_path=(config.transcoder_path or bin_dir / TRANSCODER_BINARY).resolve(),
        recognition_engine_path=whisper_path.resolve(),
        model_path=(config.model_path or config.resource_root / "models" / MODEL_FILE).resolve(),
    )
    logger.info(f"Engines resolved for {os_name}/{normalize_arch(machine)}: {location}")
    return location


def known_binaries(resource_root: Path) -> List[Path]:
    bin_dir = resource_root / "bin"
    return [
        bin_dir / TRANSCODER_BINARY,
        bin_dir / WHISPER_MAC_X64,
        bin_dir / WHISPER_MAC_ARM64,
    ]


def ensure_executable(resource_root: Path) -> List[Path]:
    """
    Sets 0o755 on every bundled binary variant (used or not) on POSIX hosts.
    Missing files are skipped; chmod failures are logged, not raised.
    Returns the paths that were updated.
    """
    if os.name != "posix":
        return []

    updated = []
    for path in known_binaries(resource_root):
        if not path.exists():
            continue
        try:
            path.chmod(0o755)
            updated.append(path)
        except OSError as e:
            logger.warning(f"Could not make {path} executable: {e}")
    return updated
