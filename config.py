import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import platformdirs

APP_NAME   = "MediaTranscriber"
APP_AUTHOR = "MediaTranscriber"

DEFAULT_PORT     = 47822   # Fixed, uncommon port to avoid collisions
MODEL_FILE       = "ggml-base.bin"
DEFAULT_LANGUAGE = "cn"
LANGUAGES        = {"cn": "中文", "en": "English"}

ENV_PREFIX = "TRANSCRIBER_"

# Repository root doubles as the resource root when running from source
SOURCE_ROOT = Path(__file__).resolve().parent


@dataclass(frozen=True)
class AppConfig:
    """Immutable runtime configuration, built once at startup."""
    resource_root: Path
    temp_dir: Path
    downloads_dir: Path
    log_file: Path
    port: int                                = DEFAULT_PORT
    settle_delay: float                      = 0.0
    stage_timeout: Optional[float]           = None
    include_source_name: bool                = False
    reveal_artifact: bool                    = False
    transcoder_path: Optional[Path]          = None
    recognition_engine_path: Optional[Path]  = None
    model_path: Optional[Path]               = None


def _env(name: str) -> Optional[str]:
    value = os.environ.get(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_path(name: str) -> Optional[Path]:
    value = _env(name)
    return Path(value).expanduser() if value else None


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = _env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {value!r}")


def load_config() -> AppConfig:
    """Builds the AppConfig from platform defaults plus TRANSCRIBER_* overrides."""
    data_dir = Path(platformdirs.user_data_dir(APP_NAME, APP_AUTHOR))
    port = _env("PORT")
    return AppConfig(
        resource_root=_env_path("RESOURCE_ROOT") or SOURCE_ROOT,
        temp_dir=_env_path("TEMP_DIR") or Path(tempfile.gettempdir()),
        downloads_dir=_env_path("DOWNLOADS_DIR") or Path(platformdirs.user_downloads_dir()),
        log_file=_env_path("LOG_FILE") or data_dir / "transcriber.log",
        port=int(port) if port else DEFAULT_PORT,
        settle_delay=_env_float("SETTLE_DELAY", 0.0) or 0.0,
        stage_timeout=_env_float("STAGE_TIMEOUT", None),
        include_source_name=_env_bool("INCLUDE_SOURCE_NAME", False),
        reveal_artifact=_env_bool("REVEAL_ARTIFACT", False),
        transcoder_path=_env_path("TRANSCODER_PATH"),
        recognition_engine_path=_env_path("RECOGNITION_ENGINE_PATH"),
        model_path=_env_path("MODEL_PATH"),
    )
