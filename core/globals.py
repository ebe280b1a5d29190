from typing import Optional

from config import AppConfig
from core.job_manager import JobManager
from core.platform_resolver import ensure_executable, resolve_engine_location

job_manager: Optional[JobManager] = None

def init_globals(config: AppConfig):
    """Resolves the engines once and builds the process-wide JobManager."""
    global job_manager
    ensure_executable(config.resource_root)
    job_manager = JobManager(config, resolve_engine_location(config))
