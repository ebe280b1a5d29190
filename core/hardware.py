from dataclasses import dataclass

from config import DEFAULT_LANGUAGE
from core.messages import get_messages
from core.platform_resolver import normalize_arch


@dataclass(frozen=True)
class StrategyRecord:
    """GPU/thread decision for one job. Never mutated once computed."""
    use_gpu: bool
    thread_count: int
    label: str
    advisory_message: str


def select_strategy(is_macos: bool, arch: str, language_tag: str = DEFAULT_LANGUAGE) -> StrategyRecord:
    """
    Pure function of host facts.
    Intel Macs run on CPU with more threads: their GPU half-precision path
    corrupts the decoded text.
    """
    t = get_messages(language_tag)
    if is_macos:
        if normalize_arch(arch) == "arm64":
            return StrategyRecord(True, 4, "GPU-accelerated", t["gpu_arm64"])
        return StrategyRecord(False, 8, "CPU-stable", t["cpu_intel"])
    return StrategyRecord(True, 4, "default", t["non_mac"])
