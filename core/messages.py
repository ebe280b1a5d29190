from typing import Dict

from config import DEFAULT_LANGUAGE

# Status lines sent to the caller, keyed by language tag
MESSAGES: Dict[str, Dict[str, str]] = {
    "cn": {
        "analyzing": "🚀 正在分析系统环境...",
        "gpu_arm64": "检测到 Apple Silicon (M1/M2/M3)，启用 Metal GPU 加速！⚡️",
        "cpu_intel": "检测到 Intel Mac，自动切换至 CPU 多线程稳定模式 (防止乱码)。🛡️",
        "non_mac":   "检测到非 macOS 系统，使用默认加速策略。",
        "done":      "🎉 完成！",
        "result":    "📄 结果: ",
    },
    "en": {
        "analyzing": "🚀 Analyzing system environment...",
        "gpu_arm64": "Detected Apple Silicon (M1/M2/M3). Metal GPU acceleration enabled! ⚡️",
        "cpu_intel": "Detected Intel Mac. Switching to CPU multi-thread stable mode to prevent errors. 🛡️",
        "non_mac":   "Non-macOS system detected. Using default strategy.",
        "done":      "🎉 Finished!",
        "result":    "📄 Result: ",
    },
}


def get_messages(language_tag: str) -> Dict[str, str]:
    """Unknown tags fall back to the default language."""
    return MESSAGES.get(language_tag, MESSAGES[DEFAULT_LANGUAGE])
