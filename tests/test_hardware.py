"""Tests for the GPU/thread strategy table."""

from __future__ import annotations

import dataclasses

import pytest

from core.hardware import select_strategy
from core.messages import MESSAGES


def test_apple_silicon_uses_gpu_with_four_threads() -> None:
    s = select_strategy(True, "arm64")
    assert (s.use_gpu, s.thread_count) == (True, 4)


def test_intel_mac_forces_cpu_with_eight_threads() -> None:
    s = select_strategy(True, "x64")
    assert (s.use_gpu, s.thread_count) == (False, 8)
    assert s.label == "CPU-stable"


@pytest.mark.parametrize("arch", ["x64", "arm64", "riscv64"])
def test_non_mac_uses_default_strategy(arch: str) -> None:
    s = select_strategy(False, arch)
    assert (s.use_gpu, s.thread_count) == (True, 4)
    assert s.label == "default"


def test_advisory_follows_language_tag() -> None:
    assert select_strategy(True, "x64", "en").advisory_message == MESSAGES["en"]["cpu_intel"]
    assert select_strategy(True, "x64", "cn").advisory_message == MESSAGES["cn"]["cpu_intel"]
    # Unknown tags fall back to the default language
    assert select_strategy(False, "x64", "fr").advisory_message == MESSAGES["cn"]["non_mac"]


def test_strategy_record_is_immutable() -> None:
    s = select_strategy(True, "arm64")
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.use_gpu = False  # type: ignore[misc]
