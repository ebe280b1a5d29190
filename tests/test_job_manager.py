"""End-to-end orchestration tests with fake engines."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

import core.job_manager as job_manager_module
from config import AppConfig
from conftest import (
    FAKE_FFMPEG_BAD_INPUT,
    EventRecorder,
    fake_whisper_script,
    posix_only,
    recorded_args,
    write_engine,
)
from core.job_manager import JobManager
from core.platform_resolver import EngineLocation
from schemas.models import JobStatus


def _manager(config: AppConfig, location: EngineLocation, recorder: EventRecorder, machine: str = "x86_64") -> JobManager:
    manager = JobManager(config, location, os_name="darwin", machine=machine)
    manager.add_event_callback(recorder)
    return manager


@pytest.mark.parametrize("source", ["", "   ", None])
def test_missing_input_spawns_nothing(
    monkeypatch: pytest.MonkeyPatch,
    app_config: AppConfig,
    engines: EngineLocation,
    recorder: EventRecorder,
    source: str | None,
) -> None:
    async def must_not_run(*_args: object, **_kwargs: object) -> None:
        raise AssertionError("no subprocess may be spawned")

    monkeypatch.setattr(job_manager_module, "transcode", must_not_run)
    monkeypatch.setattr(job_manager_module, "run_recognition", must_not_run)

    async def run() -> tuple[object, int]:
        manager = _manager(app_config, engines, recorder)
        job = await manager.submit(source)
        return job, manager._job_queue.qsize()

    job, queued = asyncio.run(run())

    assert job is None
    assert queued == 0
    assert recorder.names() == ["failed"]
    assert recorder.messages[0]["error"] == "MissingInputError"


@posix_only
def test_full_pipeline_on_intel_mac(
    app_config: AppConfig, engines: EngineLocation, source_file: Path, recorder: EventRecorder,
) -> None:
    async def run() -> tuple[JobManager, JobStatus, str]:
        manager = _manager(app_config, engines, recorder)
        job = manager.create_job(str(source_file), "en")
        manager.jobs[job.id] = job
        status = await manager.run_job(job)
        return manager, status, job.id

    manager, status, job_id = asyncio.run(run())

    assert status == JobStatus.COMPLETED
    assert job_id not in manager.jobs
    names = recorder.names()
    assert names[:4] == ["status", "status", "status_change", "status_change"]
    assert [m["status"] for m in recorder.of("status_change")] == ["transcoding", "recognizing"]
    assert "hello world" in "".join(m["text"] for m in recorder.of("transcript"))
    assert [m["percent"] for m in recorder.of("progress")] == [42]
    assert names[-2:] == ["final_result", "completed"]
    assert names.count("completed") == 1
    assert "failed" not in names
    assert "-ng" in recorded_args(engines.recognition_engine_path)
    assert (app_config.temp_dir / f"temp_{job_id}.wav").exists()
    assert (app_config.downloads_dir / f"trans_result_{job_id}.srt").exists()


@posix_only
def test_apple_silicon_keeps_gpu(
    app_config: AppConfig, engines: EngineLocation, source_file: Path, recorder: EventRecorder,
) -> None:
    async def run() -> JobStatus:
        manager = _manager(app_config, engines, recorder, machine="arm64")
        return await manager.run_job(manager.create_job(str(source_file)))

    assert asyncio.run(run()) == JobStatus.COMPLETED
    args = recorded_args(engines.recognition_engine_path)
    assert "-ng" not in args
    assert args[args.index("-t") + 1] == "4"


@posix_only
def test_transcode_failure_stops_before_recognition(
    app_config: AppConfig, engines: EngineLocation, source_file: Path, recorder: EventRecorder,
) -> None:
    write_engine(engines.transcoder_path, FAKE_FFMPEG_BAD_INPUT)

    async def run() -> JobStatus:
        manager = _manager(app_config, engines, recorder)
        return await manager.run_job(manager.create_job(str(source_file)))

    assert asyncio.run(run()) == JobStatus.TRANSCODE_FAILED
    assert [m["status"] for m in recorder.of("status_change")] == ["transcoding"]
    failed = recorder.of("failed")
    assert len(failed) == 1
    assert failed[0]["error"] == "TranscodeExitError"
    assert failed[0]["exit_code"] == 1
    assert not (engines.recognition_engine_path.parent / "whisper-mac-x64.args").exists()


@posix_only
def test_recognition_exit_code_is_reported_once(
    app_config: AppConfig, engines: EngineLocation, source_file: Path, recorder: EventRecorder,
) -> None:
    write_engine(engines.recognition_engine_path, fake_whisper_script(exit_code=2, transcript=None))

    async def run() -> JobStatus:
        manager = _manager(app_config, engines, recorder)
        return await manager.run_job(manager.create_job(str(source_file)))

    assert asyncio.run(run()) == JobStatus.RECOGNITION_FAILED
    failed = recorder.of("failed")
    assert len(failed) == 1
    assert failed[0]["exit_code"] == 2
    assert recorder.of("completed") == []


def test_missing_engine_binary_fails_the_job(
    app_config: AppConfig, tmp_path: Path, source_file: Path, recorder: EventRecorder,
) -> None:
    location = EngineLocation(tmp_path / "nope" / "ffmpeg", tmp_path / "nope" / "whisper", tmp_path / "m.bin")

    async def run() -> JobStatus:
        manager = _manager(app_config, location, recorder)
        return await manager.run_job(manager.create_job(str(source_file)))

    assert asyncio.run(run()) == JobStatus.TRANSCODE_FAILED
    assert [m["error"] for m in recorder.of("failed")] == ["SpawnError"]


@posix_only
def test_worker_runs_submitted_jobs_one_at_a_time(
    app_config: AppConfig, engines: EngineLocation, source_file: Path, recorder: EventRecorder,
) -> None:
    async def run() -> list[str]:
        manager = _manager(app_config, engines, recorder)
        await manager.start()
        first = await manager.submit(str(source_file))
        second = await manager.submit(str(source_file))
        assert first is not None and second is not None
        assert first.id != second.id
        await asyncio.wait_for(manager._job_queue.join(), timeout=10)
        await manager.stop()
        return [first.id, second.id]

    ids = asyncio.run(run())

    completed = [m["job_id"] for m in recorder.of("completed")]
    assert completed == ids
    # Second job only starts after the first has finished
    first_done = recorder.messages.index(recorder.of("completed")[0])
    second_start = next(
        i for i, m in enumerate(recorder.messages) if m["job_id"] == ids[1] and m["event"] == "status"
    )
    assert second_start > first_done


def test_failing_callback_does_not_break_emission(
    app_config: AppConfig, engines: EngineLocation, recorder: EventRecorder,
) -> None:
    async def broken(_message: dict) -> None:
        raise RuntimeError("client went away")

    async def run() -> None:
        manager = JobManager(app_config, engines, os_name="darwin", machine="arm64")
        manager.add_event_callback(broken)
        manager.add_event_callback(recorder)
        await manager.submit("")

    asyncio.run(run())
    assert recorder.names() == ["failed"]
