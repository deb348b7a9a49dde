"""SSE bridge tests: history replay, live follow, keep-alive and cleanup."""

import asyncio
import json

import pytest

from clawmgr.jobs.store import JobStore
from clawmgr.jobs.stream import KEEPALIVE_FRAME, JobEventStream, format_sse


def parse_frame(frame: str) -> tuple[str, dict]:
    event_line, data_line = frame.strip().split("\n")
    assert event_line.startswith("event: ")
    assert data_line.startswith("data: ")
    return event_line[len("event: "):], json.loads(data_line[len("data: "):])


async def collect(stream: JobEventStream) -> list[str]:
    return [frame async for frame in stream.frames()]


def test_format_sse_framing():
    assert format_sse("log", {"message": "hi"}) == 'event: log\ndata: {"message": "hi"}\n\n'


@pytest.mark.asyncio
async def test_completed_job_replays_history_then_done():
    store = JobStore()
    job = store.create_job("X")
    store.start_job(job.id)
    store.append_log(job.id, "line1")
    store.append_log(job.id, "line2")
    store.complete_job(job.id, {"v": 1})

    frames = [parse_frame(f) for f in await collect(JobEventStream(store, job.id))]

    assert [name for name, _ in frames] == ["status", "log", "log", "done"]
    assert frames[0][1]["status"] == "success"
    assert "createdAt" in frames[0][1]
    assert [data["message"] for name, data in frames if name == "log"] == ["line1", "line2"]
    assert frames[-1][1] == {"result": {"v": 1}}
    assert store.subscriber_count(job.id) == 0


@pytest.mark.asyncio
async def test_failed_job_replays_error():
    store = JobStore()
    job = store.create_job("X")
    store.fail_job(job.id, "gateway not ready")

    frames = [parse_frame(f) for f in await collect(JobEventStream(store, job.id))]
    assert frames[-1] == ("error", {"error": "gateway not ready"})


@pytest.mark.asyncio
async def test_unknown_job_yields_nothing():
    assert await collect(JobEventStream(JobStore(), "job_missing")) == []


@pytest.mark.asyncio
async def test_late_subscriber_gets_history_then_live_without_gaps():
    store = JobStore()
    job = store.create_job("X")
    store.start_job(job.id)
    store.append_log(job.id, "before")

    frames: list[str] = []

    async def consume():
        async for frame in JobEventStream(store, job.id, keepalive_seconds=5).frames():
            frames.append(frame)

    consumer = asyncio.create_task(consume())
    for _ in range(100):
        if store.subscriber_count(job.id) == 1:
            break
        await asyncio.sleep(0.01)
    assert store.subscriber_count(job.id) == 1

    store.append_log(job.id, "after1")
    store.append_log(job.id, "after2")
    store.complete_job(job.id, {"ok": True})
    await asyncio.wait_for(consumer, timeout=2)

    parsed = [parse_frame(f) for f in frames]
    logs = [data["message"] for name, data in parsed if name == "log"]
    assert logs == ["before", "after1", "after2"]
    assert parsed[0][0] == "status"
    assert parsed[-1] == ("done", {"result": {"ok": True}})
    assert store.subscriber_count(job.id) == 0


@pytest.mark.asyncio
async def test_keepalive_is_sent_while_idle():
    store = JobStore()
    job = store.create_job("X")
    store.start_job(job.id)

    frames = JobEventStream(store, job.id, keepalive_seconds=0.05).frames()
    first = await frames.__anext__()
    assert parse_frame(first)[0] == "status"
    second = await asyncio.wait_for(frames.__anext__(), timeout=1)
    assert second == KEEPALIVE_FRAME
    await frames.aclose()
    assert store.subscriber_count(job.id) == 0


@pytest.mark.asyncio
async def test_disconnect_unsubscribes_without_affecting_job():
    store = JobStore()
    job = store.create_job("X")
    store.start_job(job.id)

    frames = JobEventStream(store, job.id, keepalive_seconds=5).frames()
    await frames.__anext__()
    assert store.subscriber_count(job.id) == 1

    await frames.aclose()
    assert store.subscriber_count(job.id) == 0

    store.append_log(job.id, "still running")
    store.complete_job(job.id, None)
    assert store.get_job(job.id).logs == ["still running"]


@pytest.mark.asyncio
async def test_stream_ends_when_client_gone_on_keepalive_tick():
    store = JobStore()
    job = store.create_job("X")
    store.start_job(job.id)

    async def gone() -> bool:
        return True

    frames = await asyncio.wait_for(
        collect(JobEventStream(store, job.id, keepalive_seconds=0.02, is_disconnected=gone)),
        timeout=1,
    )
    assert len(frames) == 1
    assert store.subscriber_count(job.id) == 0
