"""
Unit tests for the in-memory batch generation job queue.

Covers:
- Enqueue, progress recording and completion
- Runner failure handling
- get_status for known / unknown job IDs
- cleanup_old removes only finished jobs beyond max_age
- stats() returns accurate counts
- shutdown cancels unfinished jobs and marks them failed
"""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from services.generation_jobs import GenerationJob, GenerationJobQueue


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _two_posts(job: GenerationJob):
    job.record_progress("post-1", "first-post")
    job.record_progress()
    job.record_progress("post-3", "third-post")


async def _failing(job: GenerationJob):
    job.record_progress()
    raise RuntimeError("database went away")


# ---------------------------------------------------------------------------
# enqueue / get_status
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_enqueue_returns_job_id_and_runs():
    q = GenerationJobQueue()
    job_id = q.enqueue(3, _two_posts, job_id="job-1")
    assert job_id == "job-1"
    assert q.get_status(job_id)["status"] == "running"

    await q.wait(job_id)

    info = q.get_status(job_id)
    assert info["status"] == "completed"
    assert info["total"] == 3
    assert info["completed"] == 3
    assert info["created"] == 2
    assert info["posts"] == [
        {"id": "post-1", "slug": "first-post"},
        {"id": "post-3", "slug": "third-post"},
    ]
    assert info["error"] is None
    assert info["completed_at"] is not None


@pytest.mark.asyncio
async def test_generated_job_ids_are_unique():
    q = GenerationJobQueue()
    ids = {q.enqueue(1, _two_posts) for _ in range(5)}
    assert len(ids) == 5
    for job_id in ids:
        await q.wait(job_id)


@pytest.mark.asyncio
async def test_unknown_job_id_returns_none():
    q = GenerationJobQueue()
    assert q.get_status("missing") is None
    await q.wait("missing")


@pytest.mark.asyncio
async def test_runner_failure_marks_job_failed():
    q = GenerationJobQueue()
    job_id = q.enqueue(2, _failing)

    await q.wait(job_id)

    info = q.get_status(job_id)
    assert info["status"] == "failed"
    assert info["error"] == "database went away"
    assert info["completed"] == 1


@pytest.mark.asyncio
async def test_status_reflects_progress_while_running():
    q = GenerationJobQueue()
    gate = asyncio.Event()

    async def runner(job):
        job.record_progress("p1", "s1")
        await gate.wait()

    job_id = q.enqueue(2, runner)
    await asyncio.sleep(0)
    assert q.get_status(job_id)["completed"] == 1
    assert q.get_status(job_id)["status"] == "running"

    gate.set()
    await q.wait(job_id)
    assert q.get_status(job_id)["status"] == "completed"


# ---------------------------------------------------------------------------
# cleanup_old / stats
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cleanup_old_only_removes_old_finished_jobs():
    q = GenerationJobQueue()
    old_id = q.enqueue(1, _two_posts)
    new_id = q.enqueue(1, _two_posts)
    await q.wait(old_id)
    await q.wait(new_id)
    q._jobs[old_id].completed_at = datetime.now(UTC) - timedelta(hours=2)

    removed = q.cleanup_old(max_age_seconds=3600)

    assert removed == 1
    assert q.get_status(old_id) is None
    assert q.get_status(new_id) is not None


@pytest.mark.asyncio
async def test_stats_counts_by_status():
    q = GenerationJobQueue()
    gate = asyncio.Event()

    async def blocked(job):
        await gate.wait()

    ok_id = q.enqueue(1, _two_posts)
    failed_id = q.enqueue(1, _failing)
    running_id = q.enqueue(1, blocked)
    await q.wait(ok_id)
    await q.wait(failed_id)

    assert q.stats() == {"pending": 0, "running": 1, "completed": 1, "failed": 1}

    gate.set()
    await q.wait(running_id)


# ---------------------------------------------------------------------------
# shutdown
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_shutdown_cancels_running_jobs_and_waits_for_them():
    q = GenerationJobQueue()
    released = []

    async def holds_session(job):
        try:
            job.record_progress("p1", "s1")
            await asyncio.Event().wait()
        finally:
            released.append(job.job_id)

    done_id = q.enqueue(1, _two_posts)
    await q.wait(done_id)
    running_id = q.enqueue(3, holds_session)
    await asyncio.sleep(0)

    cancelled = await q.shutdown()

    assert cancelled == 1
    assert released == [running_id]
    info = q.get_status(running_id)
    assert info["status"] == "failed"
    assert info["error"] == "Cancelled"
    assert info["completed"] == 1
    assert info["completed_at"] is not None
    assert q.get_status(done_id)["status"] == "completed"


@pytest.mark.asyncio
async def test_shutdown_marks_jobs_that_never_started():
    q = GenerationJobQueue()
    job_id = q.enqueue(1, _two_posts)

    assert await q.shutdown() == 1

    info = q.get_status(job_id)
    assert info["status"] == "failed"
    assert info["completed"] == 0


@pytest.mark.asyncio
async def test_shutdown_with_no_jobs_is_a_noop():
    q = GenerationJobQueue()
    assert await q.shutdown() == 0
