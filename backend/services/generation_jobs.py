"""
In-memory queue for batch blog generation jobs.

Each job is an asyncio.Task on the running event loop. The caller gets a
job id straight away and polls ``get_status()`` for progress. Finished
jobs are dropped by ``cleanup_old()`` so the registry doesn't grow
without bound.

Usage::

    from services.generation_jobs import generation_jobs

    job_id = generation_jobs.enqueue(count, lambda job: run_batch(job, count))
    info = generation_jobs.get_status(job_id)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

logger = logging.getLogger(__name__)


class GenerationJob:
    """Progress record for one batch run."""

    __slots__ = (
        "job_id",
        "status",
        "total",
        "completed",
        "created_posts",
        "error",
        "created_at",
        "completed_at",
        "_asyncio_task",
    )

    def __init__(self, job_id: str, total: int) -> None:
        self.job_id: str = job_id
        self.status: str = "pending"  # pending | running | completed | failed
        self.total: int = total
        self.completed: int = 0
        self.created_posts: list[dict[str, str]] = []
        self.error: str | None = None
        self.created_at: datetime = datetime.now(UTC)
        self.completed_at: datetime | None = None
        self._asyncio_task: asyncio.Task | None = None

    def record_progress(self, post_id: str | None = None, slug: str | None = None) -> None:
        self.completed += 1
        if post_id:
            self.created_posts.append({"id": post_id, "slug": slug or ""})

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.status,
            "total": self.total,
            "completed": self.completed,
            "created": len(self.created_posts),
            "posts": list(self.created_posts),
            "error": self.error,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


JobRunner = Callable[[GenerationJob], Awaitable[Any]]


class GenerationJobQueue:
    """Tracks batch generation jobs running in the background."""

    def __init__(self) -> None:
        self._jobs: dict[str, GenerationJob] = {}

    def enqueue(self, total: int, runner: JobRunner, job_id: str | None = None) -> str:
        """
        Start ``runner(job)`` as a background task and return its job id.

        Must be called from inside a running event loop.
        """
        job = GenerationJob(job_id or str(uuid4()), total)
        job.status = "running"
        self._jobs[job.job_id] = job
        job._asyncio_task = asyncio.create_task(self._run(job, runner), name=f"blog-batch-{job.job_id}")
        logger.info("generation_jobs: started job %s (%d posts)", job.job_id, total)
        return job.job_id

    def get_status(self, job_id: str) -> dict[str, Any] | None:
        job = self._jobs.get(job_id)
        if job is None:
            return None
        return job.to_dict()

    async def wait(self, job_id: str) -> None:
        """Block until the job has finished. Unknown ids return immediately."""
        job = self._jobs.get(job_id)
        if job is not None and job._asyncio_task is not None:
            await asyncio.shield(job._asyncio_task)

    def cleanup_old(self, max_age_seconds: int = 3600) -> int:
        """Remove finished jobs older than *max_age_seconds*. Returns the count removed."""
        now = datetime.now(UTC)
        to_delete = [
            jid
            for jid, job in self._jobs.items()
            if job.status in ("completed", "failed")
            and job.completed_at is not None
            and (now - job.completed_at).total_seconds() > max_age_seconds
        ]
        for jid in to_delete:
            del self._jobs[jid]
        if to_delete:
            logger.debug("generation_jobs: cleaned up %d old jobs", len(to_delete))
        return len(to_delete)

    def stats(self) -> dict[str, int]:
        counts: dict[str, int] = {"pending": 0, "running": 0, "completed": 0, "failed": 0}
        for job in self._jobs.values():
            counts[job.status] = counts.get(job.status, 0) + 1
        return counts

    async def shutdown(self) -> int:
        """Cancel every unfinished job and wait for it to stop. Returns the count cancelled."""
        pending = [
            job
            for job in self._jobs.values()
            if job._asyncio_task is not None and not job._asyncio_task.done()
        ]
        for job in pending:
            job._asyncio_task.cancel()
        if pending:
            await asyncio.gather(*(job._asyncio_task for job in pending), return_exceptions=True)
            logger.info("generation_jobs: cancelled %d running jobs", len(pending))
        # A task cancelled before its first step never reaches _run
        for job in pending:
            if job.status == "running":
                job.status = "failed"
                job.error = "Cancelled"
                job.completed_at = datetime.now(UTC)
        return len(pending)

    async def _run(self, job: GenerationJob, runner: JobRunner) -> None:
        try:
            await runner(job)
            job.status = "completed"
        except asyncio.CancelledError:
            job.error = "Cancelled"
            job.status = "failed"
            raise
        except Exception as exc:
            job.error = str(exc)
            job.status = "failed"
            logger.error("generation_jobs: job %s failed: %s", job.job_id, exc, exc_info=True)
        finally:
            job.completed_at = datetime.now(UTC)
            logger.info(
                "generation_jobs: job %s finished with status=%s (%d/%d created)",
                job.job_id,
                job.status,
                len(job.created_posts),
                job.total,
            )


generation_jobs = GenerationJobQueue()
