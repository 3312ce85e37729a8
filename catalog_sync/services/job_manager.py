"""
Background Job Manager

In-process registry for admin-triggered sync runs. submit() schedules the
work as an asyncio task and returns the job record immediately; callers
poll get()/list() for status. Only the newest finished records are kept.
"""

import asyncio
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..core.logging import get_logger
from ..models.sync import JobStatus, SyncJobView

logger = get_logger(__name__)

MAX_JOB_HISTORY = 100


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SyncJob:
    target: str
    params: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.QUEUED
    created_at: datetime = field(default_factory=_now)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    result: Any = None
    error: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.status in (JobStatus.SUCCEEDED, JobStatus.FAILED)

    def to_view(self) -> SyncJobView:
        return SyncJobView(
            id=self.id,
            target=self.target,
            status=self.status,
            params=self.params,
            created_at=self.created_at,
            started_at=self.started_at,
            finished_at=self.finished_at,
            result=self.result,
            error=self.error,
        )


class JobManager:

    def __init__(self, max_history: int = MAX_JOB_HISTORY):
        self.max_history = max_history
        self._jobs: "OrderedDict[str, SyncJob]" = OrderedDict()
        self._tasks: Dict[str, asyncio.Task] = {}

    def submit(
        self,
        target: str,
        work: Callable[[], Awaitable[Any]],
        params: Optional[Dict[str, Any]] = None,
    ) -> SyncJob:
        """
        Register a job and start `work` in the background.

        Must be called from a running event loop.
        """
        job = SyncJob(target=target, params=params or {})
        self._jobs[job.id] = job
        self._prune()

        task = asyncio.create_task(self._run(job, work), name=f"sync-job-{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job.id, None))

        logger.info("sync_job_submitted", job_id=job.id, target=target, params=job.params)
        return job

    async def _run(self, job: SyncJob, work: Callable[[], Awaitable[Any]]):
        job.status = JobStatus.RUNNING
        job.started_at = _now()
        logger.info("sync_job_started", job_id=job.id, target=job.target)

        try:
            job.result = await work()
            job.status = JobStatus.SUCCEEDED
            logger.info("sync_job_succeeded", job_id=job.id, target=job.target)
        except asyncio.CancelledError:
            job.error = "cancelled"
            job.status = JobStatus.FAILED
            logger.warning("sync_job_cancelled", job_id=job.id, target=job.target)
            raise
        except Exception as e:
            job.error = str(e)
            job.status = JobStatus.FAILED
            logger.error("sync_job_failed", job_id=job.id, target=job.target, error=str(e))
        finally:
            job.finished_at = _now()

    def _prune(self):
        finished = [job_id for job_id, job in self._jobs.items() if job.finished]
        excess = len(self._jobs) - self.max_history
        for job_id in finished[:max(excess, 0)]:
            del self._jobs[job_id]

    def get(self, job_id: str) -> Optional[SyncJob]:
        return self._jobs.get(job_id)

    def list(self) -> List[SyncJob]:
        """Newest first."""
        return list(reversed(self._jobs.values()))

    def has_active(self, target: Optional[str] = None) -> bool:
        return any(
            not job.finished and (target is None or job.target == target)
            for job in self._jobs.values()
        )

    async def wait(self, job_id: str) -> Optional[SyncJob]:
        """Await a job's task if it is still running."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.shield(task)
        return self._jobs.get(job_id)

    async def shutdown(self):
        """Cancel unfinished tasks."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("sync_jobs_cancelled", count=len(tasks))


# Singleton instance
_job_manager: Optional[JobManager] = None


def get_job_manager() -> JobManager:
    """Get singleton JobManager instance."""
    global _job_manager
    if _job_manager is None:
        _job_manager = JobManager()
    return _job_manager
