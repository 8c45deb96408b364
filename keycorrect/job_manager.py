"""
KeyCorrect - Job Manager Module
===============================
Background execution for the slow dictionary operations: loading,
export and import. Keystroke handling never waits on these; callers
poll the job or pass a completion callback.

Features:
- Job registry with short unique job ids
- Thread-safe job storage with TTL cleanup
- Daemon worker threads named after their job
- Correlation id of each worker set to its job id for log tracing
"""

import uuid
import time
import threading
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime

from .config_logging import get_logger, StructuredLogger

__version__ = "1.0.0"

logger = get_logger(__name__)


class JobStatus(Enum):
    """Overall job status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class Job:
    """Represents a background job."""
    job_id: str
    job_type: str  # 'load', 'export', 'import'
    status: JobStatus = JobStatus.PENDING
    created_at: float = field(default_factory=time.time)
    started_at: Optional[float] = None
    completed_at: Optional[float] = None
    result: Any = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    _done: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def is_finished(self) -> bool:
        return self.status in (JobStatus.COMPLETE, JobStatus.FAILED)

    @property
    def elapsed_seconds(self) -> float:
        """Get elapsed time in seconds."""
        if self.started_at is None:
            return 0.0
        end_time = self.completed_at or time.time()
        return end_time - self.started_at

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the job finishes. For tests and tooling, not the keystroke path."""
        return self._done.wait(timeout)

    def to_dict(self, include_result: bool = False) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "job_id": self.job_id,
            "job_type": self.job_type,
            "status": self.status.value,
            "created_at": datetime.fromtimestamp(self.created_at).isoformat(),
            "started_at": datetime.fromtimestamp(self.started_at).isoformat() if self.started_at else None,
            "completed_at": datetime.fromtimestamp(self.completed_at).isoformat() if self.completed_at else None,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "error": self.error,
            "metadata": self.metadata,
        }
        if include_result and self.result is not None:
            data["result"] = self.result.to_dict() if hasattr(self.result, 'to_dict') else self.result
        return data


class JobManager:
    """
    Thread-safe job manager for background operations.

    Usage:
        manager = JobManager()
        job_id = manager.run_in_background('load', store.load, ['en', 'id'])
        ...
        job = manager.get_job(job_id)
        if job.status is JobStatus.COMPLETE:
            report = job.result
    """

    def __init__(self, max_jobs: int = 100, job_ttl: float = 3600):
        """
        Initialize job manager.

        Args:
            max_jobs: Maximum jobs to keep in memory
            job_ttl: Time-to-live for finished jobs (seconds)
        """
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.RLock()
        self._max_jobs = max_jobs
        self._job_ttl = job_ttl

    def create_job(self, job_type: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        """Create a new job and return its ID."""
        with self._lock:
            self._cleanup_old_jobs()

            job_id = str(uuid.uuid4())[:8]
            self._jobs[job_id] = Job(job_id=job_id, job_type=job_type, metadata=metadata or {})
            return job_id

    def get_job(self, job_id: str) -> Optional[Job]:
        """Get job by ID."""
        with self._lock:
            return self._jobs.get(job_id)

    def start_job(self, job_id: str) -> bool:
        """Mark job as started."""
        with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return False
            job.status = JobStatus.RUNNING
            job.started_at = time.time()
            return True

    def complete_job(self, job_id: str, result: Any = None) -> bool:
        """Mark job as complete with optional result."""
        with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return False
            job.status = JobStatus.COMPLETE
            job.completed_at = time.time()
            job.result = result
        job._done.set()
        return True

    def fail_job(self, job_id: str, error: str) -> bool:
        """Mark job as failed with error message."""
        with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return False
            job.status = JobStatus.FAILED
            job.completed_at = time.time()
            job.error = error
        job._done.set()
        return True

    def list_jobs(self, status: Optional[JobStatus] = None,
                  job_type: Optional[str] = None,
                  limit: int = 20) -> List[Dict[str, Any]]:
        """List jobs with optional filtering, newest first."""
        with self._lock:
            jobs = list(self._jobs.values())

        if status:
            jobs = [j for j in jobs if j.status == status]
        if job_type:
            jobs = [j for j in jobs if j.job_type == job_type]

        jobs.sort(key=lambda j: j.created_at, reverse=True)
        return [j.to_dict() for j in jobs[:limit]]

    def run_in_background(self, job_type: str, target: Callable[..., Any], *args,
                          callback: Optional[Callable[[Job], None]] = None,
                          metadata: Optional[Dict[str, Any]] = None, **kwargs) -> str:
        """
        Run `target(*args, **kwargs)` on a daemon thread.

        The return value becomes the job result. `callback` receives the
        finished Job on the worker thread; marshal it back before touching
        session state.
        """
        job_id = self.create_job(job_type, metadata)

        worker = threading.Thread(
            target=self._run_job,
            args=(job_id, target, args, kwargs, callback),
            daemon=True,
            name=f"keycorrect-{job_type}-{job_id}"
        )
        worker.start()
        return job_id

    def _run_job(self, job_id: str, target: Callable[..., Any], args: tuple,
                 kwargs: Dict[str, Any], callback: Optional[Callable[[Job], None]]):
        StructuredLogger.set_correlation_id(job_id)
        self.start_job(job_id)
        try:
            result = target(*args, **kwargs)
        except Exception as e:
            logger.exception(f"Background job {job_id} failed: {e}", job_id=job_id)
            self.fail_job(job_id, str(e))
        else:
            self.complete_job(job_id, result)

        if callback is not None:
            try:
                callback(self.get_job(job_id))
            except Exception as e:
                logger.exception(f"Completion callback for job {job_id} failed: {e}", job_id=job_id)

    def _cleanup_old_jobs(self):
        """Remove old finished jobs."""
        with self._lock:
            now = time.time()
            expired = [
                job_id for job_id, job in self._jobs.items()
                if job.is_finished and job.completed_at and (now - job.completed_at) > self._job_ttl
            ]
            for job_id in expired:
                del self._jobs[job_id]

            # If still over capacity, remove oldest finished jobs
            if len(self._jobs) >= self._max_jobs:
                finished = sorted(
                    ((jid, j) for jid, j in self._jobs.items() if j.is_finished),
                    key=lambda item: item[1].completed_at or 0
                )
                while len(self._jobs) >= self._max_jobs and finished:
                    jid, _ = finished.pop(0)
                    del self._jobs[jid]


# Global job manager instance
_job_manager: Optional[JobManager] = None
_job_manager_lock = threading.Lock()


def get_job_manager() -> JobManager:
    """Get or create the global job manager instance."""
    global _job_manager
    with _job_manager_lock:
        if _job_manager is None:
            _job_manager = JobManager()
        return _job_manager
