"""
Tests for JobManager
====================
"""

import threading

import pytest

from keycorrect.config_logging import StructuredLogger
from keycorrect.job_manager import JobManager, JobStatus, get_job_manager


class TestJobLifecycle:
    """Tests for manual job state changes."""

    def test_create_and_get(self, job_manager):
        job_id = job_manager.create_job("load", {"languages": ["en"]})
        job = job_manager.get_job(job_id)
        assert job.status is JobStatus.PENDING
        assert job.metadata == {"languages": ["en"]}

    def test_get_unknown(self, job_manager):
        assert job_manager.get_job("missing") is None
        assert not job_manager.start_job("missing")
        assert not job_manager.complete_job("missing")
        assert not job_manager.fail_job("missing", "boom")

    def test_complete(self, job_manager):
        job_id = job_manager.create_job("export")
        job_manager.start_job(job_id)
        job_manager.complete_job(job_id, {"ok": True})

        job = job_manager.get_job(job_id)
        assert job.status is JobStatus.COMPLETE
        assert job.is_finished
        assert job.wait(timeout=0)
        assert job.to_dict(include_result=True)["result"] == {"ok": True}

    def test_fail(self, job_manager):
        job_id = job_manager.create_job("import")
        job_manager.fail_job(job_id, "bad archive")
        job = job_manager.get_job(job_id)
        assert job.status is JobStatus.FAILED
        assert job.to_dict()["error"] == "bad archive"

    def test_list_jobs_filters(self, job_manager):
        load_id = job_manager.create_job("load")
        job_manager.create_job("export")
        job_manager.complete_job(load_id)

        assert len(job_manager.list_jobs()) == 2
        assert [j["job_type"] for j in job_manager.list_jobs(job_type="load")] == ["load"]
        assert [j["job_id"] for j in job_manager.list_jobs(status=JobStatus.COMPLETE)] == [load_id]

    def test_capacity_cleanup(self):
        """Test finished jobs are dropped once the manager is full."""
        manager = JobManager(max_jobs=3)
        first = manager.create_job("load")
        manager.complete_job(first)
        manager.create_job("load")
        manager.create_job("load")
        manager.create_job("load")
        assert manager.get_job(first) is None


class TestRunInBackground:
    """Tests for worker threads."""

    def test_result(self, job_manager):
        job_id = job_manager.run_in_background("load", lambda a, b=0: a + b, 2, b=3)
        job = job_manager.get_job(job_id)
        assert job.wait(timeout=10)
        assert job.status is JobStatus.COMPLETE
        assert job.result == 5

    def test_failure_recorded(self, job_manager):
        def boom():
            raise RuntimeError("disk gone")

        job = job_manager.get_job(job_manager.run_in_background("export", boom))
        assert job.wait(timeout=10)
        assert job.status is JobStatus.FAILED
        assert "disk gone" in job.error

    def test_callback_receives_job(self, job_manager):
        called = threading.Event()
        seen = []

        def callback(job):
            seen.append(job)
            called.set()

        job_id = job_manager.run_in_background("load", lambda: "done", callback=callback)
        assert called.wait(timeout=10)
        assert seen[0].job_id == job_id
        assert seen[0].result == "done"

    def test_worker_correlation_id(self, job_manager):
        job_id = job_manager.run_in_background("load", StructuredLogger.get_correlation_id)
        job = job_manager.get_job(job_id)
        assert job.wait(timeout=10)
        assert job.result == job_id

    def test_callback_error_does_not_break_job(self, job_manager):
        called = threading.Event()

        def callback(job):
            called.set()
            raise ValueError("ui gone")

        job_id = job_manager.run_in_background("load", lambda: 1, callback=callback)
        assert called.wait(timeout=10)
        assert job_manager.get_job(job_id).status is JobStatus.COMPLETE


def test_global_manager():
    assert get_job_manager() is get_job_manager()
