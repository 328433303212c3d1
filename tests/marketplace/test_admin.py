"""Tests for admin job overrides and their audit trail."""

from unittest.mock import MagicMock

import pytest

from localpro.audit import DELETE_JOB, UPDATE_JOB_STATUS, AuditLogger
from localpro.jobs.admin import JobAdminService
from localpro.results import ErrorCode


@pytest.fixture
def service(storage):
    return JobAdminService(storage)


class TestHandleUpdateJobStatus:
    def test_updates_and_audits(self, service, storage, seed, admin_actor):
        job = seed.job()

        result = service.handle_update_job_status(job.id, "Closed", admin_actor)

        assert result.success is True
        assert result.message == "Job status updated to Closed."
        assert storage.get_job(job.id).status == "Closed"
        [entry] = storage.list_audit_entries(module="jobs")
        assert entry.action == UPDATE_JOB_STATUS
        assert entry.actor_id == "admin-1"
        assert entry.details == {"jobId": job.id, "newStatus": "Closed"}

    def test_missing_job_not_audited(self, service, storage, admin_actor):
        result = service.handle_update_job_status("missing", "Closed", admin_actor)

        assert result.code == ErrorCode.NOT_FOUND
        assert result.message == "Failed to update job status."
        assert storage.list_audit_entries() == []

    def test_invalid_status(self, service, seed, admin_actor):
        job = seed.job()
        result = service.handle_update_job_status(job.id, "Paused", admin_actor)
        assert result.error == "Invalid job status: Paused"

    def test_audit_failure_keeps_update(self, storage, seed, admin_actor):
        job = seed.job()
        storage.save_audit_entry = MagicMock(side_effect=RuntimeError("audit table locked"))
        service = JobAdminService(storage, AuditLogger(storage))

        result = service.handle_update_job_status(job.id, "Completed", admin_actor)

        assert result.success is True
        assert storage.get_job(job.id).status == "Completed"


class TestHandleDeleteJob:
    def test_deletes_and_audits(self, service, storage, seed, admin_actor):
        job = seed.job(title="Garden cleanup")

        result = service.handle_delete_job(job.id, admin_actor)

        assert result.message == "Job has been deleted."
        assert storage.get_job(job.id) is None
        [entry] = storage.list_audit_entries()
        assert entry.action == DELETE_JOB
        assert entry.details["title"] == "Garden cleanup"

    def test_missing_job(self, service, admin_actor):
        result = service.handle_delete_job("missing", admin_actor)
        assert result.success is False
        assert result.message == "Failed to delete job."
