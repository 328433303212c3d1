"""Administrative overrides on jobs, with audit logging."""

import logging
from typing import Optional

from localpro.audit import DELETE_JOB, UPDATE_JOB_STATUS, AuditLogger
from localpro.models import Actor, JobStatus
from localpro.results import ActionResult, ErrorCode, action
from localpro.storage.base import MarketplaceStorage
from localpro.validation import require, require_choice

logger = logging.getLogger(__name__)

MODULE = "jobs"


class JobAdminService:
    """Status changes and deletions performed by an admin on any job."""

    def __init__(self, storage: MarketplaceStorage, audit: Optional[AuditLogger] = None):
        self.storage = storage
        self.audit = audit or AuditLogger(storage)

    @action("Failed to update job status.", "Failed to update job status")
    def handle_update_job_status(self, job_id: str, status: str, actor: Actor) -> ActionResult:
        job_id = require(job_id, "Job ID")
        status = require_choice(status, JobStatus, "Status", "job status")
        require(actor.id, "Actor ID")

        updated = self.storage.update_job_status(job_id, status)
        if updated is None:
            return ActionResult.fail("Job not found", "Failed to update job status.", ErrorCode.NOT_FOUND)

        logger.info(f"Admin job status update | job={job_id} | status={status} | actor={actor.id}")
        self.audit.log_action(actor, MODULE, UPDATE_JOB_STATUS, {"jobId": job_id, "newStatus": status})
        return ActionResult.ok(updated, f"Job status updated to {status}.")

    @action("Failed to delete job.", "Failed to delete job")
    def handle_delete_job(self, job_id: str, actor: Actor) -> ActionResult:
        job_id = require(job_id, "Job ID")
        require(actor.id, "Actor ID")

        job = self.storage.get_job(job_id)
        if job is None or not self.storage.delete_job(job_id):
            return ActionResult.fail("Job not found", "Failed to delete job.", ErrorCode.NOT_FOUND)

        logger.info(f"Admin job delete | job={job_id} | actor={actor.id}")
        self.audit.log_action(actor, MODULE, DELETE_JOB, {"jobId": job_id, "title": job.title})
        return ActionResult.ok(message="Job has been deleted.")
