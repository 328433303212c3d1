"""
Job query and mutation actions.

Covers the provider-facing job board (open jobs, apply, search) and the
client's own job posts (status changes, deletion, stats). Every method
returns an :class:`~localpro.results.ActionResult`; input is validated before
any storage call.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from localpro.config import MarketplaceConfig
from localpro.models import Actor, Budget, BudgetType, Job, JobStatus, utc_now
from localpro.results import ActionResult, ErrorCode, action
from localpro.storage.base import JobStorage
from localpro.validation import InputError, require, require_choice, require_text

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("title", "description", "location", "category_name")


def matches_term(job: Job, term: str, fields: Iterable[str] = SEARCH_FIELDS) -> bool:
    """Case-insensitive substring match over the given job fields."""
    needle = term.lower()
    return any(needle in (getattr(job, f) or "").lower() for f in fields)


def job_stats(jobs: List[Job]) -> Dict[str, int]:
    """Count jobs per status and total applications."""
    counts = {status: 0 for status in JobStatus}
    for job in jobs:
        counts[JobStatus(job.status)] += 1
    return {
        "total": len(jobs),
        "open": counts[JobStatus.OPEN],
        "inProgress": counts[JobStatus.IN_PROGRESS],
        "completed": counts[JobStatus.COMPLETED],
        "closed": counts[JobStatus.CLOSED],
        "totalApplications": sum(job.application_count for job in jobs),
    }


class JobService:
    """Job board and job-post actions over a :class:`JobStorage`."""

    def __init__(self, storage: JobStorage, config: Optional[MarketplaceConfig] = None):
        self.storage = storage
        self.config = config or MarketplaceConfig()

    def _limit(self, jobs: List[Job]) -> List[Job]:
        if self.config.max_search_results:
            return jobs[: self.config.max_search_results]
        return jobs

    # === Posting ===

    @action("Could not post job", "Failed to post job")
    def create_job(
        self,
        client: Actor,
        title: str,
        description: str,
        category_name: str,
        budget_amount: float,
        budget_type: str = BudgetType.FIXED.value,
        negotiable: bool = False,
        location: str = "",
        deadline: Optional[datetime] = None,
        client_is_verified: bool = False,
    ) -> ActionResult[Job]:
        require(client.id, "Client ID")
        title = require_text(title, "Title", max_length=200)
        description = require_text(description, "Description")
        category_name = require_text(category_name, "Category name")
        location = require_text(location, "Location")
        budget_type = require_choice(budget_type, BudgetType, "Budget type", "budget type")
        if budget_amount is None or budget_amount <= 0:
            raise InputError("Budget must be positive")

        now = utc_now()
        job = Job(
            id=str(uuid.uuid4()),
            client_id=client.id,
            client_name=client.name,
            client_avatar=client.avatar,
            client_is_verified=client_is_verified,
            title=title,
            description=description,
            category_name=category_name,
            budget=Budget(amount=float(budget_amount), type=budget_type, negotiable=negotiable),
            location=location,
            deadline=deadline,
            created_at=now,
            updated_at=now,
        )
        self.storage.save_job(job)
        logger.info(f"Job posted | id={job.id} | client={client.id}")
        return ActionResult.ok(job, "Job posted successfully")

    # === Job board ===

    @action("Could not retrieve open jobs", "Failed to get open jobs")
    def get_open_jobs(self) -> ActionResult[List[Job]]:
        jobs = self.storage.list_jobs(status=JobStatus.OPEN.value)
        return ActionResult.ok(jobs, "Open jobs retrieved successfully")

    @action("Could not retrieve client jobs", "Failed to get client jobs")
    def get_jobs_by_client(self, client_id: str) -> ActionResult[List[Job]]:
        client_id = require(client_id, "Client ID")
        jobs = self.storage.list_jobs(client_id=client_id)
        return ActionResult.ok(jobs, "Client jobs retrieved successfully")

    @action("Could not retrieve provider jobs", "Failed to get provider jobs")
    def get_jobs_by_provider(self, provider_id: str) -> ActionResult[List[Job]]:
        provider_id = require(provider_id, "Provider ID")
        jobs = self.storage.list_jobs(applicant_id=provider_id)
        return ActionResult.ok(jobs, "Provider jobs retrieved successfully")

    @action("Could not apply for job", "Failed to apply for job")
    def apply_for_job(self, job_id: str, provider_id: str) -> ActionResult:
        """Add the provider to the job's application set. Re-applying is a no-op."""
        job_id = require(job_id, "Job ID")
        provider_id = require(provider_id, "Provider ID")

        if not self.storage.add_application(job_id, provider_id):
            return ActionResult.fail("Job not found", "Could not apply for job", ErrorCode.NOT_FOUND)

        logger.info(f"Application recorded | job={job_id} | provider={provider_id}")
        return ActionResult.ok(message="Successfully applied for job")

    @action("Could not retrieve job", "Failed to get job")
    def get_job_by_id(self, job_id: str) -> ActionResult[Job]:
        job_id = require(job_id, "Job ID")
        job = self.storage.get_job(job_id)
        if job is None:
            return ActionResult.fail("Job not found", "Could not find job", ErrorCode.NOT_FOUND)
        return ActionResult.ok(job, "Job retrieved successfully")

    @action("Could not update job status", "Failed to update job status")
    def update_job_status(self, job_id: str, status: str) -> ActionResult[Job]:
        job_id = require(job_id, "Job ID")
        status = require_choice(status, JobStatus, "Status", "job status")

        updated = self.storage.update_job_status(job_id, status)
        if updated is None:
            return ActionResult.fail("Job not found", "Could not update job status", ErrorCode.NOT_FOUND)

        logger.info(f"Job status updated | id={job_id} | status={status}")
        return ActionResult.ok(updated, "Job status updated successfully")

    @action("Could not retrieve jobs by category", "Failed to get jobs by category")
    def get_jobs_by_category(self, category_name: str) -> ActionResult[List[Job]]:
        category_name = require(category_name, "Category name")
        jobs = self.storage.list_jobs(status=JobStatus.OPEN.value, category=category_name)
        return ActionResult.ok(jobs, "Jobs by category retrieved successfully")

    @action("Could not search jobs", "Failed to search jobs")
    def search_jobs(self, search_term: str) -> ActionResult[List[Job]]:
        search_term = require(search_term, "Search term")
        jobs = self.storage.list_jobs(status=JobStatus.OPEN.value)
        matches = [job for job in jobs if matches_term(job, search_term)]
        return ActionResult.ok(self._limit(matches), "Job search completed successfully")

    # === Client job posts ===

    def get_client_jobs(self, client_id: str) -> ActionResult[List[Job]]:
        return self.get_jobs_by_client(client_id)

    @action("Could not delete job", "Failed to delete job")
    def delete_job(self, job_id: str) -> ActionResult:
        job_id = require(job_id, "Job ID")
        if not self.storage.delete_job(job_id):
            return ActionResult.fail("Job not found", "Could not delete job", ErrorCode.NOT_FOUND)
        logger.info(f"Job deleted | id={job_id}")
        return ActionResult.ok(message="Job deleted successfully")

    @action("Could not search client jobs", "Failed to search client jobs")
    def search_client_jobs(self, client_id: str, search_term: str) -> ActionResult[List[Job]]:
        client_id = require(client_id, "Client ID")
        search_term = require(search_term, "Search term")
        jobs = self.storage.list_jobs(client_id=client_id)
        matches = [job for job in jobs if matches_term(job, search_term)]
        return ActionResult.ok(self._limit(matches), "Job search completed successfully")

    @action("Could not retrieve client jobs by status", "Failed to get client jobs by status")
    def get_client_jobs_by_status(self, client_id: str, status: str) -> ActionResult[List[Job]]:
        client_id = require(client_id, "Client ID")
        status = require_choice(status, JobStatus, "Status", "job status")
        jobs = self.storage.list_jobs(client_id=client_id, status=status)
        return ActionResult.ok(jobs, "Jobs by status retrieved successfully")

    @action("Could not retrieve client job statistics", "Failed to get client job stats")
    def get_client_job_stats(self, client_id: str) -> ActionResult[Dict[str, int]]:
        client_id = require(client_id, "Client ID")
        jobs = self.storage.list_jobs(client_id=client_id)
        return ActionResult.ok(job_stats(jobs), "Job statistics retrieved successfully")
