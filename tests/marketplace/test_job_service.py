"""Tests for the job board and client job actions."""

from unittest.mock import MagicMock

import pytest

from localpro.config import MarketplaceConfig
from localpro.jobs.service import JobService, job_stats, matches_term
from localpro.models import JobStatus
from localpro.results import ErrorCode
from localpro.storage import StorageError


@pytest.fixture
def service(storage, config):
    return JobService(storage, config)


class TestInputValidation:
    """Missing IDs and terms fail before touching storage."""

    @pytest.mark.parametrize(
        "call, field",
        [
            (lambda s: s.get_jobs_by_client(""), "Client ID"),
            (lambda s: s.get_jobs_by_provider(""), "Provider ID"),
            (lambda s: s.apply_for_job("", "provider-1"), "Job ID"),
            (lambda s: s.apply_for_job("job-1", ""), "Provider ID"),
            (lambda s: s.get_job_by_id(""), "Job ID"),
            (lambda s: s.update_job_status("", "Open"), "Job ID"),
            (lambda s: s.get_jobs_by_category(""), "Category name"),
            (lambda s: s.search_jobs(""), "Search term"),
            (lambda s: s.delete_job(""), "Job ID"),
            (lambda s: s.search_client_jobs("", "plumb"), "Client ID"),
            (lambda s: s.search_client_jobs("client-1", ""), "Search term"),
            (lambda s: s.get_client_jobs_by_status("", "Open"), "Client ID"),
            (lambda s: s.get_client_job_stats(""), "Client ID"),
        ],
    )
    def test_empty_input_names_field(self, call, field):
        storage = MagicMock()
        result = call(JobService(storage))

        assert result.success is False
        assert result.error == f"{field} is required"
        assert result.code == ErrorCode.VALIDATION
        assert storage.method_calls == []

    def test_invalid_status_rejected(self):
        storage = MagicMock()
        result = JobService(storage).update_job_status("job-1", "Archived")

        assert result.success is False
        assert result.error == "Invalid job status: Archived"
        assert storage.method_calls == []


class TestCreateJob:
    def test_create_job_stores_open_job(self, service, storage, client_actor):
        result = service.create_job(
            client_actor,
            title="Paint bedroom walls",
            description="Two walls, light blue",
            category_name="Painting",
            budget_amount=3000,
            location="Quezon City",
        )

        assert result.success is True
        assert result.message == "Job posted successfully"
        stored = storage.get_job(result.data.id)
        assert stored.status == JobStatus.OPEN.value
        assert stored.applications == []
        assert stored.client_name == "Maria Santos"

    def test_non_positive_budget_rejected(self, service, storage, client_actor):
        result = service.create_job(client_actor, "Title", "Desc", "Painting", budget_amount=0, location="Makati")

        assert result.success is False
        assert result.error == "Budget must be positive"
        assert storage.list_jobs() == []

    @pytest.mark.parametrize(
        "field, label",
        [
            ("title", "Title"),
            ("description", "Description"),
            ("category_name", "Category name"),
            ("location", "Location"),
        ],
    )
    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_required_posting_fields(self, service, storage, client_actor, field, label, value):
        fields = {
            "title": "Paint bedroom walls",
            "description": "Two walls, light blue",
            "category_name": "Painting",
            "location": "Quezon City",
        }
        fields[field] = value

        result = service.create_job(client_actor, budget_amount=3000, **fields)

        assert result.success is False
        assert result.code == ErrorCode.VALIDATION
        assert result.error == f"{label} is required"
        assert storage.list_jobs() == []

    def test_title_is_trimmed_and_capped(self, service, client_actor):
        posted = service.create_job(
            client_actor, "  Paint walls  ", "Desc", "Painting", budget_amount=100, location="Makati"
        )
        too_long = service.create_job(client_actor, "x" * 201, "Desc", "Painting", budget_amount=100, location="Makati")

        assert posted.data.title == "Paint walls"
        assert too_long.code == ErrorCode.VALIDATION
        assert too_long.error == "Title too long (max 200 characters)"


class TestJobBoard:
    def test_open_jobs_newest_first(self, service, seed):
        older = seed.job(title="Older", age_minutes=10)
        newer = seed.job(title="Newer")
        seed.job(title="Taken", status=JobStatus.IN_PROGRESS.value)

        result = service.get_open_jobs()

        assert [j.id for j in result.data] == [newer.id, older.id]

    def test_jobs_by_category_only_open(self, service, seed):
        seed.job(category_name="Plumbing")
        seed.job(category_name="Plumbing", status=JobStatus.CLOSED.value)
        seed.job(category_name="Electrical")

        result = service.get_jobs_by_category("Plumbing")

        assert len(result.data) == 1

    def test_search_matches_description(self, service, seed):
        seed.job(title="First", description="Unique description")
        seed.job(title="Second", description="Ordinary text")

        result = service.search_jobs("unique")

        assert result.success is True
        assert [j.title for j in result.data] == ["First"]

    def test_search_respects_result_cap(self, storage, seed):
        for i in range(3):
            seed.job(title=f"Plumbing job {i}")
        service = JobService(storage, MarketplaceConfig(max_search_results=2))

        assert len(service.search_jobs("plumbing").data) == 2

    def test_matches_term_case_insensitive(self, seed):
        job = seed.job(location="Makati City")
        assert matches_term(job, "MAKATI")
        assert not matches_term(job, "Cebu")


class TestApply:
    def test_apply_twice_records_provider_once(self, service, storage, seed):
        job = seed.job()

        first = service.apply_for_job(job.id, "provider-1")
        second = service.apply_for_job(job.id, "provider-1")

        assert first.success and second.success
        assert first.message == "Successfully applied for job"
        assert storage.get_job(job.id).applications == ["provider-1"]

    def test_apply_missing_job(self, service):
        result = service.apply_for_job("missing", "provider-1")

        assert result.success is False
        assert result.error == "Job not found"
        assert result.code == ErrorCode.NOT_FOUND

    def test_provider_jobs_lists_applied(self, service, seed):
        applied = seed.job(applications=["provider-1"])
        seed.job(applications=["provider-2"])

        result = service.get_jobs_by_provider("provider-1")

        assert [j.id for j in result.data] == [applied.id]


class TestLookup:
    def test_missing_job_returns_not_found(self, service):
        result = service.get_job_by_id("nope")

        assert result.success is False
        assert result.error == "Job not found"
        assert result.to_dict() == {
            "success": False,
            "error": "Job not found",
            "message": "Could not find job",
        }

    def test_store_failure_normalized(self, storage):
        storage.get_job = MagicMock(side_effect=StorageError("connection reset"))
        result = JobService(storage).get_job_by_id("job-1")

        assert result.success is False
        assert result.error == "connection reset"
        assert result.code == ErrorCode.STORE

    def test_store_failure_without_text_uses_fallback(self, storage):
        storage.list_jobs = MagicMock(side_effect=RuntimeError())
        result = JobService(storage).get_open_jobs()

        assert result.error == "Failed to get open jobs"
        assert result.message == "Could not retrieve open jobs"


class TestClientJobs:
    def test_update_status(self, service, storage, seed):
        job = seed.job()

        result = service.update_job_status(job.id, "Completed")

        assert result.success is True
        assert storage.get_job(job.id).status == "Completed"

    def test_delete(self, service, storage, seed):
        job = seed.job()

        assert service.delete_job(job.id).message == "Job deleted successfully"
        assert storage.get_job(job.id) is None
        assert service.delete_job(job.id).error == "Job not found"

    def test_client_jobs_by_status(self, service, seed):
        seed.job(status=JobStatus.COMPLETED.value)
        seed.job()
        seed.job(client_id="client-2", status=JobStatus.COMPLETED.value)

        result = service.get_client_jobs_by_status("client-1", "Completed")

        assert len(result.data) == 1

    def test_search_client_jobs_scoped_to_client(self, service, seed):
        seed.job(title="Roof repair")
        seed.job(title="Roof inspection", client_id="client-2")

        result = service.search_client_jobs("client-1", "roof")

        assert [j.title for j in result.data] == ["Roof repair"]

    def test_client_job_stats(self, service, seed):
        seed.job(applications=["p1"])
        seed.job(status=JobStatus.IN_PROGRESS.value, applications=["p1", "p2"])
        seed.job(status=JobStatus.COMPLETED.value)

        result = service.get_client_job_stats("client-1")

        assert result.data == {
            "total": 3,
            "open": 1,
            "inProgress": 1,
            "completed": 1,
            "closed": 0,
            "totalApplications": 3,
        }

    def test_job_stats_empty(self):
        assert job_stats([])["total"] == 0
