"""Tests for awarding a job to an applicant."""

from unittest.mock import MagicMock, patch

import pytest

from localpro.jobs.awards import AwardService
from localpro.models import Actor, BookingStatus, JobStatus
from localpro.notifications import NotificationService
from localpro.results import ActionResult, ErrorCode
from localpro.storage import StorageError


@pytest.fixture
def service(storage):
    return AwardService(storage)


@pytest.fixture
def open_job(seed):
    seed.user("provider-1", display_name="Juan Dela Cruz")
    return seed.job(job_id="job-1", title="Install ceiling fan", amount=1800.0, applications=["provider-1"])


class TestAwardJob:
    def test_award_creates_booking_and_starts_job(self, service, storage, open_job, client_actor):
        result = service.award_job(open_job.id, "provider-1", client_actor)

        assert result.success is True
        assert result.message == "Job awarded successfully"
        booking = result.data
        assert booking.job_id == "job-1"
        assert booking.provider_name == "Juan Dela Cruz"
        assert booking.service_name == "Install ceiling fan"
        assert booking.price == 1800.0
        assert booking.status == BookingStatus.UPCOMING.value
        assert booking.notes == "This booking was created from job post: Install ceiling fan"

        assert storage.get_job("job-1").status == JobStatus.IN_PROGRESS.value
        assert [b.id for b in storage.list_bookings(job_id="job-1")] == [booking.id]

    def test_award_notifies_provider(self, service, storage, open_job, client_actor):
        service.award_job(open_job.id, "provider-1", client_actor)

        notes = storage.list_notifications("provider-1")
        assert len(notes) == 1
        assert notes[0].type == "job_awarded"
        assert notes[0].message == "You have been awarded the job: Install ceiling fan"

    def test_notification_failure_does_not_fail_award(self, storage, open_job, client_actor):
        notifier = MagicMock(spec=NotificationService)
        notifier.notify.return_value = ActionResult.fail("smtp down")
        service = AwardService(storage, notifier)

        result = service.award_job(open_job.id, "provider-1", client_actor)

        assert result.success is True
        assert storage.get_job("job-1").status == JobStatus.IN_PROGRESS.value

    def test_second_award_conflicts(self, service, storage, open_job, client_actor, seed):
        seed.user("provider-2")
        storage.add_application("job-1", "provider-2")

        first = service.award_job("job-1", "provider-1", client_actor)
        second = service.award_job("job-1", "provider-2", client_actor)

        assert first.success is True
        assert second.success is False
        assert second.code == ErrorCode.CONFLICT
        assert second.error == "Job is no longer open for awarding"
        assert len(storage.list_bookings(job_id="job-1")) == 1

    def test_race_lost_inside_batch_conflicts(self, service, storage, open_job, client_actor):
        # Another award commits between the service's read and its batch
        real_get_job = storage.get_job

        def stale_read(job_id):
            job = real_get_job(job_id)
            storage.update_job_status(job_id, JobStatus.IN_PROGRESS.value)
            return job

        storage.get_job = stale_read
        result = service.award_job("job-1", "provider-1", client_actor)

        assert result.code == ErrorCode.CONFLICT
        assert storage.list_bookings(job_id="job-1") == []

    def test_batch_failure_writes_nothing(self, service, storage, open_job, client_actor):
        with patch.object(storage, "_put", side_effect=StorageError("write failed")):
            result = service.award_job("job-1", "provider-1", client_actor)

        assert result.success is False
        assert result.code == ErrorCode.STORE
        assert result.error == "write failed"
        assert storage.get_job("job-1").status == JobStatus.OPEN.value
        assert storage.list_bookings(job_id="job-1") == []


class TestAwardPreconditions:
    def test_missing_job(self, service, client_actor):
        result = service.award_job("missing", "provider-1", client_actor)
        assert result.code == ErrorCode.NOT_FOUND
        assert result.error == "Job not found"

    def test_only_owner_can_award(self, service, open_job):
        other = Actor(id="client-2", name="Someone Else")
        result = service.award_job(open_job.id, "provider-1", other)
        assert result.code == ErrorCode.FORBIDDEN

    def test_provider_must_have_applied(self, service, open_job, client_actor):
        result = service.award_job(open_job.id, "provider-9", client_actor)
        assert result.error == "Provider has not applied to this job"

    def test_closed_job_not_awardable(self, service, seed, client_actor):
        seed.user("provider-1")
        job = seed.job(status=JobStatus.CLOSED.value, applications=["provider-1"])
        result = service.award_job(job.id, "provider-1", client_actor)
        assert result.code == ErrorCode.CONFLICT

    def test_empty_ids_rejected(self, client_actor):
        storage = MagicMock()
        result = AwardService(storage, MagicMock()).award_job("", "provider-1", client_actor)
        assert result.error == "Job ID is required"
        assert storage.method_calls == []
