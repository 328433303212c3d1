"""
Award flow: turn a chosen application into a booking.

The booking insert and the job's move to In Progress are committed as one
storage batch, guarded by the job still being Open. Two clients (or a client
and an admin) racing to award the same job therefore produce exactly one
booking; the loser gets a conflict result.
"""

import logging
import uuid
from typing import Optional

from localpro.models import Actor, Booking, BookingStatus, JobStatus, NotificationType, utc_now
from localpro.notifications import NotificationService
from localpro.results import ActionResult, ErrorCode, action
from localpro.storage.base import CONFLICT, NOT_FOUND, MarketplaceStorage
from localpro.validation import require

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Could not award job"


class AwardService:
    """Award a job to one of its applicants."""

    def __init__(self, storage: MarketplaceStorage, notifier: Optional[NotificationService] = None):
        self.storage = storage
        self.notifier = notifier or NotificationService(storage)

    @action(FAILURE_MESSAGE, "Failed to award job")
    def award_job(self, job_id: str, provider_id: str, client: Actor) -> ActionResult[Booking]:
        job_id = require(job_id, "Job ID")
        provider_id = require(provider_id, "Provider ID")
        require(client.id, "Client ID")

        job = self.storage.get_job(job_id)
        if job is None:
            return ActionResult.fail("Job not found", FAILURE_MESSAGE, ErrorCode.NOT_FOUND)
        if job.client_id != client.id:
            return ActionResult.fail("Only the job client can award it", FAILURE_MESSAGE, ErrorCode.FORBIDDEN)
        if provider_id not in job.applications:
            return ActionResult.fail(
                "Provider has not applied to this job", FAILURE_MESSAGE, ErrorCode.VALIDATION
            )
        if not job.is_open:
            return ActionResult.fail("Job is no longer open for awarding", FAILURE_MESSAGE, ErrorCode.CONFLICT)

        provider = self.storage.get_user(provider_id)
        if provider is None:
            return ActionResult.fail("Provider not found", FAILURE_MESSAGE, ErrorCode.NOT_FOUND)

        now = utc_now()
        booking = Booking(
            id=str(uuid.uuid4()),
            job_id=job.id,
            client_id=client.id,
            client_name=client.name or job.client_name,
            client_avatar=client.avatar or job.client_avatar,
            provider_id=provider.uid,
            provider_name=provider.display_name,
            provider_avatar=provider.photo_url,
            service_name=job.title,
            service_id="",
            price=job.budget.amount,
            date=job.deadline or now,
            status=BookingStatus.UPCOMING.value,
            notes=f"This booking was created from job post: {job.title}",
            created_at=now,
        )

        created, error = self.storage.award_job(job.id, booking, expected_status=JobStatus.OPEN.value)
        if error == NOT_FOUND:
            return ActionResult.fail("Job not found", FAILURE_MESSAGE, ErrorCode.NOT_FOUND)
        if error == CONFLICT:
            return ActionResult.fail("Job is no longer open for awarding", FAILURE_MESSAGE, ErrorCode.CONFLICT)

        logger.info(f"Job awarded | job={job.id} | provider={provider.uid} | booking={created.id}")

        sent = self.notifier.notify(
            provider.uid,
            NotificationType.JOB_AWARDED.value,
            f"You have been awarded the job: {job.title}",
            link=f"/bookings/{created.id}",
            metadata={"jobId": job.id, "bookingId": created.id},
        )
        if not sent.success:
            logger.warning(f"Award notification failed | job={job.id} | provider={provider.uid}: {sent.error}")

        return ActionResult.ok(created, "Job awarded successfully")
