"""Job board routes: posting, applying, client job management and awards."""

from datetime import datetime

from fastapi import APIRouter, Query, Request, status
from pydantic import BaseModel, Field

from localpro.feeds import wait_for_change
from localpro.models import JobStatus, UserRole

from ..auth import CurrentUser
from ..config import get_settings
from ..database import Applicants, Awards, Jobs, Storage
from ..logging_config import get_logger
from ..rate_limit import limiter
from ..responses import envelope_error, respond

logger = get_logger("localpro.routes.jobs")
router = APIRouter(prefix="/jobs", tags=["jobs"])


# =============================================================================
# Request Models
# =============================================================================


class JobCreate(BaseModel):
    """Request to post a job."""

    title: str = Field(..., max_length=200)
    description: str
    category_name: str
    budget_amount: float
    budget_type: str = "Fixed"
    negotiable: bool = False
    location: str = ""
    deadline: datetime | None = None
    client_is_verified: bool = False


class JobStatusUpdate(BaseModel):
    status: str


class AwardRequest(BaseModel):
    provider_id: str


# =============================================================================
# Job board
# =============================================================================


@router.get("")
async def list_open_jobs(
    jobs: Jobs,
    category: str | None = Query(None),
    q: str | None = Query(None, description="Search title, description, location and category"),
):
    """List open jobs, optionally by category or search term."""
    if q:
        return respond(jobs.search_jobs(q))
    if category:
        return respond(jobs.get_jobs_by_category(category))
    return respond(jobs.get_open_jobs())


@router.get("/feed")
async def open_jobs_feed(
    storage: Storage,
    since: str | None = Query(None, description="Version from the previous response"),
):
    """Long-poll the open jobs list; returns when it differs from ``since``."""
    settings = get_settings()
    snapshot = await wait_for_change(
        lambda: storage.list_jobs(status=JobStatus.OPEN.value),
        since=since,
        timeout=settings.feed_timeout_seconds,
        interval=settings.feed_poll_interval_seconds,
    )
    return {"success": True, "data": snapshot.to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_job(request: Request, body: JobCreate, auth: CurrentUser, jobs: Jobs):
    """Post a new job as the authenticated client."""
    logger.info(f"POST /jobs | client={auth.user_id}")
    if auth.role not in (UserRole.CLIENT.value, UserRole.ADMIN.value):
        return envelope_error(status.HTTP_403_FORBIDDEN, "Only clients can post jobs", "Could not post job")
    result = jobs.create_job(
        auth.actor,
        title=body.title,
        description=body.description,
        category_name=body.category_name,
        budget_amount=body.budget_amount,
        budget_type=body.budget_type,
        negotiable=body.negotiable,
        location=body.location,
        deadline=body.deadline,
        client_is_verified=body.client_is_verified,
    )
    return respond(result, "create_job", auth.user_id, success_status=status.HTTP_201_CREATED)


@router.get("/mine")
async def list_my_jobs(
    auth: CurrentUser,
    jobs: Jobs,
    status_filter: str | None = Query(None, alias="status"),
    q: str | None = Query(None),
):
    """The authenticated client's jobs, by status or search term."""
    if q:
        return respond(jobs.search_client_jobs(auth.user_id, q))
    if status_filter:
        return respond(jobs.get_client_jobs_by_status(auth.user_id, status_filter))
    return respond(jobs.get_client_jobs(auth.user_id))


@router.get("/mine/stats")
async def my_job_stats(auth: CurrentUser, jobs: Jobs):
    return respond(jobs.get_client_job_stats(auth.user_id))


@router.get("/applied")
async def list_applied_jobs(auth: CurrentUser, jobs: Jobs):
    """Jobs the authenticated provider has applied to."""
    return respond(jobs.get_jobs_by_provider(auth.user_id))


@router.get("/{job_id}")
async def get_job(job_id: str, jobs: Jobs):
    return respond(jobs.get_job_by_id(job_id))


@router.post("/{job_id}/apply")
@limiter.limit("30/minute")
async def apply_for_job(request: Request, job_id: str, auth: CurrentUser, jobs: Jobs):
    logger.info(f"POST /jobs/{job_id}/apply | provider={auth.user_id}")
    if auth.role != UserRole.PROVIDER.value:
        return envelope_error(
            status.HTTP_403_FORBIDDEN, "Only providers can apply for jobs", "Could not apply for job"
        )
    return respond(jobs.apply_for_job(job_id, auth.user_id), "apply_for_job", auth.user_id)


# =============================================================================
# Client job management
# =============================================================================


def _owner_check(jobs, job_id: str, user_id: str, message: str):
    """Return an error response unless ``user_id`` owns the job."""
    found = jobs.get_job_by_id(job_id)
    if not found.success:
        return respond(found)
    if found.data.client_id != user_id:
        return envelope_error(status.HTTP_403_FORBIDDEN, "Only the job client can modify this job", message)
    return None


@router.patch("/{job_id}/status")
async def update_job_status(job_id: str, body: JobStatusUpdate, auth: CurrentUser, jobs: Jobs):
    logger.info(f"PATCH /jobs/{job_id}/status | client={auth.user_id} | status={body.status}")
    denied = _owner_check(jobs, job_id, auth.user_id, "Could not update job status")
    if denied is not None:
        return denied
    return respond(jobs.update_job_status(job_id, body.status), "update_job_status", auth.user_id)


@router.delete("/{job_id}")
async def delete_job(job_id: str, auth: CurrentUser, jobs: Jobs):
    logger.info(f"DELETE /jobs/{job_id} | client={auth.user_id}")
    denied = _owner_check(jobs, job_id, auth.user_id, "Could not delete job")
    if denied is not None:
        return denied
    return respond(jobs.delete_job(job_id), "delete_job", auth.user_id)


@router.get("/{job_id}/applicants")
async def list_applicants(
    job_id: str,
    auth: CurrentUser,
    applicants: Applicants,
    rating: int | None = Query(None, ge=1, le=5),
    sort: str | None = Query(None),
    q: str | None = Query(None),
):
    """Applicants with ratings; visible to the job's client only."""
    result = applicants.get_job_applicants(
        job_id, auth.user_id, rating_filter=rating, sort_by=sort, search_term=q
    )
    return respond(result)


@router.post("/{job_id}/award")
@limiter.limit("10/minute")
async def award_job(request: Request, job_id: str, body: AwardRequest, auth: CurrentUser, awards: Awards):
    """Award the job to an applicant, creating a booking. 409 if no longer open."""
    logger.info(f"POST /jobs/{job_id}/award | client={auth.user_id} | provider={body.provider_id}")
    result = awards.award_job(job_id, body.provider_id, auth.actor)
    return respond(result, "award_job", auth.user_id, success_status=status.HTTP_201_CREATED)
