"""Admin routes: job overrides, payment verification and the audit trail.

Every route requires a token with the ``admin`` role.
"""

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from ..auth import AdminUser
from ..database import JobAdmin, Payments, Storage
from ..logging_config import get_logger
from ..rate_limit import limiter
from ..responses import respond

logger = get_logger("localpro.admin")

router = APIRouter(prefix="/admin", tags=["admin"])


class AdminJobStatusUpdate(BaseModel):
    status: str


class PaymentRejection(BaseModel):
    reason: str = Field(..., max_length=500)


# =============================================================================
# Jobs
# =============================================================================


@router.post("/jobs/{job_id}/status")
async def admin_update_job_status(job_id: str, body: AdminJobStatusUpdate, admin: AdminUser, job_admin: JobAdmin):
    logger.info(f"POST /admin/jobs/{job_id}/status | admin={admin.user_id} | status={body.status}")
    result = job_admin.handle_update_job_status(job_id, body.status, admin.actor)
    return respond(result, "admin_update_job_status", admin.user_id)


@router.delete("/jobs/{job_id}")
async def admin_delete_job(job_id: str, admin: AdminUser, job_admin: JobAdmin):
    logger.info(f"DELETE /admin/jobs/{job_id} | admin={admin.user_id}")
    return respond(job_admin.handle_delete_job(job_id, admin.actor), "admin_delete_job", admin.user_id)


# =============================================================================
# Payments
# =============================================================================


@router.post("/bookings/{booking_id}/payment/approve")
@limiter.limit("30/minute")
async def approve_payment(request: Request, booking_id: str, admin: AdminUser, payments: Payments):
    """Approve the uploaded payment proof; the booking becomes Upcoming."""
    logger.info(f"POST /admin/bookings/{booking_id}/payment/approve | admin={admin.user_id}")
    return respond(payments.approve_payment(booking_id, admin.actor), "approve_payment", admin.user_id)


@router.post("/bookings/{booking_id}/payment/reject")
@limiter.limit("30/minute")
async def reject_payment(
    request: Request, booking_id: str, body: PaymentRejection, admin: AdminUser, payments: Payments
):
    logger.info(f"POST /admin/bookings/{booking_id}/payment/reject | admin={admin.user_id}")
    result = payments.reject_payment(booking_id, admin.actor, body.reason)
    return respond(result, "reject_payment", admin.user_id)


# =============================================================================
# Audit trail
# =============================================================================


@router.get("/audit-logs")
async def list_audit_logs(admin: AdminUser, storage: Storage, module: str | None = Query(None)):
    entries = storage.list_audit_entries(module=module)
    return {"success": True, "data": [e.to_dict() for e in entries]}
