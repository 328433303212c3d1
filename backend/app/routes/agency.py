"""Agency membership routes: invites and provider removal."""

from fastapi import APIRouter, Request, status
from pydantic import BaseModel

from localpro.models import UserRole

from ..auth import AuthContext, CurrentUser
from ..database import Agencies
from ..logging_config import get_logger
from ..rate_limit import limiter
from ..responses import envelope_error, respond

logger = get_logger("localpro.routes.agency")
router = APIRouter(prefix="/agency", tags=["agency"])


class InviteRequest(BaseModel):
    # Validated by the service so a bad address gets the envelope, not a 422
    email: str


def _agency_only(auth: AuthContext, message: str):
    if auth.role != UserRole.AGENCY.value:
        return envelope_error(status.HTTP_403_FORBIDDEN, "Agency account required", message)
    return None


@router.get("/providers")
async def list_providers(auth: CurrentUser, agencies: Agencies):
    """Active members and pending invites of the caller's agency."""
    denied = _agency_only(auth, "Could not retrieve agency providers")
    if denied is not None:
        return denied
    return respond(agencies.list_agency_providers(auth.user_id))


@router.post("/invites", status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def invite_provider(request: Request, body: InviteRequest, auth: CurrentUser, agencies: Agencies):
    logger.info(f"POST /agency/invites | agency={auth.user_id}")
    denied = _agency_only(auth, "Could not send invite")
    if denied is not None:
        return denied
    result = agencies.invite_provider(auth.actor, body.email)
    return respond(result, "invite_provider", auth.user_id, success_status=status.HTTP_201_CREATED)


@router.post("/invites/{invite_id}/accept")
async def accept_invite(invite_id: str, auth: CurrentUser, agencies: Agencies):
    logger.info(f"POST /agency/invites/{invite_id}/accept | provider={auth.user_id}")
    return respond(agencies.accept_invite(invite_id, auth.actor), "accept_invite", auth.user_id)


@router.post("/invites/{invite_id}/decline")
async def decline_invite(invite_id: str, auth: CurrentUser, agencies: Agencies):
    return respond(agencies.decline_invite(invite_id, auth.actor), "decline_invite", auth.user_id)


@router.delete("/providers/{provider_id}")
async def remove_provider(provider_id: str, auth: CurrentUser, agencies: Agencies):
    """Remove a member, or cancel a pending invite by its ID."""
    logger.info(f"DELETE /agency/providers/{provider_id} | agency={auth.user_id}")
    denied = _agency_only(auth, "Could not remove provider")
    if denied is not None:
        return denied
    return respond(agencies.remove_provider(auth.user_id, provider_id), "remove_provider", auth.user_id)
