"""
Agency membership: invites, acceptance and removal.

Acceptance and removal each touch a user row and an invite row; both go
through single storage methods so the two writes commit together.
"""

import logging
import uuid
from typing import Any, Dict, Optional, Tuple

from localpro.models import Actor, Invite, NotificationType, UserProfile, utc_now
from localpro.notifications import NotificationService
from localpro.results import ActionResult, ErrorCode, action
from localpro.storage.base import MarketplaceStorage
from localpro.validation import require, require_email

logger = logging.getLogger(__name__)


class AgencyService:
    def __init__(self, storage: MarketplaceStorage, notifier: Optional[NotificationService] = None):
        self.storage = storage
        self.notifier = notifier or NotificationService(storage)

    @action("Could not send invite", "Failed to invite provider")
    def invite_provider(self, agency: Actor, email: str) -> ActionResult[Invite]:
        """Invite a provider by email to join ``agency``."""
        require(agency.id, "Agency ID")
        email = require_email(email)

        if self.storage.find_pending_invite(agency.id, email):
            return ActionResult.fail(
                "An invite has already been sent to this email", "Could not send invite", ErrorCode.CONFLICT
            )

        user = self.storage.get_user_by_email(email)
        if user is not None and user.agency_id:
            error = (
                "Provider is already a member of this agency"
                if user.agency_id == agency.id
                else "Provider already belongs to an agency"
            )
            return ActionResult.fail(error, "Could not send invite", ErrorCode.CONFLICT)

        invite = Invite(
            id=str(uuid.uuid4()),
            agency_id=agency.id,
            agency_name=agency.name,
            email=email,
            provider_id=user.uid if user else None,
            created_at=utc_now(),
        )
        self.storage.save_invite(invite)
        logger.info(f"Invite created | agency={agency.id} | email={email}")

        if user is not None:
            sent = self.notifier.notify(
                user.uid,
                NotificationType.AGENCY_INVITE.value,
                f"{agency.name} has invited you to join their agency.",
                link="/profile",
                metadata={"inviteId": invite.id, "agencyId": agency.id, "agencyName": agency.name},
            )
            if not sent.success:
                logger.warning(f"Invite notification failed | invite={invite.id}: {sent.error}")

        return ActionResult.ok(invite, "Invite sent successfully")

    @action("Could not accept invite", "Failed to accept invite")
    def accept_invite(self, invite_id: str, provider: Actor) -> ActionResult[UserProfile]:
        invite_id = require(invite_id, "Invite ID")
        require(provider.id, "Provider ID")

        invite, user, failure = self._invite_for(invite_id, provider, "Could not accept invite")
        if failure:
            return failure
        if user.agency_id:
            return ActionResult.fail(
                "Provider already belongs to an agency", "Could not accept invite", ErrorCode.CONFLICT
            )

        updated, error = self.storage.accept_invite(invite.id, user.uid)
        if error:
            return ActionResult.fail("Invite not found", "Could not accept invite", ErrorCode.NOT_FOUND)

        logger.info(f"Invite accepted | agency={invite.agency_id} | provider={user.uid}")
        return ActionResult.ok(updated, f"You have joined {invite.agency_name}")

    @action("Could not decline invite", "Failed to decline invite")
    def decline_invite(self, invite_id: str, provider: Actor) -> ActionResult:
        invite_id = require(invite_id, "Invite ID")
        require(provider.id, "Provider ID")

        invite, _, failure = self._invite_for(invite_id, provider, "Could not decline invite")
        if failure:
            return failure
        self.storage.delete_invite(invite.id)
        return ActionResult.ok(message="Invite declined")

    @action("Could not remove provider", "Failed to remove provider")
    def remove_provider(self, agency_id: str, provider_id: str) -> ActionResult:
        """Remove an active member, or cancel a pending invite by its ID."""
        agency_id = require(agency_id, "Agency ID")
        provider_id = require(provider_id, "Provider ID")

        if self.storage.remove_agency_provider(agency_id, provider_id):
            return ActionResult.fail(
                "Provider not found in this agency", "Could not remove provider", ErrorCode.NOT_FOUND
            )
        logger.info(f"Provider removed | agency={agency_id} | provider={provider_id}")
        return ActionResult.ok(message="Provider removed successfully")

    @action("Could not retrieve agency providers", "Failed to get agency providers")
    def list_agency_providers(self, agency_id: str) -> ActionResult[Dict[str, Any]]:
        agency_id = require(agency_id, "Agency ID")
        return ActionResult.ok(
            {
                "members": self.storage.list_agency_members(agency_id),
                "pendingInvites": self.storage.list_invites(agency_id),
            },
            "Agency providers retrieved successfully",
        )

    def _invite_for(
        self, invite_id: str, provider: Actor, message: str
    ) -> Tuple[Optional[Invite], Optional[UserProfile], Optional[ActionResult]]:
        invite = self.storage.get_invite(invite_id)
        if invite is None:
            return None, None, ActionResult.fail("Invite not found", message, ErrorCode.NOT_FOUND)
        user = self.storage.get_user(provider.id)
        if user is None:
            return None, None, ActionResult.fail("Provider not found", message, ErrorCode.NOT_FOUND)
        if invite.provider_id != user.uid and invite.email != (user.email or "").lower():
            return None, None, ActionResult.fail(
                "This invite was sent to a different account", message, ErrorCode.FORBIDDEN
            )
        return invite, user, None
