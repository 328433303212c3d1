"""
Manual booking payment verification.

An admin approves or rejects the payment proof a client uploaded for a
booking. The decision runs in two phases:

1. Core commit: the booking update and its transaction record are written in
   one storage batch, guarded by the booking still awaiting verification.
2. Side effects: client and provider notifications, then the audit entry.
   Each is independent and best effort; failures are logged and reported in
   the result, and never undo phase 1.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from localpro.audit import APPROVE_PAYMENT, REJECT_PAYMENT, AuditLogger
from localpro.models import (
    Actor,
    Booking,
    BookingStatus,
    NotificationType,
    Transaction,
    TransactionStatus,
    TransactionType,
    utc_now,
)
from localpro.notifications import NotificationService
from localpro.results import ActionResult, ErrorCode, action
from localpro.storage.base import CONFLICT, NOT_FOUND, MarketplaceStorage
from localpro.validation import require

logger = logging.getLogger(__name__)

MODULE = "payments"


class PaymentVerificationService:
    def __init__(
        self,
        storage: MarketplaceStorage,
        notifier: Optional[NotificationService] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.storage = storage
        self.notifier = notifier or NotificationService(storage)
        self.audit = audit or AuditLogger(storage)

    @action("Could not approve payment", "Failed to approve payment")
    def approve_payment(self, booking_id: str, actor: Actor) -> ActionResult[Dict[str, Any]]:
        booking_id = require(booking_id, "Booking ID")
        require(actor.id, "Actor ID")

        booking, failure = self._pending_booking(booking_id, "Could not approve payment")
        if failure:
            return failure

        now = utc_now()
        transaction = Transaction(
            id=str(uuid.uuid4()),
            booking_id=booking.id,
            client_id=booking.client_id,
            provider_id=booking.provider_id,
            amount=booking.price,
            type=TransactionType.BOOKING_PAYMENT.value,
            status=TransactionStatus.COMPLETED.value,
            verified_at=now,
            created_at=now,
        )
        updates = {
            "status": BookingStatus.UPCOMING.value,
            "payment_verified_at": now,
            "payment_verified_by": actor.id,
        }
        updated, failure = self._commit(booking, updates, transaction, "Could not approve payment")
        if failure:
            return failure

        logger.info(f"Payment approved | booking={booking.id} | actor={actor.id}")
        failed = self._notify_all(
            [
                (
                    booking.client_id,
                    NotificationType.PAYMENT_VERIFIED.value,
                    f"Your payment for {booking.service_name} has been confirmed.",
                ),
                (
                    booking.provider_id,
                    NotificationType.BOOKING_UPDATE.value,
                    f"Payment confirmed for {booking.service_name}. The booking is now upcoming.",
                ),
            ],
            booking,
        )
        self.audit.log_action(
            actor, MODULE, APPROVE_PAYMENT, {"bookingId": booking.id, "amount": booking.price}
        )
        return ActionResult.ok(
            {"booking": updated, "transaction": transaction, "notificationsFailed": failed},
            "Payment approved successfully",
        )

    @action("Could not reject payment", "Failed to reject payment")
    def reject_payment(self, booking_id: str, actor: Actor, reason: str) -> ActionResult[Dict[str, Any]]:
        booking_id = require(booking_id, "Booking ID")
        reason = require(reason, "Rejection reason")
        require(actor.id, "Actor ID")

        booking, failure = self._pending_booking(booking_id, "Could not reject payment")
        if failure:
            return failure

        now = utc_now()
        transaction = Transaction(
            id=str(uuid.uuid4()),
            booking_id=booking.id,
            client_id=booking.client_id,
            provider_id=booking.provider_id,
            amount=booking.price,
            type=TransactionType.BOOKING_PAYMENT.value,
            status=TransactionStatus.REJECTED.value,
            rejected_at=now,
            created_at=now,
        )
        updates = {
            "status": BookingStatus.PAYMENT_REJECTED.value,
            "payment_rejected_at": now,
            "payment_rejection_reason": reason,
        }
        updated, failure = self._commit(booking, updates, transaction, "Could not reject payment")
        if failure:
            return failure

        logger.info(f"Payment rejected | booking={booking.id} | actor={actor.id}")
        failed = self._notify_all(
            [
                (
                    booking.client_id,
                    NotificationType.PAYMENT_REJECTED.value,
                    f"Your payment for {booking.service_name} was rejected: {reason}",
                ),
            ],
            booking,
        )
        self.audit.log_action(actor, MODULE, REJECT_PAYMENT, {"bookingId": booking.id, "reason": reason})
        return ActionResult.ok(
            {"booking": updated, "transaction": transaction, "notificationsFailed": failed},
            "Payment rejected",
        )

    # === Helpers ===

    def _pending_booking(self, booking_id: str, message: str) -> Tuple[Optional[Booking], Optional[ActionResult]]:
        booking = self.storage.get_booking(booking_id)
        if booking is None:
            return None, ActionResult.fail("Booking not found", message, ErrorCode.NOT_FOUND)
        if booking.status != BookingStatus.PENDING_VERIFICATION.value:
            return None, ActionResult.fail(
                "Booking is not awaiting payment verification", message, ErrorCode.CONFLICT
            )
        return booking, None

    def _commit(
        self, booking: Booking, updates: Dict[str, Any], transaction: Transaction, message: str
    ) -> Tuple[Optional[Booking], Optional[ActionResult]]:
        updated, error = self.storage.record_payment_decision(
            booking.id, BookingStatus.PENDING_VERIFICATION.value, updates, transaction
        )
        if error == NOT_FOUND:
            return None, ActionResult.fail("Booking not found", message, ErrorCode.NOT_FOUND)
        if error == CONFLICT:
            return None, ActionResult.fail(
                "Booking is not awaiting payment verification", message, ErrorCode.CONFLICT
            )
        return updated, None

    def _notify_all(self, notices: List[Tuple[str, str, str]], booking: Booking) -> List[str]:
        """Send each notice independently; return the user IDs that failed."""
        failed = []
        for user_id, kind, text in notices:
            result = self.notifier.notify(
                user_id,
                kind,
                text,
                link=f"/bookings/{booking.id}",
                priority="high",
                metadata={"bookingId": booking.id},
            )
            if not result.success:
                logger.warning(f"Payment notification failed | booking={booking.id} | user={user_id}: {result.error}")
                failed.append(user_id)
        return failed
