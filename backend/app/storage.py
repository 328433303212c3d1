"""Supabase implementation of the marketplace storage protocols.

Single-table operations use the PostgREST query builder. Multi-row writes
(set-union apply, award, payment decision, invite batches, mark-all-read)
call Postgres functions defined in supabase/migrations, each of which runs
in one transaction.
"""

from datetime import datetime
from typing import Any

from supabase import Client

from localpro.models import (
    AuditLogEntry,
    Booking,
    CartItem,
    Invite,
    InviteStatus,
    Job,
    Notification,
    Product,
    Review,
    Transaction,
    UserProfile,
    utc_now,
)
from localpro.storage.base import (
    AUDIT_LOG_TABLE,
    BOOKINGS_TABLE,
    CART_ITEMS_TABLE,
    INVITES_TABLE,
    JOBS_TABLE,
    NOTIFICATIONS_TABLE,
    PRODUCTS_TABLE,
    REVIEWS_TABLE,
    TRANSACTIONS_TABLE,
    USERS_TABLE,
    StorageError,
)

from .logging_config import get_logger

logger = get_logger("localpro.storage")


def _first(result) -> dict | None:
    return result.data[0] if result.data else None


def _row_values(updates: dict[str, Any]) -> dict[str, Any]:
    return {k: v.isoformat() if isinstance(v, datetime) else v for k, v in updates.items()}


class SupabaseStorage:
    """Marketplace storage backed by a Supabase (Postgres) project."""

    def __init__(self, db: Client):
        self.db = db

    def _rpc(self, fn: str, params: dict[str, Any]) -> Any:
        data = self.db.rpc(fn, params).execute().data
        if data is None:
            raise StorageError(f"{fn} returned no result")
        return data

    # =========================================================================
    # Jobs
    # =========================================================================

    def save_job(self, job: Job) -> str:
        self.db.table(JOBS_TABLE).upsert(job.to_dict()).execute()
        return job.id

    def get_job(self, job_id: str) -> Job | None:
        row = _first(self.db.table(JOBS_TABLE).select("*").eq("id", job_id).execute())
        return Job.from_dict(row) if row else None

    def list_jobs(
        self,
        status: str | None = None,
        client_id: str | None = None,
        applicant_id: str | None = None,
        category: str | None = None,
    ) -> list[Job]:
        query = self.db.table(JOBS_TABLE).select("*")
        if status is not None:
            query = query.eq("status", status)
        if client_id is not None:
            query = query.eq("client_id", client_id)
        if applicant_id is not None:
            query = query.contains("applications", [applicant_id])
        if category is not None:
            query = query.eq("category_name", category)
        result = query.order("created_at", desc=True).execute()
        return [Job.from_dict(r) for r in result.data or []]

    def update_job_status(self, job_id: str, status: str) -> Job | None:
        result = (
            self.db.table(JOBS_TABLE)
            .update({"status": status, "updated_at": utc_now().isoformat()})
            .eq("id", job_id)
            .execute()
        )
        row = _first(result)
        return Job.from_dict(row) if row else None

    def delete_job(self, job_id: str) -> bool:
        result = self.db.table(JOBS_TABLE).delete().eq("id", job_id).execute()
        return bool(result.data)

    def add_application(self, job_id: str, provider_id: str) -> bool:
        return bool(self._rpc("add_job_application", {"p_job_id": job_id, "p_provider_id": provider_id}))

    def award_job(
        self, job_id: str, booking: Booking, expected_status: str
    ) -> tuple[Booking | None, str | None]:
        outcome = self._rpc(
            "award_job",
            {"p_job_id": job_id, "p_expected_status": expected_status, "p_booking": booking.to_dict()},
        )
        if outcome.get("error"):
            if outcome["error"] == "conflict":
                logger.warning(f"Award conflict on job {job_id}: status is no longer '{expected_status}'")
            return None, outcome["error"]
        return Booking.from_dict(outcome["booking"]), None

    # =========================================================================
    # Bookings & transactions
    # =========================================================================

    def save_booking(self, booking: Booking) -> str:
        self.db.table(BOOKINGS_TABLE).upsert(booking.to_dict()).execute()
        return booking.id

    def get_booking(self, booking_id: str) -> Booking | None:
        row = _first(self.db.table(BOOKINGS_TABLE).select("*").eq("id", booking_id).execute())
        return Booking.from_dict(row) if row else None

    def list_bookings(
        self,
        job_id: str | None = None,
        client_id: str | None = None,
        provider_id: str | None = None,
    ) -> list[Booking]:
        query = self.db.table(BOOKINGS_TABLE).select("*")
        if job_id is not None:
            query = query.eq("job_id", job_id)
        if client_id is not None:
            query = query.eq("client_id", client_id)
        if provider_id is not None:
            query = query.eq("provider_id", provider_id)
        result = query.order("created_at", desc=True).execute()
        return [Booking.from_dict(r) for r in result.data or []]

    def record_payment_decision(
        self,
        booking_id: str,
        expected_status: str,
        updates: dict[str, Any],
        transaction: Transaction,
    ) -> tuple[Booking | None, str | None]:
        outcome = self._rpc(
            "record_payment_decision",
            {
                "p_booking_id": booking_id,
                "p_expected_status": expected_status,
                "p_updates": _row_values(updates),
                "p_transaction": transaction.to_dict(),
            },
        )
        if outcome.get("error"):
            return None, outcome["error"]
        return Booking.from_dict(outcome["booking"]), None

    def list_transactions(self, booking_id: str | None = None) -> list[Transaction]:
        query = self.db.table(TRANSACTIONS_TABLE).select("*")
        if booking_id is not None:
            query = query.eq("booking_id", booking_id)
        result = query.order("created_at").execute()
        return [Transaction.from_dict(r) for r in result.data or []]

    # =========================================================================
    # Users & reviews
    # =========================================================================

    def save_user(self, user: UserProfile) -> str:
        row = user.to_dict()
        if row["email"]:
            row["email"] = row["email"].lower()
        self.db.table(USERS_TABLE).upsert(row).execute()
        return user.uid

    def get_user(self, uid: str) -> UserProfile | None:
        row = _first(self.db.table(USERS_TABLE).select("*").eq("uid", uid).execute())
        return UserProfile.from_dict(row) if row else None

    def get_users(self, uids: list[str]) -> list[UserProfile]:
        if not uids:
            return []
        result = self.db.table(USERS_TABLE).select("*").in_("uid", uids).execute()
        return [UserProfile.from_dict(r) for r in result.data or []]

    def get_user_by_email(self, email: str) -> UserProfile | None:
        result = self.db.table(USERS_TABLE).select("*").eq("email", email.lower()).limit(1).execute()
        row = _first(result)
        return UserProfile.from_dict(row) if row else None

    def list_agency_members(self, agency_id: str) -> list[UserProfile]:
        result = self.db.table(USERS_TABLE).select("*").eq("agency_id", agency_id).execute()
        return [UserProfile.from_dict(r) for r in result.data or []]

    def save_review(self, review: Review) -> str:
        self.db.table(REVIEWS_TABLE).upsert(review.to_dict()).execute()
        return review.id

    def list_reviews(self, provider_ids: list[str]) -> list[Review]:
        if not provider_ids:
            return []
        result = self.db.table(REVIEWS_TABLE).select("*").in_("provider_id", provider_ids).execute()
        return [Review.from_dict(r) for r in result.data or []]

    # =========================================================================
    # Invites
    # =========================================================================

    def save_invite(self, invite: Invite) -> str:
        self.db.table(INVITES_TABLE).upsert(invite.to_dict()).execute()
        return invite.id

    def get_invite(self, invite_id: str) -> Invite | None:
        row = _first(self.db.table(INVITES_TABLE).select("*").eq("id", invite_id).execute())
        return Invite.from_dict(row) if row else None

    def find_pending_invite(self, agency_id: str, email: str) -> Invite | None:
        result = (
            self.db.table(INVITES_TABLE)
            .select("*")
            .eq("agency_id", agency_id)
            .eq("email", email.lower())
            .eq("status", InviteStatus.PENDING.value)
            .limit(1)
            .execute()
        )
        row = _first(result)
        return Invite.from_dict(row) if row else None

    def list_invites(self, agency_id: str) -> list[Invite]:
        result = (
            self.db.table(INVITES_TABLE)
            .select("*")
            .eq("agency_id", agency_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [Invite.from_dict(r) for r in result.data or []]

    def delete_invite(self, invite_id: str) -> bool:
        result = self.db.table(INVITES_TABLE).delete().eq("id", invite_id).execute()
        return bool(result.data)

    def accept_invite(self, invite_id: str, provider_id: str) -> tuple[UserProfile | None, str | None]:
        outcome = self._rpc("accept_agency_invite", {"p_invite_id": invite_id, "p_provider_id": provider_id})
        if outcome.get("error"):
            return None, outcome["error"]
        return UserProfile.from_dict(outcome["user"]), None

    def remove_agency_provider(self, agency_id: str, provider_id: str) -> str | None:
        outcome = self._rpc(
            "remove_agency_provider", {"p_agency_id": agency_id, "p_provider_id": provider_id}
        )
        return outcome.get("error")

    # =========================================================================
    # Notifications
    # =========================================================================

    def save_notification(self, notification: Notification) -> str:
        self.db.table(NOTIFICATIONS_TABLE).insert(notification.to_dict()).execute()
        return notification.id

    def list_notifications(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        query = self.db.table(NOTIFICATIONS_TABLE).select("*").eq("user_id", user_id)
        if unread_only:
            query = query.eq("read", False)
        result = query.order("created_at", desc=True).execute()
        return [Notification.from_dict(r) for r in result.data or []]

    def mark_notification_read(self, user_id: str, notification_id: str) -> bool:
        result = (
            self.db.table(NOTIFICATIONS_TABLE)
            .update({"read": True})
            .eq("id", notification_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(result.data)

    def mark_all_notifications_read(self, user_id: str) -> int:
        return int(self._rpc("mark_all_notifications_read", {"p_user_id": user_id}) or 0)

    def delete_notification(self, user_id: str, notification_id: str) -> bool:
        result = (
            self.db.table(NOTIFICATIONS_TABLE)
            .delete()
            .eq("id", notification_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(result.data)

    # =========================================================================
    # Products & cart
    # =========================================================================

    def save_product(self, product: Product) -> str:
        self.db.table(PRODUCTS_TABLE).upsert(product.to_dict()).execute()
        return product.id

    def get_product(self, product_id: str) -> Product | None:
        row = _first(self.db.table(PRODUCTS_TABLE).select("*").eq("id", product_id).execute())
        return Product.from_dict(row) if row else None

    def list_cart_items(self, user_id: str) -> list[CartItem]:
        result = (
            self.db.table(CART_ITEMS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("added_at", desc=True)
            .execute()
        )
        return [CartItem.from_dict(r) for r in result.data or []]

    def get_cart_item(self, user_id: str, product_id: str) -> CartItem | None:
        result = (
            self.db.table(CART_ITEMS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("product_id", product_id)
            .limit(1)
            .execute()
        )
        row = _first(result)
        return CartItem.from_dict(row) if row else None

    def save_cart_item(self, item: CartItem) -> str:
        self.db.table(CART_ITEMS_TABLE).upsert(item.to_dict()).execute()
        return item.id

    def update_cart_item_quantity(self, user_id: str, item_id: str, quantity: int) -> bool:
        result = (
            self.db.table(CART_ITEMS_TABLE)
            .update({"quantity": quantity, "updated_at": utc_now().isoformat()})
            .eq("id", item_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(result.data)

    def delete_cart_item(self, user_id: str, item_id: str) -> bool:
        result = self.db.table(CART_ITEMS_TABLE).delete().eq("id", item_id).eq("user_id", user_id).execute()
        return bool(result.data)

    def clear_cart(self, user_id: str) -> int:
        result = self.db.table(CART_ITEMS_TABLE).delete().eq("user_id", user_id).execute()
        return len(result.data or [])

    # =========================================================================
    # Audit
    # =========================================================================

    def save_audit_entry(self, entry: AuditLogEntry) -> str:
        self.db.table(AUDIT_LOG_TABLE).insert(entry.to_dict()).execute()
        return entry.id

    def list_audit_entries(self, module: str | None = None) -> list[AuditLogEntry]:
        query = self.db.table(AUDIT_LOG_TABLE).select("*")
        if module is not None:
            query = query.eq("module", module)
        result = query.order("timestamp", desc=True).execute()
        return [AuditLogEntry.from_dict(r) for r in result.data or []]
