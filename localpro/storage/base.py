"""Storage protocols for LocalPro backends.

This defines the interface that all storage backends must implement.
Currently supported:
- InMemoryStorage: dict-backed storage for tests and local development
- SupabaseStorage: Postgres via supabase-py (backend/app/storage.py)

Multi-record writes (award, payment decision, invite acceptance, provider
removal, mark-all-read) are single methods so each backend can commit them
atomically. Conditional writes return ``(record, None)`` on success or
``(None, "not_found" | "conflict")`` when the precondition fails; in the
failure case nothing is written.
"""

from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from localpro.models import (
    AuditLogEntry,
    Booking,
    CartItem,
    Invite,
    Job,
    Notification,
    Product,
    Review,
    Transaction,
    UserProfile,
)

NOT_FOUND = "not_found"
CONFLICT = "conflict"

# Table names, shared by every backend
JOBS_TABLE = "jobs"
BOOKINGS_TABLE = "bookings"
TRANSACTIONS_TABLE = "transactions"
USERS_TABLE = "users"
REVIEWS_TABLE = "reviews"
INVITES_TABLE = "invites"
NOTIFICATIONS_TABLE = "notifications"
PRODUCTS_TABLE = "products"
CART_ITEMS_TABLE = "cart_items"
AUDIT_LOG_TABLE = "audit_logs"


class StorageError(Exception):
    """A backend failed to read or write."""


class JobStorage(Protocol):
    """Jobs, their application sets and the bookings created from them."""

    def save_job(self, job: Job) -> str:
        """Insert or replace a job. Returns the job ID."""
        ...

    def get_job(self, job_id: str) -> Optional[Job]:
        ...

    def list_jobs(
        self,
        status: Optional[str] = None,
        client_id: Optional[str] = None,
        applicant_id: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[Job]:
        """List jobs matching every given filter, newest first."""
        ...

    def update_job_status(self, job_id: str, status: str) -> Optional[Job]:
        """Set status and stamp ``updated_at``. Returns None if the job is missing."""
        ...

    def delete_job(self, job_id: str) -> bool:
        ...

    def add_application(self, job_id: str, provider_id: str) -> bool:
        """Add ``provider_id`` to the job's application set.

        Set-union semantics: adding an existing member is a no-op.
        Returns False if the job does not exist.
        """
        ...

    def award_job(
        self, job_id: str, booking: Booking, expected_status: str
    ) -> Tuple[Optional[Booking], Optional[str]]:
        """Create ``booking`` and move the job to In Progress in one batch.

        The batch only applies while the job's status equals ``expected_status``.
        """
        ...


class BookingStorage(Protocol):
    def save_booking(self, booking: Booking) -> str:
        ...

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        ...

    def list_bookings(
        self,
        job_id: Optional[str] = None,
        client_id: Optional[str] = None,
        provider_id: Optional[str] = None,
    ) -> List[Booking]:
        ...

    def record_payment_decision(
        self,
        booking_id: str,
        expected_status: str,
        updates: Dict[str, Any],
        transaction: Transaction,
    ) -> Tuple[Optional[Booking], Optional[str]]:
        """Apply ``updates`` to the booking and append ``transaction`` in one batch.

        ``updates`` uses booking column names and must include ``status``.
        """
        ...

    def list_transactions(self, booking_id: Optional[str] = None) -> List[Transaction]:
        ...


class UserStorage(Protocol):
    def save_user(self, user: UserProfile) -> str:
        ...

    def get_user(self, uid: str) -> Optional[UserProfile]:
        ...

    def get_users(self, uids: List[str]) -> List[UserProfile]:
        """Fetch several users; missing IDs are skipped."""
        ...

    def get_user_by_email(self, email: str) -> Optional[UserProfile]:
        ...

    def list_agency_members(self, agency_id: str) -> List[UserProfile]:
        ...

    def save_review(self, review: Review) -> str:
        ...

    def list_reviews(self, provider_ids: List[str]) -> List[Review]:
        ...


class InviteStorage(Protocol):
    def save_invite(self, invite: Invite) -> str:
        ...

    def get_invite(self, invite_id: str) -> Optional[Invite]:
        ...

    def find_pending_invite(self, agency_id: str, email: str) -> Optional[Invite]:
        ...

    def list_invites(self, agency_id: str) -> List[Invite]:
        ...

    def delete_invite(self, invite_id: str) -> bool:
        ...

    def accept_invite(self, invite_id: str, provider_id: str) -> Tuple[Optional[UserProfile], Optional[str]]:
        """Set the provider's agency and delete the invite in one batch."""
        ...

    def remove_agency_provider(self, agency_id: str, provider_id: str) -> Optional[str]:
        """Detach an active member or delete their pending invite, in one batch.

        Returns None on success or ``"not_found"``.
        """
        ...


class NotificationStorage(Protocol):
    def save_notification(self, notification: Notification) -> str:
        ...

    def list_notifications(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        """Newest first."""
        ...

    def mark_notification_read(self, user_id: str, notification_id: str) -> bool:
        ...

    def mark_all_notifications_read(self, user_id: str) -> int:
        """Mark every unread notification read in one batch. Returns the count."""
        ...

    def delete_notification(self, user_id: str, notification_id: str) -> bool:
        ...


class CartStorage(Protocol):
    def save_product(self, product: Product) -> str:
        ...

    def get_product(self, product_id: str) -> Optional[Product]:
        ...

    def list_cart_items(self, user_id: str) -> List[CartItem]:
        """Newest first by ``added_at``."""
        ...

    def get_cart_item(self, user_id: str, product_id: str) -> Optional[CartItem]:
        ...

    def save_cart_item(self, item: CartItem) -> str:
        ...

    def update_cart_item_quantity(self, user_id: str, item_id: str, quantity: int) -> bool:
        ...

    def delete_cart_item(self, user_id: str, item_id: str) -> bool:
        ...

    def clear_cart(self, user_id: str) -> int:
        ...


class AuditStorage(Protocol):
    def save_audit_entry(self, entry: AuditLogEntry) -> str:
        ...

    def list_audit_entries(self, module: Optional[str] = None) -> List[AuditLogEntry]:
        ...


@runtime_checkable
class MarketplaceStorage(
    JobStorage,
    BookingStorage,
    UserStorage,
    InviteStorage,
    NotificationStorage,
    CartStorage,
    AuditStorage,
    Protocol,
):
    """Everything a full marketplace backend provides."""
