"""
In-memory marketplace storage.

Rows are kept as plain dicts (the same shape the Supabase backend stores) so
both backends exercise the models' ``to_dict``/``from_dict`` mapping. A
re-entrant lock serializes writers; multi-row methods run inside
``_batch()``, which restores the previous state if any step raises.
"""

import copy
import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from localpro.models import (
    AuditLogEntry,
    Booking,
    CartItem,
    Invite,
    InviteStatus,
    Job,
    JobStatus,
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
    CONFLICT,
    INVITES_TABLE,
    JOBS_TABLE,
    NOT_FOUND,
    NOTIFICATIONS_TABLE,
    PRODUCTS_TABLE,
    REVIEWS_TABLE,
    TRANSACTIONS_TABLE,
    USERS_TABLE,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _to_row_values(updates: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v.isoformat() if isinstance(v, datetime) else v for k, v in updates.items()}


class InMemoryStorage:
    """Dict-backed storage for testing and local development."""

    def __init__(self):
        """Initialize empty storage."""
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self._lock = threading.RLock()

    # === Internals ===

    @contextmanager
    def _batch(self) -> Iterator[None]:
        """All-or-nothing write scope."""
        with self._lock:
            snapshot = copy.deepcopy(self._tables)
            try:
                yield
            except Exception:
                self._tables = snapshot
                raise

    def _put(self, table: str, row_id: str, row: Dict[str, Any]) -> None:
        self._tables[table][row_id] = copy.deepcopy(row)

    def _get(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        row = self._tables[table].get(row_id)
        return copy.deepcopy(row) if row is not None else None

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._tables[table].values()]

    def _delete(self, table: str, row_id: str) -> bool:
        with self._lock:
            return self._tables[table].pop(row_id, None) is not None

    # === Jobs ===

    def save_job(self, job: Job) -> str:
        with self._lock:
            self._put(JOBS_TABLE, job.id, job.to_dict())
        return job.id

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            row = self._get(JOBS_TABLE, job_id)
        return Job.from_dict(row) if row else None

    def list_jobs(
        self,
        status: Optional[str] = None,
        client_id: Optional[str] = None,
        applicant_id: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[Job]:
        jobs = [Job.from_dict(r) for r in self._rows(JOBS_TABLE)]

        if status is not None:
            jobs = [j for j in jobs if j.status == status]
        if client_id is not None:
            jobs = [j for j in jobs if j.client_id == client_id]
        if applicant_id is not None:
            jobs = [j for j in jobs if applicant_id in j.applications]
        if category is not None:
            jobs = [j for j in jobs if j.category_name == category]

        jobs.sort(key=lambda j: j.created_at or _EPOCH, reverse=True)
        return jobs

    def update_job_status(self, job_id: str, status: str) -> Optional[Job]:
        with self._lock:
            row = self._tables[JOBS_TABLE].get(job_id)
            if row is None:
                return None
            row["status"] = status
            row["updated_at"] = utc_now().isoformat()
            return Job.from_dict(copy.deepcopy(row))

    def delete_job(self, job_id: str) -> bool:
        return self._delete(JOBS_TABLE, job_id)

    def add_application(self, job_id: str, provider_id: str) -> bool:
        with self._lock:
            row = self._tables[JOBS_TABLE].get(job_id)
            if row is None:
                return False
            applications = row.setdefault("applications", [])
            if provider_id not in applications:
                applications.append(provider_id)
            return True

    def award_job(
        self, job_id: str, booking: Booking, expected_status: str
    ) -> Tuple[Optional[Booking], Optional[str]]:
        with self._batch():
            row = self._tables[JOBS_TABLE].get(job_id)
            if row is None:
                return None, NOT_FOUND
            if row["status"] != expected_status:
                logger.warning(
                    f"Award rejected for job {job_id}: "
                    f"expected status '{expected_status}', found '{row['status']}'"
                )
                return None, CONFLICT

            row["status"] = JobStatus.IN_PROGRESS.value
            row["updated_at"] = utc_now().isoformat()
            self._put(BOOKINGS_TABLE, booking.id, booking.to_dict())
            return booking, None

    # === Bookings & transactions ===

    def save_booking(self, booking: Booking) -> str:
        with self._lock:
            self._put(BOOKINGS_TABLE, booking.id, booking.to_dict())
        return booking.id

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            row = self._get(BOOKINGS_TABLE, booking_id)
        return Booking.from_dict(row) if row else None

    def list_bookings(
        self,
        job_id: Optional[str] = None,
        client_id: Optional[str] = None,
        provider_id: Optional[str] = None,
    ) -> List[Booking]:
        bookings = [Booking.from_dict(r) for r in self._rows(BOOKINGS_TABLE)]
        if job_id is not None:
            bookings = [b for b in bookings if b.job_id == job_id]
        if client_id is not None:
            bookings = [b for b in bookings if b.client_id == client_id]
        if provider_id is not None:
            bookings = [b for b in bookings if b.provider_id == provider_id]
        bookings.sort(key=lambda b: b.created_at or _EPOCH, reverse=True)
        return bookings

    def record_payment_decision(
        self,
        booking_id: str,
        expected_status: str,
        updates: Dict[str, Any],
        transaction: Transaction,
    ) -> Tuple[Optional[Booking], Optional[str]]:
        with self._batch():
            row = self._tables[BOOKINGS_TABLE].get(booking_id)
            if row is None:
                return None, NOT_FOUND
            if row["status"] != expected_status:
                return None, CONFLICT

            row.update(_to_row_values(updates))
            self._put(TRANSACTIONS_TABLE, transaction.id, transaction.to_dict())
            return Booking.from_dict(copy.deepcopy(row)), None

    def list_transactions(self, booking_id: Optional[str] = None) -> List[Transaction]:
        txs = [Transaction.from_dict(r) for r in self._rows(TRANSACTIONS_TABLE)]
        if booking_id is not None:
            txs = [t for t in txs if t.booking_id == booking_id]
        txs.sort(key=lambda t: t.created_at or _EPOCH)
        return txs

    # === Users & reviews ===

    def save_user(self, user: UserProfile) -> str:
        with self._lock:
            self._put(USERS_TABLE, user.uid, user.to_dict())
        return user.uid

    def get_user(self, uid: str) -> Optional[UserProfile]:
        with self._lock:
            row = self._get(USERS_TABLE, uid)
        return UserProfile.from_dict(row) if row else None

    def get_users(self, uids: List[str]) -> List[UserProfile]:
        with self._lock:
            rows = [self._get(USERS_TABLE, uid) for uid in uids]
        return [UserProfile.from_dict(r) for r in rows if r]

    def get_user_by_email(self, email: str) -> Optional[UserProfile]:
        email = email.lower()
        for row in self._rows(USERS_TABLE):
            if (row.get("email") or "").lower() == email:
                return UserProfile.from_dict(row)
        return None

    def list_agency_members(self, agency_id: str) -> List[UserProfile]:
        return [
            UserProfile.from_dict(r) for r in self._rows(USERS_TABLE) if r.get("agency_id") == agency_id
        ]

    def save_review(self, review: Review) -> str:
        with self._lock:
            self._put(REVIEWS_TABLE, review.id, review.to_dict())
        return review.id

    def list_reviews(self, provider_ids: List[str]) -> List[Review]:
        wanted = set(provider_ids)
        return [Review.from_dict(r) for r in self._rows(REVIEWS_TABLE) if r["provider_id"] in wanted]

    # === Invites ===

    def save_invite(self, invite: Invite) -> str:
        with self._lock:
            self._put(INVITES_TABLE, invite.id, invite.to_dict())
        return invite.id

    def get_invite(self, invite_id: str) -> Optional[Invite]:
        with self._lock:
            row = self._get(INVITES_TABLE, invite_id)
        return Invite.from_dict(row) if row else None

    def find_pending_invite(self, agency_id: str, email: str) -> Optional[Invite]:
        email = email.lower()
        for row in self._rows(INVITES_TABLE):
            if (
                row["agency_id"] == agency_id
                and row["email"] == email
                and row["status"] == InviteStatus.PENDING.value
            ):
                return Invite.from_dict(row)
        return None

    def list_invites(self, agency_id: str) -> List[Invite]:
        invites = [Invite.from_dict(r) for r in self._rows(INVITES_TABLE) if r["agency_id"] == agency_id]
        invites.sort(key=lambda i: i.created_at or _EPOCH, reverse=True)
        return invites

    def delete_invite(self, invite_id: str) -> bool:
        return self._delete(INVITES_TABLE, invite_id)

    def accept_invite(
        self, invite_id: str, provider_id: str
    ) -> Tuple[Optional[UserProfile], Optional[str]]:
        with self._batch():
            invite = self._tables[INVITES_TABLE].get(invite_id)
            user = self._tables[USERS_TABLE].get(provider_id)
            if invite is None or user is None:
                return None, NOT_FOUND

            user["agency_id"] = invite["agency_id"]
            del self._tables[INVITES_TABLE][invite_id]
            return UserProfile.from_dict(copy.deepcopy(user)), None

    def remove_agency_provider(self, agency_id: str, provider_id: str) -> Optional[str]:
        with self._batch():
            user = self._tables[USERS_TABLE].get(provider_id)
            if user is not None and user.get("agency_id") == agency_id:
                user["agency_id"] = None
                # Drop any invite still pending for the same person
                for invite_id, invite in list(self._tables[INVITES_TABLE].items()):
                    if invite["agency_id"] == agency_id and invite.get("provider_id") == provider_id:
                        del self._tables[INVITES_TABLE][invite_id]
                return None

            invite = self._tables[INVITES_TABLE].get(provider_id)
            if invite is not None and invite["agency_id"] == agency_id:
                del self._tables[INVITES_TABLE][provider_id]
                return None

            return NOT_FOUND

    # === Notifications ===

    def save_notification(self, notification: Notification) -> str:
        with self._lock:
            self._put(NOTIFICATIONS_TABLE, notification.id, notification.to_dict())
        return notification.id

    def list_notifications(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        items = [
            Notification.from_dict(r) for r in self._rows(NOTIFICATIONS_TABLE) if r["user_id"] == user_id
        ]
        if unread_only:
            items = [n for n in items if not n.read]
        items.sort(key=lambda n: n.created_at or _EPOCH, reverse=True)
        return items

    def mark_notification_read(self, user_id: str, notification_id: str) -> bool:
        with self._lock:
            row = self._tables[NOTIFICATIONS_TABLE].get(notification_id)
            if row is None or row["user_id"] != user_id:
                return False
            row["read"] = True
            return True

    def mark_all_notifications_read(self, user_id: str) -> int:
        with self._batch():
            count = 0
            for row in self._tables[NOTIFICATIONS_TABLE].values():
                if row["user_id"] == user_id and not row["read"]:
                    row["read"] = True
                    count += 1
            return count

    def delete_notification(self, user_id: str, notification_id: str) -> bool:
        with self._lock:
            row = self._tables[NOTIFICATIONS_TABLE].get(notification_id)
            if row is None or row["user_id"] != user_id:
                return False
            del self._tables[NOTIFICATIONS_TABLE][notification_id]
            return True

    # === Products & cart ===

    def save_product(self, product: Product) -> str:
        with self._lock:
            self._put(PRODUCTS_TABLE, product.id, product.to_dict())
        return product.id

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._lock:
            row = self._get(PRODUCTS_TABLE, product_id)
        return Product.from_dict(row) if row else None

    def list_cart_items(self, user_id: str) -> List[CartItem]:
        items = [CartItem.from_dict(r) for r in self._rows(CART_ITEMS_TABLE) if r["user_id"] == user_id]
        items.sort(key=lambda i: i.added_at or _EPOCH, reverse=True)
        return items

    def get_cart_item(self, user_id: str, product_id: str) -> Optional[CartItem]:
        for row in self._rows(CART_ITEMS_TABLE):
            if row["user_id"] == user_id and row["product_id"] == product_id:
                return CartItem.from_dict(row)
        return None

    def save_cart_item(self, item: CartItem) -> str:
        with self._lock:
            self._put(CART_ITEMS_TABLE, item.id, item.to_dict())
        return item.id

    def update_cart_item_quantity(self, user_id: str, item_id: str, quantity: int) -> bool:
        with self._lock:
            row = self._tables[CART_ITEMS_TABLE].get(item_id)
            if row is None or row["user_id"] != user_id:
                return False
            row["quantity"] = quantity
            row["updated_at"] = utc_now().isoformat()
            return True

    def delete_cart_item(self, user_id: str, item_id: str) -> bool:
        with self._lock:
            row = self._tables[CART_ITEMS_TABLE].get(item_id)
            if row is None or row["user_id"] != user_id:
                return False
            del self._tables[CART_ITEMS_TABLE][item_id]
            return True

    def clear_cart(self, user_id: str) -> int:
        with self._batch():
            ids = [k for k, r in self._tables[CART_ITEMS_TABLE].items() if r["user_id"] == user_id]
            for item_id in ids:
                del self._tables[CART_ITEMS_TABLE][item_id]
            return len(ids)

    # === Audit ===

    def save_audit_entry(self, entry: AuditLogEntry) -> str:
        with self._lock:
            self._put(AUDIT_LOG_TABLE, entry.id, entry.to_dict())
        return entry.id

    def list_audit_entries(self, module: Optional[str] = None) -> List[AuditLogEntry]:
        entries = [AuditLogEntry.from_dict(r) for r in self._rows(AUDIT_LOG_TABLE)]
        if module is not None:
            entries = [e for e in entries if e.module == module]
        entries.sort(key=lambda e: e.timestamp or _EPOCH, reverse=True)
        return entries
