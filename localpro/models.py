"""
Data models for the LocalPro marketplace.

Every persisted entity is a dataclass with ``to_dict``/``from_dict`` helpers
that map to the storage column names. Statuses are stored as their string
values so rows round-trip through Supabase unchanged.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from dateutil.parser import parse as parse_datetime_str


def utc_now() -> datetime:
    """Current UTC timestamp."""
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO string (or pass through a datetime)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return parse_datetime_str(value)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _enum_values(enum_cls) -> List[str]:
    return [e.value for e in enum_cls]


# =============================================================================
# Enums
# =============================================================================


class JobStatus(str, Enum):
    """Job lifecycle status."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CLOSED = "Closed"


class BudgetType(str, Enum):
    """How a job budget is quoted."""

    FIXED = "Fixed"
    DAILY = "Daily"
    MONTHLY = "Monthly"


class BookingStatus(str, Enum):
    """Booking lifecycle status."""

    PENDING_PAYMENT = "Pending Payment"
    PENDING_VERIFICATION = "Pending Verification"
    UPCOMING = "Upcoming"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    PAYMENT_REJECTED = "Payment Rejected"


class UserRole(str, Enum):
    CLIENT = "client"
    PROVIDER = "provider"
    AGENCY = "agency"
    PARTNER = "partner"
    ADMIN = "admin"


class InviteStatus(str, Enum):
    PENDING = "pending"


class NotificationType(str, Enum):
    """Kinds of in-app notifications."""

    BOOKING_UPDATE = "booking_update"
    NEW_MESSAGE = "new_message"
    AGENCY_INVITE = "agency_invite"
    INFO = "info"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_REJECTED = "payment_rejected"
    JOB_AWARDED = "job_awarded"
    NEW_REVIEW = "new_review"
    SYSTEM = "system"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TransactionType(str, Enum):
    BOOKING_PAYMENT = "booking_payment"
    SUBSCRIPTION_PAYMENT = "subscription_payment"
    REFUND = "refund"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


# =============================================================================
# Jobs
# =============================================================================


@dataclass
class Budget:
    """A job budget in PHP."""

    amount: float
    type: str = BudgetType.FIXED.value
    negotiable: bool = False

    def __post_init__(self):
        if self.amount is None or self.amount < 0:
            raise ValueError("Budget amount cannot be negative")
        if self.type not in _enum_values(BudgetType):
            raise ValueError(f"Invalid budget type: {self.type}")

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "type": self.type, "negotiable": self.negotiable}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Budget":
        return cls(
            amount=float(data.get("amount", 0)),
            type=data.get("type", BudgetType.FIXED.value),
            negotiable=bool(data.get("negotiable", False)),
        )


@dataclass
class Job:
    """A client-posted request for service."""

    id: str
    client_id: str
    title: str
    description: str
    category_name: str
    budget: Budget
    location: str = ""
    client_name: str = ""
    client_is_verified: bool = False
    client_avatar: Optional[str] = None
    deadline: Optional[datetime] = None
    status: str = JobStatus.OPEN.value
    applications: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValueError("Title cannot be empty")
        if len(self.title) > 200:
            raise ValueError("Title too long (max 200 characters)")
        if self.status not in _enum_values(JobStatus):
            raise ValueError(f"Invalid status: {self.status}")
        if isinstance(self.budget, dict):
            self.budget = Budget.from_dict(self.budget)

    @property
    def is_open(self) -> bool:
        return self.status == JobStatus.OPEN.value

    @property
    def application_count(self) -> int:
        return len(self.applications)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "title": self.title,
            "description": self.description,
            "category_name": self.category_name,
            "budget": self.budget.to_dict(),
            "location": self.location,
            "client_name": self.client_name,
            "client_is_verified": self.client_is_verified,
            "client_avatar": self.client_avatar,
            "deadline": _iso(self.deadline),
            "status": self.status,
            "applications": list(self.applications),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        return cls(
            id=data["id"],
            client_id=data["client_id"],
            title=data["title"],
            description=data.get("description", ""),
            category_name=data.get("category_name", ""),
            budget=Budget.from_dict(data.get("budget") or {}),
            location=data.get("location") or "",
            client_name=data.get("client_name") or "",
            client_is_verified=bool(data.get("client_is_verified", False)),
            client_avatar=data.get("client_avatar"),
            deadline=parse_datetime(data.get("deadline")),
            status=data.get("status", JobStatus.OPEN.value),
            applications=list(data.get("applications") or []),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )


@dataclass
class Booking:
    """A service engagement between one client and one provider."""

    id: str
    client_id: str
    provider_id: str
    service_name: str
    price: float
    date: datetime
    job_id: Optional[str] = None
    service_id: str = ""
    provider_name: str = ""
    provider_avatar: Optional[str] = None
    client_name: str = ""
    client_avatar: Optional[str] = None
    status: str = BookingStatus.UPCOMING.value
    notes: str = ""
    payment_verified_at: Optional[datetime] = None
    payment_verified_by: Optional[str] = None
    payment_rejected_at: Optional[datetime] = None
    payment_rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.price is None or self.price < 0:
            raise ValueError("Price cannot be negative")
        if self.status not in _enum_values(BookingStatus):
            raise ValueError(f"Invalid status: {self.status}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "job_id": self.job_id,
            "client_id": self.client_id,
            "client_name": self.client_name,
            "client_avatar": self.client_avatar,
            "provider_id": self.provider_id,
            "provider_name": self.provider_name,
            "provider_avatar": self.provider_avatar,
            "service_name": self.service_name,
            "service_id": self.service_id,
            "price": self.price,
            "date": _iso(self.date),
            "status": self.status,
            "notes": self.notes,
            "payment_verified_at": _iso(self.payment_verified_at),
            "payment_verified_by": self.payment_verified_by,
            "payment_rejected_at": _iso(self.payment_rejected_at),
            "payment_rejection_reason": self.payment_rejection_reason,
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        return cls(
            id=data["id"],
            job_id=data.get("job_id"),
            client_id=data["client_id"],
            client_name=data.get("client_name") or "",
            client_avatar=data.get("client_avatar"),
            provider_id=data["provider_id"],
            provider_name=data.get("provider_name") or "",
            provider_avatar=data.get("provider_avatar"),
            service_name=data.get("service_name") or "",
            service_id=data.get("service_id") or "",
            price=float(data.get("price", 0)),
            date=parse_datetime(data.get("date")),
            status=data.get("status", BookingStatus.UPCOMING.value),
            notes=data.get("notes") or "",
            payment_verified_at=parse_datetime(data.get("payment_verified_at")),
            payment_verified_by=data.get("payment_verified_by"),
            payment_rejected_at=parse_datetime(data.get("payment_rejected_at")),
            payment_rejection_reason=data.get("payment_rejection_reason"),
            created_at=parse_datetime(data.get("created_at")),
        )


@dataclass
class Review:
    """A client's rating of a provider."""

    id: str
    provider_id: str
    client_id: str
    rating: float
    comment: str = ""
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not 1 <= self.rating <= 5:
            raise ValueError("Rating must be between 1 and 5")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "client_id": self.client_id,
            "rating": self.rating,
            "comment": self.comment,
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Review":
        return cls(
            id=data["id"],
            provider_id=data["provider_id"],
            client_id=data["client_id"],
            rating=float(data["rating"]),
            comment=data.get("comment") or "",
            created_at=parse_datetime(data.get("created_at")),
        )


# =============================================================================
# Users
# =============================================================================


@dataclass
class UserProfile:
    """The public part of a user document."""

    uid: str
    display_name: str
    email: Optional[str] = None
    role: str = UserRole.CLIENT.value
    photo_url: Optional[str] = None
    bio: str = ""
    agency_id: Optional[str] = None

    def __post_init__(self):
        if self.role not in _enum_values(UserRole):
            raise ValueError(f"Invalid role: {self.role}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "display_name": self.display_name,
            "email": self.email,
            "role": self.role,
            "photo_url": self.photo_url,
            "bio": self.bio,
            "agency_id": self.agency_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            uid=data["uid"],
            display_name=data.get("display_name") or "",
            email=data.get("email"),
            role=data.get("role", UserRole.CLIENT.value),
            photo_url=data.get("photo_url"),
            bio=data.get("bio") or "",
            agency_id=data.get("agency_id"),
        )


# =============================================================================
# Agencies
# =============================================================================


@dataclass
class Invite:
    """A pending agency-to-provider invite."""

    id: str
    agency_id: str
    agency_name: str
    email: str
    provider_id: Optional[str] = None
    status: str = InviteStatus.PENDING.value
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.email:
            raise ValueError("Invite email cannot be empty")
        self.email = self.email.strip().lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "agency_id": self.agency_id,
            "agency_name": self.agency_name,
            "email": self.email,
            "provider_id": self.provider_id,
            "status": self.status,
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Invite":
        return cls(
            id=data["id"],
            agency_id=data["agency_id"],
            agency_name=data.get("agency_name") or "",
            email=data["email"],
            provider_id=data.get("provider_id"),
            status=data.get("status", InviteStatus.PENDING.value),
            created_at=parse_datetime(data.get("created_at")),
        )


# =============================================================================
# Notifications, transactions, audit
# =============================================================================


@dataclass
class Notification:
    """An in-app notification for one user."""

    id: str
    user_id: str
    type: str
    message: str
    link: Optional[str] = None
    read: bool = False
    priority: str = NotificationPriority.MEDIUM.value
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.message:
            raise ValueError("Notification message cannot be empty")
        if self.type not in _enum_values(NotificationType):
            raise ValueError(f"Invalid notification type: {self.type}")
        if self.priority not in _enum_values(NotificationPriority):
            raise ValueError(f"Invalid priority: {self.priority}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "message": self.message,
            "link": self.link,
            "read": self.read,
            "priority": self.priority,
            "metadata": dict(self.metadata),
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            type=data["type"],
            message=data["message"],
            link=data.get("link"),
            read=bool(data.get("read", False)),
            priority=data.get("priority", NotificationPriority.MEDIUM.value),
            metadata=dict(data.get("metadata") or {}),
            created_at=parse_datetime(data.get("created_at")),
        )


@dataclass
class Transaction:
    """Append-only record of a payment-affecting event."""

    id: str
    booking_id: str
    client_id: str
    provider_id: str
    amount: float
    type: str = TransactionType.BOOKING_PAYMENT.value
    status: str = TransactionStatus.PENDING.value
    verified_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.type not in _enum_values(TransactionType):
            raise ValueError(f"Invalid transaction type: {self.type}")
        if self.status not in _enum_values(TransactionStatus):
            raise ValueError(f"Invalid status: {self.status}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "client_id": self.client_id,
            "provider_id": self.provider_id,
            "amount": self.amount,
            "type": self.type,
            "status": self.status,
            "verified_at": _iso(self.verified_at),
            "rejected_at": _iso(self.rejected_at),
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        return cls(
            id=data["id"],
            booking_id=data["booking_id"],
            client_id=data["client_id"],
            provider_id=data["provider_id"],
            amount=float(data["amount"]),
            type=data.get("type", TransactionType.BOOKING_PAYMENT.value),
            status=data.get("status", TransactionStatus.PENDING.value),
            verified_at=parse_datetime(data.get("verified_at")),
            rejected_at=parse_datetime(data.get("rejected_at")),
            created_at=parse_datetime(data.get("created_at")),
        )


@dataclass
class AuditLogEntry:
    """Who did what to which record."""

    id: str
    actor_id: str
    module: str
    action: str
    details: Dict[str, Any] = field(default_factory=dict)
    actor_name: str = ""
    timestamp: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "module": self.module,
            "action": self.action,
            "details": dict(self.details),
            "timestamp": _iso(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditLogEntry":
        return cls(
            id=data["id"],
            actor_id=data["actor_id"],
            actor_name=data.get("actor_name") or "",
            module=data["module"],
            action=data["action"],
            details=dict(data.get("details") or {}),
            timestamp=parse_datetime(data.get("timestamp")),
        )


# =============================================================================
# Marketplace
# =============================================================================


@dataclass
class ProductPricing:
    market_price: float
    partner_price: float
    bulk_price: Optional[float] = None
    currency: str = "PHP"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "market_price": self.market_price,
            "partner_price": self.partner_price,
            "bulk_price": self.bulk_price,
            "currency": self.currency,
        }


@dataclass
class Product:
    """A supply item sold to partners and providers."""

    id: str
    name: str
    pricing: ProductPricing
    stock: int = 0
    category: str = ""

    def __post_init__(self):
        if isinstance(self.pricing, dict):
            self.pricing = ProductPricing(**self.pricing)
        if self.stock < 0:
            raise ValueError("Stock cannot be negative")

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def unit_price(self, quantity: int, bulk_threshold: int = 10) -> float:
        """Bulk price applies at or above the threshold when one is set."""
        if quantity >= bulk_threshold and self.pricing.bulk_price:
            return self.pricing.bulk_price
        return self.pricing.partner_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "pricing": self.pricing.to_dict(),
            "stock": self.stock,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=data["id"],
            name=data["name"],
            pricing=ProductPricing(**data["pricing"]),
            stock=int(data.get("stock", 0)),
            category=data.get("category") or "",
        )


@dataclass
class CartItem:
    id: str
    user_id: str
    product_id: str
    quantity: int
    added_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "added_at": _iso(self.added_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            product_id=data["product_id"],
            quantity=int(data["quantity"]),
            added_at=parse_datetime(data.get("added_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )


# =============================================================================
# Request context
# =============================================================================


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an action."""

    id: str
    name: str = ""
    avatar: Optional[str] = None
    role: str = UserRole.CLIENT.value
