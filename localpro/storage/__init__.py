"""Storage backends for LocalPro."""

from localpro.storage.base import (
    CONFLICT,
    NOT_FOUND,
    AuditStorage,
    BookingStorage,
    CartStorage,
    InviteStorage,
    JobStorage,
    MarketplaceStorage,
    NotificationStorage,
    StorageError,
    UserStorage,
)
from localpro.storage.memory import InMemoryStorage

__all__ = [
    "CONFLICT",
    "NOT_FOUND",
    "AuditStorage",
    "BookingStorage",
    "CartStorage",
    "InMemoryStorage",
    "InviteStorage",
    "JobStorage",
    "MarketplaceStorage",
    "NotificationStorage",
    "StorageError",
    "UserStorage",
]
