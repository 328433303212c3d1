"""Storage and service wiring for the LocalPro backend."""

from typing import Annotated

from fastapi import Depends
from supabase import Client, create_client

from localpro.agencies import AgencyService
from localpro.audit import AuditLogger
from localpro.cart import CartService
from localpro.jobs import ApplicantService, AwardService, JobAdminService, JobService
from localpro.notifications import NotificationService
from localpro.payments import PaymentVerificationService
from localpro.storage import InMemoryStorage, MarketplaceStorage

from .config import Settings, get_settings
from .logging_config import get_logger
from .storage import SupabaseStorage

logger = get_logger("localpro.database")

_supabase_client: Client | None = None
_storage: MarketplaceStorage | None = None


def get_supabase_client(settings: Settings | None = None) -> Client:
    """Get cached Supabase client."""
    global _supabase_client
    if _supabase_client is None:
        if settings is None:
            settings = get_settings()
        if not settings.supabase_url or not settings.supabase_secret_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SECRET_KEY must be set for the supabase backend")
        _supabase_client = create_client(settings.supabase_url, settings.supabase_secret_key)
    return _supabase_client


def get_storage(settings: Annotated[Settings, Depends(get_settings)]) -> MarketplaceStorage:
    """FastAPI dependency for the configured storage backend."""
    global _storage
    if _storage is None:
        if settings.storage_backend == "memory":
            logger.warning("Using in-memory storage; data is lost on restart")
            _storage = InMemoryStorage()
        else:
            _storage = SupabaseStorage(get_supabase_client(settings))
    return _storage


# Type alias for dependency injection
Storage = Annotated[MarketplaceStorage, Depends(get_storage)]


# =============================================================================
# Services
# =============================================================================


def get_notification_service(storage: Storage) -> NotificationService:
    return NotificationService(storage)


def get_job_service(
    storage: Storage, settings: Annotated[Settings, Depends(get_settings)]
) -> JobService:
    return JobService(storage, settings.marketplace_config())


def get_award_service(storage: Storage) -> AwardService:
    return AwardService(storage, NotificationService(storage))


def get_applicant_service(
    storage: Storage, settings: Annotated[Settings, Depends(get_settings)]
) -> ApplicantService:
    return ApplicantService(storage, settings.marketplace_config())


def get_job_admin_service(storage: Storage) -> JobAdminService:
    return JobAdminService(storage, AuditLogger(storage))


def get_payment_service(storage: Storage) -> PaymentVerificationService:
    return PaymentVerificationService(storage, NotificationService(storage), AuditLogger(storage))


def get_agency_service(storage: Storage) -> AgencyService:
    return AgencyService(storage, NotificationService(storage))


def get_cart_service(
    storage: Storage, settings: Annotated[Settings, Depends(get_settings)]
) -> CartService:
    return CartService(storage, settings.marketplace_config())


Jobs = Annotated[JobService, Depends(get_job_service)]
Awards = Annotated[AwardService, Depends(get_award_service)]
Applicants = Annotated[ApplicantService, Depends(get_applicant_service)]
JobAdmin = Annotated[JobAdminService, Depends(get_job_admin_service)]
Payments = Annotated[PaymentVerificationService, Depends(get_payment_service)]
Agencies = Annotated[AgencyService, Depends(get_agency_service)]
Notifications = Annotated[NotificationService, Depends(get_notification_service)]
Carts = Annotated[CartService, Depends(get_cart_service)]
