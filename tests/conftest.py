"""Shared fixtures for LocalPro library tests."""

import uuid
from datetime import timedelta

import pytest

from localpro.config import MarketplaceConfig
from localpro.models import (
    Actor,
    Booking,
    BookingStatus,
    Budget,
    Job,
    JobStatus,
    Product,
    ProductPricing,
    Review,
    UserProfile,
    UserRole,
    utc_now,
)
from localpro.storage import InMemoryStorage


@pytest.fixture
def storage():
    """Fresh in-memory storage per test."""
    return InMemoryStorage()


@pytest.fixture
def config():
    return MarketplaceConfig()


@pytest.fixture
def client_actor():
    return Actor(id="client-1", name="Maria Santos", role=UserRole.CLIENT.value)


@pytest.fixture
def admin_actor():
    return Actor(id="admin-1", name="Site Admin", role=UserRole.ADMIN.value)


class Seeder:
    """Writes fixture rows straight into storage."""

    def __init__(self, storage):
        self.storage = storage

    def job(
        self,
        job_id=None,
        client_id="client-1",
        title="Fix leaking kitchen sink",
        description="Water is dripping under the sink",
        category_name="Plumbing",
        status=JobStatus.OPEN.value,
        applications=None,
        amount=1500.0,
        location="Makati",
        age_minutes=0,
    ):
        created = utc_now() - timedelta(minutes=age_minutes)
        job = Job(
            id=job_id or str(uuid.uuid4()),
            client_id=client_id,
            client_name="Maria Santos",
            title=title,
            description=description,
            category_name=category_name,
            budget=Budget(amount=amount),
            location=location,
            status=status,
            applications=list(applications or []),
            created_at=created,
            updated_at=created,
        )
        self.storage.save_job(job)
        return job

    def user(self, uid, display_name=None, role=UserRole.PROVIDER.value, email=None, bio="", agency_id=None):
        user = UserProfile(
            uid=uid,
            display_name=display_name or uid.title(),
            email=email,
            role=role,
            bio=bio,
            agency_id=agency_id,
        )
        self.storage.save_user(user)
        return user

    def reviews(self, provider_id, ratings):
        for rating in ratings:
            self.storage.save_review(
                Review(
                    id=str(uuid.uuid4()),
                    provider_id=provider_id,
                    client_id="client-1",
                    rating=rating,
                    created_at=utc_now(),
                )
            )

    def booking(self, booking_id="booking-1", status=BookingStatus.PENDING_VERIFICATION.value, price=2500.0):
        booking = Booking(
            id=booking_id,
            client_id="client-1",
            client_name="Maria Santos",
            provider_id="provider-1",
            provider_name="Juan Dela Cruz",
            service_name="Aircon Cleaning",
            price=price,
            date=utc_now() + timedelta(days=2),
            status=status,
            created_at=utc_now(),
        )
        self.storage.save_booking(booking)
        return booking

    def product(self, product_id="prod-1", name="PVC Pipe", market=120.0, partner=100.0, bulk=80.0, stock=50):
        product = Product(
            id=product_id,
            name=name,
            pricing=ProductPricing(market_price=market, partner_price=partner, bulk_price=bulk),
            stock=stock,
        )
        self.storage.save_product(product)
        return product


@pytest.fixture
def seed(storage):
    return Seeder(storage)
