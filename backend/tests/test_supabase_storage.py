"""Tests for the Supabase storage adapter against a mocked client."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from app.storage import SupabaseStorage

from localpro.models import Booking
from localpro.storage import StorageError


def _client(data=None, rpc_data=None):
    db = MagicMock()
    query = db.table.return_value
    # Every builder call returns the same query so chains of any length work
    for name in ("select", "eq", "order", "update", "delete", "insert", "upsert", "contains", "in_", "limit"):
        getattr(query, name).return_value = query
    query.execute.return_value = MagicMock(data=data if data is not None else [])
    db.rpc.return_value.execute.return_value = MagicMock(data=rpc_data)
    return db


def _booking():
    return Booking(
        id="booking-1",
        client_id="client-1",
        provider_id="provider-1",
        service_name="Aircon Cleaning",
        price=2500.0,
        date=datetime(2026, 1, 10, tzinfo=timezone.utc),
    )


class TestQueries:
    def test_get_job_missing(self):
        db = _client()

        assert SupabaseStorage(db).get_job("nope") is None
        db.table.assert_called_with("jobs")

    def test_delete_job_reports_rows(self):
        assert SupabaseStorage(_client(data=[{"id": "job-1"}])).delete_job("job-1") is True
        assert SupabaseStorage(_client()).delete_job("job-1") is False

    def test_get_user_by_email_lowercases(self):
        db = _client()

        SupabaseStorage(db).get_user_by_email("Juan@Example.COM")

        db.table.return_value.eq.assert_called_with("email", "juan@example.com")


class TestBatches:
    def test_award_conflict(self):
        db = _client(rpc_data={"error": "conflict"})

        booking, error = SupabaseStorage(db).award_job("job-1", _booking(), "Open")

        assert booking is None
        assert error == "conflict"
        assert db.rpc.call_args[0][0] == "award_job"

    def test_award_success(self):
        row = _booking().to_dict()
        db = _client(rpc_data={"error": None, "booking": row})

        booking, error = SupabaseStorage(db).award_job("job-1", _booking(), "Open")

        assert error is None
        assert booking.id == "booking-1"

    def test_mark_all_read_count(self):
        db = _client(rpc_data=3)

        assert SupabaseStorage(db).mark_all_notifications_read("user-1") == 3
        db.rpc.assert_called_with("mark_all_notifications_read", {"p_user_id": "user-1"})

    def test_remove_provider_not_found(self):
        db = _client(rpc_data={"error": "not_found"})

        assert SupabaseStorage(db).remove_agency_provider("agency-1", "provider-9") == "not_found"

    def test_rpc_without_result_raises(self):
        with pytest.raises(StorageError, match="award_job returned no result"):
            SupabaseStorage(_client()).award_job("job-1", _booking(), "Open")
