"""Tests for agency invite and notification routes."""

from localpro.models import UserProfile


class TestAgencyRoutes:
    def test_invite_accept_remove(self, client, agency_headers, provider_headers, storage):
        storage.save_user(UserProfile(uid="provider-1", display_name="Juan", email="juan@example.com", role="provider"))

        invited = client.post("/agency/invites", json={"email": "juan@example.com"}, headers=agency_headers)
        assert invited.status_code == 201
        invite_id = invited.json()["data"]["id"]

        accepted = client.post(f"/agency/invites/{invite_id}/accept", headers=provider_headers)
        assert accepted.status_code == 200
        assert storage.get_user("provider-1").agency_id == "agency-1"

        members = client.get("/agency/providers", headers=agency_headers).json()["data"]["members"]
        assert [m["uid"] for m in members] == ["provider-1"]

        removed = client.delete("/agency/providers/provider-1", headers=agency_headers)
        assert removed.status_code == 200
        assert storage.get_user("provider-1").agency_id is None

    def test_invalid_email_400(self, client, agency_headers):
        response = client.post("/agency/invites", json={"email": "nope"}, headers=agency_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid email address"

    def test_duplicate_invite_409(self, client, agency_headers):
        client.post("/agency/invites", json={"email": "new@example.com"}, headers=agency_headers)
        response = client.post("/agency/invites", json={"email": "new@example.com"}, headers=agency_headers)
        assert response.status_code == 409

    def test_only_agencies_invite(self, client, client_headers):
        response = client.post("/agency/invites", json={"email": "new@example.com"}, headers=client_headers)
        assert response.status_code == 403


class TestNotificationRoutes:
    def _invite(self, client, agency_headers, storage):
        storage.save_user(UserProfile(uid="provider-1", display_name="Juan", email="juan@example.com", role="provider"))
        client.post("/agency/invites", json={"email": "juan@example.com"}, headers=agency_headers)

    def test_inbox_flow(self, client, agency_headers, provider_headers, storage):
        self._invite(client, agency_headers, storage)

        inbox = client.get("/notifications", headers=provider_headers).json()["data"]
        assert inbox[0]["type"] == "agency_invite"
        assert client.get("/notifications/unread-count", headers=provider_headers).json()["data"] == 1

        read = client.post(f"/notifications/{inbox[0]['id']}/read", headers=provider_headers)
        assert read.status_code == 200
        assert client.get("/notifications/unread-count", headers=provider_headers).json()["data"] == 0

        deleted = client.delete(f"/notifications/{inbox[0]['id']}", headers=provider_headers)
        assert deleted.status_code == 200
        assert client.get("/notifications", headers=provider_headers).json()["data"] == []

    def test_read_all(self, client, agency_headers, provider_headers, storage):
        self._invite(client, agency_headers, storage)

        response = client.post("/notifications/read-all", headers=provider_headers)

        assert response.json()["data"] == 1

    def test_missing_notification_404(self, client, provider_headers):
        assert client.post("/notifications/nope/read", headers=provider_headers).status_code == 404

    def test_feed(self, client, agency_headers, provider_headers, storage):
        self._invite(client, agency_headers, storage)

        data = client.get("/notifications/feed", headers=provider_headers).json()["data"]

        assert len(data["items"]) == 1
