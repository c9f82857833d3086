"""Feedback API tests (/api/feedback/*)."""

from fastapi.testclient import TestClient


def _create(client, **overrides):
    payload = {"category": "bug", "message": "Search results ignore the brand filter"}
    payload.update(overrides)
    resp = client.post("/api/feedback", json=payload, headers={"User-Agent": "pytest-agent/1.0"})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def _admin_items(client, headers, query=""):
    resp = client.get(f"/api/feedback/admin/list{query}", headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["items"]


class TestCreate:
    def test_create(self, client, feedback_admin_headers):
        data = _create(client, email="reporter@example.com", pageUrl="https://example.com/p/9000")
        assert data["status"] == "new"

        items = _admin_items(client, feedback_admin_headers)
        assert items[0]["userAgent"] == "pytest-agent/1.0"
        assert items[0]["email"] == "reporter@example.com"
        assert items[0]["pageUrl"] == "https://example.com/p/9000"

    def test_relative_page_url_rejected(self, client):
        resp = client.post(
            "/api/feedback", json={"category": "bug", "message": "Broken link here", "pageUrl": "/p/1"}
        )
        assert resp.status_code == 400

    def test_unknown_category_rejected(self, client):
        resp = client.post("/api/feedback", json={"category": "praise", "message": "Great site overall"})
        assert resp.status_code == 400

    def test_decoy_looks_like_success(self, client, feedback_admin_headers):
        data = _create(client, hp="bot")
        assert data["status"] == "new"
        assert _admin_items(client, feedback_admin_headers) == []

    def test_rate_limited(self, settings):
        from app.main import create_app

        settings.feedback_create_limit = 1
        with TestClient(create_app(settings)) as client:
            _create(client)
            resp = client.post("/api/feedback", json={"category": "other", "message": "Second message"})
        assert resp.status_code == 429


class TestPublicListing:
    def test_safe_fields_only(self, client):
        _create(client, email="reporter@example.com")
        items = client.get("/api/feedback").json()["data"]["items"]
        assert set(items[0]) == {"category", "message", "pageUrl", "status", "createdAt"}
        assert "reporter@example.com" not in str(items)

    def test_modes(self, client, feedback_admin_headers):
        created = _create(client)
        client.patch(f"/api/feedback/{created['id']}", json={"status": "closed"}, headers=feedback_admin_headers)

        assert client.get("/api/feedback?mode=recent").json()["data"]["items"] == []
        assert len(client.get("/api/feedback?mode=all").json()["data"]["items"]) == 1

    def test_unknown_mode(self, client):
        resp = client.get("/api/feedback?mode=archive")
        assert resp.status_code == 400


class TestModeration:
    def test_comment_admin_key_does_not_triage_feedback(self, client, admin_headers):
        resp = client.get("/api/feedback/admin/list", headers=admin_headers)
        assert resp.status_code == 401

    def test_update(self, client, feedback_admin_headers):
        created = _create(client)
        resp = client.patch(
            f"/api/feedback/{created['id']}",
            json={"status": "triaged", "message": "Edited   by a moderator"},
            headers=feedback_admin_headers,
        )
        assert resp.status_code == 200
        feedback = resp.json()["data"]["feedback"]
        assert feedback["status"] == "triaged"
        assert feedback["message"] == "Edited by a moderator"

    def test_update_requires_change(self, client, feedback_admin_headers):
        created = _create(client)
        resp = client.patch(f"/api/feedback/{created['id']}", json={}, headers=feedback_admin_headers)
        assert resp.status_code == 400

    def test_update_unknown(self, client, feedback_admin_headers):
        resp = client.patch("/api/feedback/missing", json={"status": "closed"}, headers=feedback_admin_headers)
        assert resp.status_code == 404

    def test_filter_by_category(self, client, feedback_admin_headers):
        _create(client, category="bug")
        _create(client, category="content")
        items = _admin_items(client, feedback_admin_headers, "?category=content")
        assert [i["category"] for i in items] == ["content"]

    def test_delete(self, client, feedback_admin_headers):
        created = _create(client)
        resp = client.delete(f"/api/feedback/{created['id']}", headers=feedback_admin_headers)
        assert resp.json() == {"ok": True}
        resp = client.delete(f"/api/feedback/{created['id']}", headers=feedback_admin_headers)
        assert resp.status_code == 404
