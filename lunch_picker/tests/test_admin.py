from __future__ import annotations

import json
import os
from base64 import b64encode
from unittest.mock import patch

from fastapi.testclient import TestClient
from itsdangerous import TimestampSigner

from lunch_picker.app import app
from lunch_picker.comments.store import clear_comments, get_store
from lunch_picker.config import DEFAULT_CONFIG, AppConfig


def _login_admin(c, password="abc"):
    return c.post("/admin/login", json={"password": password})


def test_login_wrong_password():
    c = TestClient(app)
    with patch.object(get_store(), "admin_secret", "abc"):
        resp = _login_admin(c, "xyz")
    assert resp.status_code == 401
    assert c.get("/admin/me").json() == {"admin": False}


def test_login_impossible_without_secret():
    c = TestClient(app)
    with patch.object(get_store(), "admin_secret", None):
        assert _login_admin(c, "").status_code == 401


def test_login_and_logout():
    c = TestClient(app)
    with patch.object(get_store(), "admin_secret", "abc"):
        resp = _login_admin(c)
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "admin": True}
    assert c.get("/admin/me").json() == {"admin": True}

    assert c.post("/admin/logout").json() == {"status": "logged_out"}
    assert c.get("/admin/me").json() == {"admin": False}


def test_admin_session_still_needs_password_to_delete():
    clear_comments()
    c = TestClient(app)
    with patch.object(get_store(), "admin_secret", "abc"):
        _login_admin(c)
        comment = c.post("/comments", json={"place_id": "p1", "nickname": "n", "content": "hi"}).json()["comment"]
        denied = c.request("DELETE", "/comments", json={"place_id": "p1", "id": comment["id"]})
        assert denied.status_code == 403
        allowed = c.request(
            "DELETE", "/comments", json={"place_id": "p1", "id": comment["id"], "admin_password": "abc"},
        )
    assert allowed.status_code == 200
    assert get_store().list_comments("p1") == []


def test_forged_admin_cookie_cannot_delete():
    clear_comments()
    c = TestClient(app)
    data = b64encode(json.dumps({"admin": True}).encode("utf-8"))
    for secret in ("lunch-picker-secret-change-in-production", DEFAULT_CONFIG.session_secret):
        forged = TimestampSigner(secret).sign(data).decode("utf-8")
        with patch.object(get_store(), "admin_secret", "abc"):
            comment = c.post("/comments", json={"place_id": "p1", "nickname": "n", "content": "hi"}).json()["comment"]
            resp = c.request(
                "DELETE", "/comments",
                json={"place_id": "p1", "id": comment["id"]},
                headers={"Cookie": f"session={forged}"},
            )
        assert resp.status_code == 403
    assert len(get_store().list_comments("p1")) == 2


def test_session_secret_defaults_to_random_key():
    with patch.dict(os.environ, {"SESSION_SECRET": ""}):
        first, second = AppConfig(), AppConfig()
    assert first.session_secret != second.session_secret
    assert len(first.session_secret) == 64


def test_anonymous_delete_needs_password():
    clear_comments()
    c = TestClient(app)
    with patch.object(get_store(), "admin_secret", "abc"):
        comment = c.post("/comments", json={"place_id": "p1", "nickname": "n", "content": "hi"}).json()["comment"]
        resp = c.request("DELETE", "/comments", json={"place_id": "p1", "id": comment["id"]})
    assert resp.status_code == 403
    assert len(get_store().list_comments("p1")) == 1


def test_cache_stats_requires_admin():
    c = TestClient(app)
    assert c.get("/cache/stats").status_code == 403


def test_cache_stats_for_admin():
    c = TestClient(app)
    with patch.object(get_store(), "admin_secret", "abc"):
        _login_admin(c)
    resp = c.get("/cache/stats")
    assert resp.status_code == 200
    assert "hit_rate" in resp.json()
