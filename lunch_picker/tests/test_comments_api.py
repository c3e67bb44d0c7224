from __future__ import annotations

from dataclasses import replace
from unittest.mock import patch

from fastapi.testclient import TestClient

from lunch_picker.app import app, get_cooldown
from lunch_picker.comments.store import clear_comments, get_store
from lunch_picker.config import DEFAULT_CONFIG

client = TestClient(app)


def _post(c, place_id="p1", nickname="졸린 수달#123", content="맛있어요"):
    return c.post("/comments", json={"place_id": place_id, "nickname": nickname, "content": content})


def _delete(c, **body):
    return c.request("DELETE", "/comments", json=body)


# ── Listing and posting ──────────────────────────────────────────────────


def test_list_requires_place_id():
    resp = client.get("/comments")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "place_id가 필요합니다."


def test_list_unknown_place_is_empty():
    clear_comments()
    resp = client.get("/comments", params={"place_id": "nowhere"})
    assert resp.status_code == 200
    assert resp.json() == {"comments": []}


def test_post_then_list_newest_first():
    clear_comments()
    first = _post(client, content="first").json()["comment"]
    second = _post(client, content="second").json()["comment"]
    resp = client.get("/comments", params={"place_id": "p1"})
    ids = [c["id"] for c in resp.json()["comments"]]
    assert ids == [second["id"], first["id"]]
    assert set(first) == {"id", "place_id", "nickname", "content", "created_at"}


def test_post_missing_field():
    clear_comments()
    resp = client.post("/comments", json={"place_id": "p1", "content": "hi"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "필수 값이 누락되었습니다."


def test_post_too_long():
    clear_comments()
    assert _post(client, content="a" * 200).status_code == 200
    resp = _post(client, content="a" * 201)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "댓글은 200자 이내로 입력해 주세요."


def test_post_link():
    clear_comments()
    resp = _post(client, content="check http://x.co")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "링크가 포함된 댓글은 작성할 수 없습니다."
    assert client.get("/comments", params={"place_id": "p1"}).json() == {"comments": []}


def test_nickname_endpoint():
    resp = client.get("/comments/nickname")
    assert resp.status_code == 200
    words, suffix = resp.json()["nickname"].rsplit("#", 1)
    assert len(words.split(" ")) == 2
    assert 100 <= int(suffix) <= 999


# ── Deleting ─────────────────────────────────────────────────────────────


def test_delete_requires_ids():
    resp = _delete(client, place_id="p1")
    assert resp.status_code == 400


def test_delete_without_secret_configured():
    clear_comments()
    comment = _post(client).json()["comment"]
    with patch.object(get_store(), "admin_secret", None):
        resp = _delete(client, place_id="p1", id=comment["id"], admin_password="whatever")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert client.get("/comments", params={"place_id": "p1"}).json()["comments"] == []


def test_delete_with_secret():
    clear_comments()
    comment = _post(client).json()["comment"]
    with patch.object(get_store(), "admin_secret", "abc"):
        bad = _delete(client, place_id="p1", id=comment["id"], admin_password="xyz")
        assert bad.status_code == 403
        assert bad.json()["detail"] == "관리자 인증에 실패했습니다."
        good = _delete(client, place_id="p1", id=comment["id"], admin_password="abc")
        assert good.status_code == 200
    assert client.get("/comments", params={"place_id": "p1"}).json()["comments"] == []


def test_delete_unknown_id_succeeds():
    clear_comments()
    with patch.object(get_store(), "admin_secret", None):
        resp = _delete(client, place_id="p1", id="no-such-comment")
    assert resp.status_code == 200


# ── Server-side cooldown ─────────────────────────────────────────────────


def test_cooldown_not_enforced_by_default():
    clear_comments()
    assert _post(client).status_code == 200
    assert _post(client).status_code == 200


def test_cooldown_enforced_when_enabled():
    clear_comments()
    get_cooldown().clear()
    enforced = replace(DEFAULT_CONFIG, comment_cooldown_enforced=True)
    with patch("lunch_picker.app.DEFAULT_CONFIG", enforced):
        assert _post(client).status_code == 200
        blocked = _post(client)
        assert blocked.status_code == 429
        assert _post(client, place_id="p2").status_code == 200
        # rejected comments do not start a cooldown
        assert _post(client, place_id="p3", content="").status_code == 400
        assert _post(client, place_id="p3").status_code == 200
    get_cooldown().clear()
    assert len(get_store().list_comments("p1")) == 1
