from functools import partial

import pytest

import content
import main
import media
from autosave import AutoSaveRegistry

ARTICLE = {
    "title": "Reset your password",
    "content": "<p>Open the account page and choose reset password.</p>",
    "category": "Account",
    "publish": True,
}


@pytest.fixture()
def published_article(client, admin_headers):
    response = client.post("/admin/articles", json=ARTICLE, headers=admin_headers)
    assert response.status_code == 200
    return response.json()


def test_health(client):
    assert client.get("/").json() == {"message": "BrainHints API running"}
    body = client.get("/test").json()
    assert body["database"] == "✅ Available"
    assert body["connection_status"] == "Connected"


def test_admin_routes_require_identity(client, user_headers):
    assert client.get("/admin/stats").status_code == 401
    assert client.get("/admin/stats", headers=user_headers).status_code == 403


def test_admin_stats(client, admin_headers, published_article):
    stats = client.get("/admin/stats", headers=admin_headers).json()
    assert stats["published"]["articles"] == 1


def test_article_validation_error_maps_to_400(client, admin_headers):
    response = client.post("/admin/articles", json={**ARTICLE, "title": "ab"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json() == {"detail": "Title must be at least 3 characters long"}


def test_published_article_is_listed_and_searchable(client, published_article):
    assert [a["id"] for a in client.get("/articles").json()] == [published_article["id"]]
    assert client.get("/articles", params={"category": "Billing"}).json() == []

    results = client.get("/search", params={"q": "password"}).json()
    assert results[0]["url"] == f"/article/{published_article['id']}"

    grouped = client.get("/search/all", params={"q": "password"}).json()
    assert grouped["total"] == 1

    view = client.get(f"/content/article/{published_article['id']}").json()
    assert view["title"] == "Reset your password"
    assert view["category"] == "Account"


def test_draft_is_hidden_from_public_routes(client, admin_headers):
    draft = client.post("/admin/articles", json={**ARTICLE, "publish": False}, headers=admin_headers).json()
    assert client.get("/articles").json() == []
    assert client.get(f"/content/article/{draft['id']}").status_code == 404
    assert client.get("/admin/articles", params={"status": "draft"}, headers=admin_headers).json()[0]["id"] == draft["id"]


def test_bad_ids_and_types(client):
    assert client.get("/content/article/not-an-id").status_code == 400
    assert client.get("/content/podcast/64b000000000000000000001").status_code == 422


def test_update_and_delete_article(client, admin_headers, published_article):
    url = f"/admin/articles/{published_article['id']}"
    updated = client.put(url, json={**ARTICLE, "title": "Reset password quickly"}, headers=admin_headers).json()
    assert updated["title"] == "Reset password quickly"

    assert client.delete(url, headers=admin_headers).json() == {"deleted": True}
    assert client.delete(url, headers=admin_headers).status_code == 404
    assert client.put(url, json=ARTICLE, headers=admin_headers).status_code == 404


def test_article_views_count_once_per_user(client, user_headers, published_article):
    url = f"/content/article/{published_article['id']}/view"
    assert client.post(url).status_code == 401
    assert client.post(url, headers=user_headers).json() == {"counted": True}
    assert client.post(url, headers=user_headers).json() == {"counted": False}


def test_video_and_faq_admin_crud(client, admin_headers):
    video = client.post(
        "/admin/videos",
        json={"title": "Tour", "url": "https://example.com/v", "status": "published"},
        headers=admin_headers,
    ).json()
    assert video["published_at"] is not None
    assert client.post(f"/content/video/{video['id']}/view").json() == {"counted": True}

    renamed = client.put(f"/admin/videos/{video['id']}", json={"title": "Full tour"}, headers=admin_headers).json()
    assert renamed["title"] == "Full tour"
    assert renamed["views"] == 1

    faq = client.post("/admin/faqs", json={"question": "How?", "answer": "Like this."}, headers=admin_headers).json()
    assert faq["status"] == "draft"
    assert client.get("/faqs").json() == []
    client.put(f"/admin/faqs/{faq['id']}", json={"status": "published"}, headers=admin_headers)
    assert [f["id"] for f in client.get("/faqs").json()] == [faq["id"]]
    assert client.delete(f"/admin/faqs/{faq['id']}", headers=admin_headers).json() == {"deleted": True}


def test_comment_flow_with_admin_reply(client, admin_headers, user_headers, published_article):
    payload = {"content_type": "article", "content_id": published_article["id"], "message": "Thanks!"}
    assert client.post("/comments", json=payload).status_code == 401

    root = client.post("/comments", json=payload, headers=user_headers).json()
    client.post("/comments", json={**payload, "message": "Glad it helped", "parent_id": root["id"]}, headers=admin_headers)

    tree = client.get("/comments", params={"content_type": "article", "content_id": published_article["id"]}).json()
    assert len(tree) == 1
    assert tree[0]["replies"][0]["message"] == "Glad it helped"

    inbox = client.get("/notifications", headers=user_headers).json()
    assert [n["type"] for n in inbox] == ["admin_reply"]
    assert client.get("/notifications/unread-count", headers=user_headers).json() == {"count": 1}
    client.post(f"/notifications/{inbox[0]['id']}/read", headers=user_headers)
    assert client.get("/notifications/unread-count", headers=user_headers).json() == {"count": 0}


def test_comment_edit_like_delete(client, user_headers, published_article):
    payload = {"content_type": "article", "content_id": published_article["id"], "message": "First"}
    comment = client.post("/comments", json=payload, headers=user_headers).json()
    other = {"Authorization": "Bearer user-2"}

    assert client.patch(f"/comments/{comment['id']}", json={"message": "nope"}, headers=other).status_code == 403
    edited = client.patch(f"/comments/{comment['id']}", json={"message": "First!"}, headers=user_headers).json()
    assert edited["is_edited"] is True

    assert client.post(f"/comments/{comment['id']}/like", headers=other).json()["likes"] == 1
    assert client.delete(f"/comments/{comment['id']}", headers=user_headers).json()["is_deleted"] is True


def test_comment_message_length_is_validated(client, user_headers):
    payload = {"content_type": "article", "content_id": "x", "message": "a" * 2001}
    assert client.post("/comments", json=payload, headers=user_headers).status_code == 422


def test_content_feedback_routes(client, user_headers, published_article):
    payload = {"content_type": "article", "content_id": published_article["id"], "helpful": True, "rating": 4}
    client.post("/feedback/content", json=payload, headers=user_headers)
    client.post("/feedback/content", json={**payload, "rating": 2}, headers=user_headers)

    summary = client.get(
        "/feedback/content/summary",
        params={"content_type": "article", "content_id": published_article["id"]},
    ).json()
    assert summary["helpful_count"] == 1
    assert summary["average_rating"] == 2

    assert client.post("/feedback/content", json={**payload, "rating": 6}, headers=user_headers).status_code == 422


def test_general_feedback_inbox(client, admin_headers):
    sent = client.post("/feedback", json={
        "name": "Ana", "email": "ana@example.com", "subject": "Hi", "message": "Love it",
    }).json()
    assert sent["status"] == "new"

    inbox = client.get("/admin/feedback", params={"status": "new"}, headers=admin_headers).json()
    assert [f["id"] for f in inbox] == [sent["id"]]
    updated = client.patch(f"/admin/feedback/{sent['id']}", json={"status": "responded"}, headers=admin_headers)
    assert updated.json()["status"] == "responded"
    assert client.get("/admin/stats", headers=admin_headers).json()["unread_feedback"] == 0


def test_ticket_flow(client, admin_headers, user_headers):
    ticket = client.post("/tickets", json={
        "user_name": "Ana",
        "user_email": "ana@example.com",
        "subject": "Billing question",
        "description": "Charged twice",
        "category": "billing",
    }, headers=user_headers).json()

    assert [t["id"] for t in client.get("/tickets", headers=user_headers).json()] == [ticket["id"]]
    assert client.get(f"/tickets/{ticket['id']}", headers={"Authorization": "Bearer user-2"}).status_code == 403

    client.post(
        f"/tickets/{ticket['id']}/responses",
        json={"author_name": "Support", "message": "Refund issued"},
        headers=admin_headers,
    )
    resolved = client.patch(f"/admin/tickets/{ticket['id']}", json={"status": "resolved"}, headers=admin_headers).json()
    assert resolved["resolved_at"] is not None
    assert resolved["responses"][0]["author_type"] == "admin"

    inbox = client.get("/notifications", headers=user_headers).json()
    assert inbox[0]["type"] == "system"


def test_admin_system_notification(client, admin_headers, user_headers):
    sent = client.post(
        "/admin/notifications",
        json={"user_id": "user-1", "title": "Maintenance", "message": "Down at noon"},
        headers=admin_headers,
    ).json()
    assert sent["admin_id"] == "admin-1"
    assert client.post("/notifications/read-all", headers=user_headers).json() == {"updated": 1}


def test_autosave_routes(client, admin_headers, monkeypatch, timers):
    registry = AutoSaveRegistry(lambda article_id: partial(content.autosave_article_draft, article_id), timer_factory=timers)
    monkeypatch.setattr(main, "autosaves", registry)

    article = client.post("/admin/articles", json={**ARTICLE, "publish": False}, headers=admin_headers).json()
    url = f"/admin/articles/{article['id']}/autosave"

    state = client.post(url, json={"title": "Reset your password (edited)", "content": "<p>new body</p>"}, headers=admin_headers).json()
    assert state["pending"] is True

    timers.created[-1].fire()
    stored = client.get(f"/admin/articles/{article['id']}", headers=admin_headers).json()
    assert stored["title"] == "Reset your password (edited)"
    assert stored["excerpt"] == "new body"

    toggled = client.put(url, json={"enabled": False}, headers=admin_headers).json()
    assert toggled == {"pending": False, "enabled": False, "last_saved": {
        "title": "Reset your password (edited)", "content": "<p>new body</p>",
    }}
    assert client.delete(url, headers=admin_headers).json() == {"closed": True}


def test_publish_scheduled_and_reset_views(client, admin_headers):
    assert client.post("/admin/articles/publish-scheduled", headers=admin_headers).json() == {"published": 0}
    assert client.post("/admin/articles/reset-views", headers=admin_headers).json() == {"reset": 0}


def test_media_upload(client, admin_headers, monkeypatch):
    monkeypatch.setattr(
        media,
        "upload_to_cloudinary",
        lambda data, filename, folder=None: {"secure_url": "https://cdn/x.png", "resource_type": "image"},
    )
    ok = client.post("/admin/media", files={"file": ("x.png", b"png", "image/png")}, headers=admin_headers)
    assert ok.status_code == 200
    assert ok.json()["file_type"] == "image"

    bad = client.post("/admin/media", files={"file": ("x.zip", b"zip", "application/zip")}, headers=admin_headers)
    assert bad.status_code == 400
    assert bad.json()["detail"] == "File type application/zip is not supported"


def test_upload_errors_map_to_502(client, admin_headers, monkeypatch):
    import config
    monkeypatch.setattr(config, "CLOUDINARY_CLOUD_NAME", None)
    response = client.post("/admin/media", files={"file": ("x.png", b"png", "image/png")}, headers=admin_headers)
    assert response.status_code == 502


def test_user_profile(client, user_headers):
    assert client.get("/users/me", headers=user_headers).status_code == 404
    profile = client.put("/users/me", json={"display_name": "Ana", "email": "ana@example.com"}, headers=user_headers).json()
    assert profile["id"] == "user-1"
    assert profile["admin"] is False


def test_identity_headers_are_not_trusted(client):
    assert client.get("/admin/stats", headers={"X-User-Id": "admin-1"}).status_code == 401
    assert client.get("/notifications", headers={"X-User-Id": "user-1"}).status_code == 401


def test_invalid_and_expired_tokens_are_rejected(client):
    bad = client.get("/notifications", headers={"Authorization": "Bearer bad"})
    assert bad.status_code == 401
    assert bad.json() == {"detail": "Token is invalid"}

    expired = client.get("/notifications", headers={"Authorization": "Bearer expired"})
    assert expired.status_code == 401
    assert expired.json() == {"detail": "Token has expired"}

    assert client.get("/notifications", headers={"Authorization": "Basic dXNlcjpwdw=="}).status_code == 401
    assert client.get("/notifications", headers={"Authorization": "Bearer "}).status_code == 401


def test_admin_rights_come_from_the_token_claim(client, mongo_db, user_headers):
    # A database flag alone does not make the caller an admin
    mongo_db["users"].insert_one({"_id": "user-1", "admin": True})
    assert client.get("/admin/stats", headers=user_headers).status_code == 403
    assert client.get("/admin/stats", headers={"Authorization": "Bearer admin:user-9"}).status_code == 200


def test_comment_author_cannot_moderate_others_without_claim(client, user_headers, admin_headers, published_article):
    payload = {"content_type": "article", "content_id": published_article["id"], "message": "Mine"}
    comment = client.post("/comments", json=payload, headers={"Authorization": "Bearer user-2"}).json()

    assert client.delete(f"/comments/{comment['id']}", headers=user_headers).status_code == 403
    assert client.delete(f"/comments/{comment['id']}", headers=admin_headers).json()["is_deleted"] is True


def test_liking_deleted_comment_returns_404(client, user_headers, published_article):
    payload = {"content_type": "article", "content_id": published_article["id"], "message": "Gone soon"}
    comment = client.post("/comments", json=payload, headers=user_headers).json()
    client.delete(f"/comments/{comment['id']}", headers=user_headers)

    response = client.post(f"/comments/{comment['id']}/like", headers={"Authorization": "Bearer user-2"})
    assert response.status_code == 404
    assert client.get("/notifications", headers=user_headers).json() == []


def test_list_limits_are_bounded(client):
    assert client.get("/search", params={"q": "password", "limit": -1}).status_code == 422
    assert client.get("/search", params={"q": "password", "limit": 0}).status_code == 422
    assert client.get("/trending", params={"limit": -1}).status_code == 422
    assert client.get("/trending", params={"limit": 1000}).status_code == 422
    assert client.get("/trending", params={"limit": 5}).status_code == 200


def test_oversize_upload_is_rejected_before_upload(client, admin_headers, monkeypatch):
    import config
    uploads = []
    monkeypatch.setattr(config, "UPLOAD_MAX_SIZE_MB", 0.001)
    monkeypatch.setattr(media, "upload_to_cloudinary", lambda *a, **kw: uploads.append(a) or {})

    response = client.post("/admin/media", files={"file": ("big.png", b"x" * 2000, "image/png")}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "File size must be less than 0.001MB"
    assert uploads == []


def test_activity_routes(client, user_headers, published_article):
    view = {"content_type": "article", "content_id": published_article["id"], "action": "view"}
    assert client.post("/activity", json=view).status_code == 401

    tracked = client.post("/activity", json={
        "content_type": "article", "content_id": published_article["id"], "action": "view", "duration": 30,
    }, headers=user_headers)
    assert tracked.status_code == 200
    assert tracked.json()["user_id"] == "user-1"

    recent = client.get("/activity/recent", headers=user_headers).json()
    assert [a["action"] for a in recent] == ["view"]
    assert client.get("/activity/recent", params={"limit": 0}, headers=user_headers).status_code == 422

    profile = client.get("/users/me/activity-profile", headers=user_headers).json()
    assert profile["interests"] == ["Account"]
    assert profile["stats"]["total_time_spent"] == 30

    prefs = client.put("/users/me/preferences", json={"learning_style": "visual"}, headers=user_headers).json()
    assert prefs["preferences"]["learning_style"] == "visual"
    assert client.put("/users/me/preferences", json={"learning_style": "audio"}, headers=user_headers).status_code == 422


def test_recommendations_route(client, admin_headers, user_headers, published_article):
    other = client.post("/admin/articles", json={**ARTICLE, "title": "Change your email"}, headers=admin_headers).json()
    client.post("/activity", json={
        "content_type": "article", "content_id": published_article["id"], "action": "view",
    }, headers=user_headers)

    results = client.get("/recommendations", params={"current_category": "Account"}, headers=user_headers).json()
    assert [r["id"] for r in results] == [other["id"]]
    assert results[0]["url"] == f"/article/{other['id']}"


def test_session_routes(client, user_headers):
    client.post("/activity/sessions/start", json={"session_id": "s-1"}, headers=user_headers)
    ended = client.post("/activity/sessions/end", json={"session_id": "s-1", "duration": 120}, headers=user_headers)
    assert ended.json()["action"] == "session_end"
    assert client.get("/users/me/activity-profile", headers=user_headers).json()["stats"]["total_time_spent"] == 120
