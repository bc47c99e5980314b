"""End-to-end tests for the HTTP API.

Requests go through the full middleware stack in-process; the database is
the shared SQLite test session and outgoing email is a mock.
"""

from uuid import uuid4

import pytest

from discuss_board.services.authz import RoleClass
from tests.factories import (
    MEMBER_PASSWORD,
    create_administrator,
    create_comment,
    create_member,
    create_moderator,
    create_post,
    login_headers,
)

JOIN_BODY = {
    "email": "grace@example.com",
    "password": "grace-password-1",
    "nickname": "grace",
    "consents": [
        {"consent_type": "privacy_policy", "policy_version": "2024-01"},
        {"consent_type": "terms_of_service", "policy_version": "2024-01"},
    ],
}


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, api_client):
        response = await api_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_client_request_id_is_echoed(self, api_client):
        response = await api_client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"


class TestMemberFlow:
    """Join, verify, log in and post through the API."""

    @pytest.mark.asyncio
    async def test_join_verify_login_and_post(self, api_client, email_service):
        joined = await api_client.post("/auth/member/join", json=JOIN_BODY)
        assert joined.status_code == 201
        assert joined.json()["email_verified"] is False
        assert joined.json()["member"]["nickname"] == "grace"

        token = email_service.send_verification.call_args.kwargs["token"]
        verified = await api_client.get("/auth/verify-email", params={"token": token})
        assert verified.status_code == 200
        assert verified.json() == {"message": "Email verified"}

        login = await api_client.post(
            "/auth/member/login",
            json={"email": "grace@example.com", "password": "grace-password-1"},
        )
        assert login.status_code == 200
        body = login.json()
        assert body["role"] == "member"
        headers = {"Authorization": f"Bearer {body['token']['access']}"}

        created = await api_client.post(
            "/discussBoard/member/posts",
            json={"title": "First", "body": "Hello everyone"},
            headers=headers,
        )
        assert created.status_code == 201
        post_id = created.json()["id"]

        fetched = await api_client.get(f"/discussBoard/posts/{post_id}")
        assert fetched.status_code == 200
        assert fetched.json()["body"] == "Hello everyone"

        search = await api_client.patch("/discussBoard/posts", json={"keyword": "First"})
        assert search.status_code == 200
        assert search.json()["pagination"]["records"] == 1
        assert search.json()["data"][0]["id"] == post_id

        comment = await api_client.post(
            f"/discussBoard/member/posts/{post_id}/comments",
            json={"content": "Welcome"},
            headers=headers,
        )
        assert comment.status_code == 201
        assert comment.json()["nesting_level"] == 0

        comments = await api_client.get(f"/discussBoard/posts/{post_id}/comments")
        assert [c["content"] for c in comments.json()["data"]] == ["Welcome"]

    @pytest.mark.asyncio
    async def test_comment_attachments_are_listed(self, api_client, db_session, settings):
        ada = await create_member(db_session)
        post = await create_post(db_session, ada)
        comment = await create_comment(db_session, ada, post)
        headers = await login_headers(db_session, settings, ada)

        added = await api_client.post(
            f"/discussBoard/member/comments/{comment.id}/attachments",
            json={
                "file_name": "diagram.png",
                "file_uri": "https://files.example.com/diagram.png",
                "content_type": "image/png",
                "size_bytes": 2048,
            },
            headers=headers,
        )
        assert added.status_code == 201

        listed = await api_client.get(f"/discussBoard/comments/{comment.id}/attachments")
        assert listed.status_code == 200
        assert [a["id"] for a in listed.json()] == [added.json()["id"]]
        assert listed.json()[0]["comment_id"] == str(comment.id)

        on_post = await api_client.get(f"/discussBoard/posts/{post.id}/attachments")
        assert on_post.json() == []

    @pytest.mark.asyncio
    async def test_comment_attachments_of_missing_comment(self, api_client):
        response = await api_client.get(f"/discussBoard/comments/{uuid4()}/attachments")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_duplicate_join_conflicts(self, api_client):
        assert (await api_client.post("/auth/member/join", json=JOIN_BODY)).status_code == 201
        response = await api_client.post("/auth/member/join", json=JOIN_BODY)
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_missing_consent(self, api_client):
        response = await api_client.post("/auth/member/join", json={**JOIN_BODY, "consents": []})
        assert response.status_code == 400
        assert response.json()["error"] == "consent_required"

    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, api_client, db_session, settings):
        ada = await create_member(db_session)
        headers = await login_headers(db_session, settings, ada)

        logout = await api_client.post("/auth/logout", headers=headers)
        assert logout.status_code == 200

        response = await api_client.post(
            "/discussBoard/member/posts", json={"title": "t", "body": "b"}, headers=headers
        )
        assert response.status_code == 401


class TestErrors:
    """Tests for the JSON error envelope."""

    @pytest.mark.asyncio
    async def test_missing_token(self, api_client):
        response = await api_client.post(
            "/discussBoard/member/posts", json={"title": "t", "body": "b"}
        )
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_wrong_password(self, api_client, db_session):
        ada = await create_member(db_session)
        await db_session.commit()
        response = await api_client.post(
            "/auth/member/login", json={"email": ada.email, "password": "nope-nope-nope"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_member_on_moderator_route(self, api_client, db_session, settings):
        ada = await create_member(db_session)
        headers = await login_headers(db_session, settings, ada)

        response = await api_client.patch("/discussBoard/moderator/reports", json={}, headers=headers)
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"
        assert response.json()["detail"] == {"permission": "view_reports"}

    @pytest.mark.asyncio
    async def test_not_found_envelope(self, api_client):
        missing = uuid4()
        response = await api_client.get(f"/discussBoard/posts/{missing}")
        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert str(missing) in body["message"]
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_request_validation(self, api_client, db_session, settings):
        ada = await create_member(db_session)
        headers = await login_headers(db_session, settings, ada)

        response = await api_client.post(
            "/discussBoard/member/posts", json={"title": "No body"}, headers=headers
        )
        assert response.status_code == 422


class TestAdministration:
    """Administrator and moderator routes."""

    @pytest.mark.asyncio
    async def test_taxonomy_and_forbidden_words(self, api_client, db_session, settings):
        admin = await create_administrator(db_session)
        ada = await create_member(db_session)
        admin_headers = await login_headers(db_session, settings, admin, RoleClass.ADMINISTRATOR)
        member_headers = await login_headers(db_session, settings, ada)

        category = await api_client.post(
            "/discussBoard/administrator/categories",
            json={"name": "General"},
            headers=admin_headers,
        )
        assert category.status_code == 201
        public = await api_client.get("/discussBoard/categories")
        assert [c["name"] for c in public.json()] == ["General"]

        word = await api_client.post(
            "/discussBoard/administrator/forbidden-words",
            json={"expression": "spam"},
            headers=admin_headers,
        )
        assert word.status_code == 201

        blocked = await api_client.post(
            "/discussBoard/member/posts",
            json={"title": "Buy now", "body": "cheap SPAM", "category_id": category.json()["id"]},
            headers=member_headers,
        )
        assert blocked.status_code == 400
        assert blocked.json()["error"] == "forbidden_word"

    @pytest.mark.asyncio
    async def test_assign_moderator_then_work_the_queue(self, api_client, db_session, settings):
        admin = await create_administrator(db_session)
        ada = await create_member(db_session)
        bob = await create_member(db_session, "bob")
        post = await create_post(db_session, ada)
        admin_headers = await login_headers(db_session, settings, admin, RoleClass.ADMINISTRATOR)
        bob_headers = await login_headers(db_session, settings, bob)

        assigned = await api_client.post(
            f"/discussBoard/administrator/moderators/{ada.member.id}", headers=admin_headers
        )
        assert assigned.status_code == 200
        assert assigned.json()["status"] == "active"

        report = await api_client.post(
            "/discussBoard/member/reports",
            json={"content_type": "post", "post_id": str(post.id), "reason": "Off topic"},
            headers=bob_headers,
        )
        assert report.status_code == 201

        login = await api_client.post(
            "/auth/moderator/login",
            json={"email": ada.email, "password": MEMBER_PASSWORD},
        )
        assert login.status_code == 200
        mod_headers = {"Authorization": f"Bearer {login.json()['token']['access']}"}

        queue = await api_client.patch(
            "/discussBoard/moderator/reports", json={"status": "pending"}, headers=mod_headers
        )
        assert queue.status_code == 200
        assert [r["id"] for r in queue.json()["data"]] == [report.json()["id"]]

        audit = await api_client.patch(
            "/discussBoard/administrator/audit-logs",
            json={"action_type": "moderator_assign"},
            headers=admin_headers,
        )
        assert audit.status_code == 200
        assert audit.json()["data"][0]["actor_id"] == str(admin.account.id)

    @pytest.mark.asyncio
    async def test_moderator_cannot_manage_taxonomy(self, api_client, db_session, settings):
        moderator = await create_moderator(db_session)
        headers = await login_headers(db_session, settings, moderator, RoleClass.MODERATOR)

        response = await api_client.post(
            "/discussBoard/administrator/categories", json={"name": "News"}, headers=headers
        )
        assert response.status_code == 403
