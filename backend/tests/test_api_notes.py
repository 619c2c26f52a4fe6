"""
Notes and public API tests.

What we test:
    ✅ Create → pin → list returns the pinned note first
    ✅ Public notes readable without a token; private notes never
    ✅ Another user's note answers 404 on every owner-scoped route
    ✅ Envelopes, camelCase keys and security headers
    ✅ Global listing only when enabled
"""

import logging

import pytest
from httpx import ASGITransport, AsyncClient

from sqlite_db import ObjectId


async def add_note(client, headers, title="T", content="C", **extra):
    response = await client.post(
        "/add-note", json={"title": title, "content": content, **extra}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["note"]


class TestScenarios:
    @pytest.mark.asyncio
    async def test_pinned_note_listed_first(self, client, signup):
        _, headers = await signup("a@x.com", password="p1")
        older = await add_note(client, headers, title="older")
        note = await add_note(client, headers, title="T", content="C")

        pinned = await client.put(
            f"/update-note-pinned/{older['id']}", json={"isPinned": True}, headers=headers
        )
        listed = await client.get("/get-all-notes", headers=headers)

        assert pinned.status_code == 200
        assert pinned.json()["note"]["isPinned"] is True
        assert [n["id"] for n in listed.json()["notes"]] == [older["id"], note["id"]]

    @pytest.mark.asyncio
    async def test_public_note_visible_but_not_editable_by_others(self, client, signup):
        u1, u1_headers = await signup("a@x.com")
        _, u2_headers = await signup("b@x.com")
        note = await add_note(client, u1_headers)

        published = await client.put(
            f"/notes/{note['id']}/visibility", json={"isPublic": True}, headers=u1_headers
        )
        public = await client.get(f"/public-notes/{u1}")
        foreign = await client.get(f"/get-note/{note['id']}", headers=u2_headers)

        assert published.status_code == 200
        assert [n["id"] for n in public.json()["notes"]] == [note["id"]]
        assert foreign.status_code == 404


class TestOwnerScopedRoutes:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/get-all-notes"),
            ("POST", "/add-note"),
            ("GET", "/search-notes?query=x"),
            ("DELETE", f"/delete-note/{ObjectId()}"),
        ],
    )
    async def test_requires_token(self, client, method, path):
        response = await client.request(method, path)

        assert response.status_code == 401
        assert response.json()["error"] is True

    @pytest.mark.asyncio
    async def test_create_defaults_and_camel_case(self, client, signup):
        user_id, headers = await signup("a@x.com")

        note = await add_note(client, headers, tags=["work"])

        assert note["userId"] == user_id
        assert note["tags"] == ["work"]
        assert note["isPinned"] is False
        assert note["isPublic"] is False
        assert {"createdAt", "updatedAt"} <= set(note)
        assert "_id" not in note

    @pytest.mark.asyncio
    async def test_create_without_content(self, client, signup):
        _, headers = await signup("a@x.com")

        response = await client.post("/add-note", json={"title": "T"}, headers=headers)

        assert response.status_code == 400
        assert response.json() == {"error": True, "message": "Content is required"}

    @pytest.mark.asyncio
    async def test_edit_partial(self, client, signup):
        _, headers = await signup("a@x.com")
        note = await add_note(client, headers, isPinned=True)

        response = await client.put(
            f"/edit-note/{note['id']}", json={"isPinned": False, "tags": []}, headers=headers
        )

        assert response.status_code == 200
        updated = response.json()["note"]
        assert updated["isPinned"] is False
        assert updated["tags"] == []
        assert updated["title"] == "T"

    @pytest.mark.asyncio
    async def test_edit_without_changes(self, client, signup):
        _, headers = await signup("a@x.com")
        note = await add_note(client, headers)

        response = await client.put(f"/edit-note/{note['id']}", json={}, headers=headers)

        assert response.status_code == 400
        assert response.json()["message"] == "No changes provided"

    @pytest.mark.asyncio
    async def test_visibility_requires_value(self, client, signup):
        _, headers = await signup("a@x.com")
        note = await add_note(client, headers)

        response = await client.put(
            f"/notes/{note['id']}/visibility", json={}, headers=headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_foreign_delete_leaves_note(self, client, signup):
        _, u1_headers = await signup("a@x.com")
        _, u2_headers = await signup("b@x.com")
        note = await add_note(client, u1_headers)

        response = await client.delete(f"/delete-note/{note['id']}", headers=u2_headers)
        still_there = await client.get(f"/get-note/{note['id']}", headers=u1_headers)

        assert response.status_code == 404
        assert still_there.status_code == 200

    @pytest.mark.asyncio
    async def test_delete_own(self, client, signup):
        _, headers = await signup("a@x.com")
        note = await add_note(client, headers)

        response = await client.delete(f"/delete-note/{note['id']}", headers=headers)
        gone = await client.get(f"/get-note/{note['id']}", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"error": False, "message": "Note deleted successfully"}
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_search(self, client, signup):
        _, headers = await signup("a@x.com")
        _, other_headers = await signup("b@x.com")
        tagged = await add_note(client, headers, tags=["Hello-world"])
        await add_note(client, headers, title="unrelated", content="nothing")
        await add_note(client, other_headers, title="hello")

        response = await client.get("/search-notes", params={"query": "hello"}, headers=headers)

        assert response.status_code == 200
        assert [n["id"] for n in response.json()["notes"]] == [tagged["id"]]

    @pytest.mark.asyncio
    async def test_search_without_query(self, client, signup):
        _, headers = await signup("a@x.com")

        response = await client.get("/search-notes", headers=headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Search query is required"

    @pytest.mark.asyncio
    async def test_token_of_deleted_user_rejected(self, client, signup, database):
        user_id, headers = await signup("a@x.com")
        await database.users.delete_one({"_id": user_id})

        response = await client.get("/get-all-notes", headers=headers)

        assert response.status_code == 401


class TestPublicRoutes:
    @pytest.mark.asyncio
    async def test_private_note_not_listed(self, client, signup):
        user_id, headers = await signup("a@x.com")
        note = await add_note(client, headers)

        listed = await client.get(f"/public-notes/{user_id}")
        single = await client.get(f"/public-notes/{user_id}/{note['id']}")

        assert listed.json()["notes"] == []
        assert single.status_code == 404

    @pytest.mark.asyncio
    async def test_public_single_note(self, client, signup, caplog):
        caplog.set_level(logging.DEBUG, logger="routers.public")
        user_id, headers = await signup("a@x.com")
        note = await add_note(client, headers)
        await client.put(
            f"/notes/{note['id']}/visibility", json={"isPublic": True}, headers=headers
        )

        response = await client.get(f"/public-notes/{user_id}/{note['id']}")

        assert response.status_code == 200
        assert response.json()["note"]["id"] == note["id"]
        assert f"Served public note {note['id']} of user {user_id}" in caplog.text

    @pytest.mark.asyncio
    async def test_invalid_user_id(self, client):
        response = await client.get("/public-notes/not-an-id")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid user ID"

    @pytest.mark.asyncio
    async def test_public_profile(self, client, signup):
        user_id, _ = await signup("a@x.com", full_name="Ada")

        response = await client.get(f"/public-profile/{user_id}")

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["fullName"] == "Ada"
        assert "passwordHash" not in user

    @pytest.mark.asyncio
    async def test_public_profile_unknown(self, client):
        missing = await client.get(f"/public-profile/{ObjectId()}")
        invalid = await client.get("/public-profile/xyz")

        assert missing.status_code == 404
        assert invalid.status_code == 400


class TestGlobalListing:
    @pytest.mark.asyncio
    async def test_disabled_by_default(self, client):
        response = await client.get("/notes")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_enabled(self, make_app, signup, client, caplog):
        caplog.set_level(logging.INFO, logger="routers.notes")
        _, headers = await signup("a@x.com")
        await add_note(client, headers)
        app = make_app(global_listing_enabled=True)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as other:
            response = await other.get("/notes")

        assert response.status_code == 200
        assert len(response.json()["notes"]) == 1
        assert "Unscoped note listing served (1 notes)" in caplog.text


class TestApplication:
    @pytest.mark.asyncio
    async def test_security_headers(self, client):
        response = await client.get("/health")

        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_readiness(self, client):
        response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"] == {"database": "ok"}

    @pytest.mark.asyncio
    async def test_unknown_route_envelope(self, client):
        response = await client.get("/no-such-route")

        assert response.status_code == 404
        assert response.json()["error"] is True
