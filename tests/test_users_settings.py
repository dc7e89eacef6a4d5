import pytest

from tasknest.models.user import User, UserSettings
from tasknest.services.users import resolve_user

from conftest import auth_headers, count_rows


@pytest.mark.asyncio
async def test_first_request_creates_user_once(client):
    headers = auth_headers("carol", email="carol@example.com", name="Carol")

    me = (await client.get("/users/me", headers=headers)).json()
    assert me["email"] == "carol@example.com"
    assert me["name"] == "Carol"

    again = (await client.get("/users/me", headers=headers)).json()
    assert again["user_id"] == me["user_id"]
    assert await count_rows(User, User.auth_subject == "carol") == 1


@pytest.mark.asyncio
async def test_me_is_null_without_identity(client):
    assert (await client.get("/users/me")).json() is None
    assert (await client.patch("/users/me", json={"name": "x"})).status_code == 401


@pytest.mark.asyncio
async def test_resolve_user_only_fills_missing_profile(db):
    user = await resolve_user(db, "dave")
    assert user.email is None
    assert user.created_at is not None

    same = await resolve_user(db, "dave", email="dave@example.com", name="Dave")
    assert same.user_id == user.user_id
    assert same.email == "dave@example.com"

    again = await resolve_user(db, "dave", email="other@example.com", name="Someone")
    assert again.email == "dave@example.com"
    assert again.name == "Dave"


@pytest.mark.asyncio
async def test_profile_update_and_sync(client):
    headers = auth_headers("erin", email="erin@example.com")

    updated = (await client.patch("/users/me", json={"name": "  Erin <b>E</b> "}, headers=headers)).json()
    assert updated["name"] == "Erin E"

    synced = (await client.post("/users/me/sync", json={"email": "new@example.com", "name": "Other"}, headers=headers)).json()
    assert synced["email"] == "erin@example.com"
    assert synced["name"] == "Erin E"

    response = await client.post("/users/me/sync", json={"email": "not-an-email"}, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_settings_default_until_saved(client, alice):
    assert (await client.get("/settings/")).json() is None

    defaults = (await client.get("/settings/", headers=alice)).json()
    assert defaults["theme"] == "light"
    assert defaults["notification_preferences"] == {"email": True, "push": True, "reminder_before_due": 24}
    assert await count_rows(UserSettings) == 0

    saved = (await client.put("/settings/", json={"theme": "dark"}, headers=alice)).json()
    assert saved["theme"] == "dark"
    assert saved["notification_preferences"]["email"] is True

    saved = (await client.put(
        "/settings/",
        json={"notification_preferences": {"email": False, "push": False, "reminder_before_due": 6}},
        headers=alice,
    )).json()
    assert saved["theme"] == "dark"
    assert saved["notification_preferences"] == {"email": False, "push": False, "reminder_before_due": 6}
    assert await count_rows(UserSettings) == 1

    reset = (await client.post("/settings/reset", headers=alice)).json()
    assert reset["theme"] == "light"
    assert reset["notification_preferences"]["reminder_before_due"] == 24
    assert await count_rows(UserSettings) == 1

    response = await client.put("/settings/", json={"theme": "neon"}, headers=alice)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200
