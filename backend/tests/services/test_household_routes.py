"""Household Routes — HTTP contract over the test database.

Tests cover:
    - 401 without X-User-Id
    - POST /households → 201 with household_id + invite_code; caller is admin
    - Body validation → 400 VALIDATION_ERROR envelope
    - POST /households/join → 200; error codes and statuses for bad codes
    - GET /households/invites/{code} preview, GET /households/current
    - POST /households/{id}/invites admin-only, unlimited uses via null
    - Members listing, leave (204) and delete (204) with permission errors
    - PATCH member role: admin promotes, member 403, last admin 409, bad role 400
    - Household name limit follows household_name_max_length
    - Health liveness and readiness
"""

from homebase.config import get_settings
from homebase.main import app
from tests.services.fakes import as_user


async def _create(client, user="user-a", name="The Smiths") -> dict:
    res = await client.post(
        "/api/v1/households", json={"name": name}, headers=as_user(user),
    )
    assert res.status_code == 201
    return res.json()


# ─── Identity ────────────────────────────────────────────────────

async def test_missing_identity_returns_401(client):
    res = await client.post("/api/v1/households", json={"name": "Home"})
    assert res.status_code == 401


# ─── Create ──────────────────────────────────────────────────────

async def test_create_household(client):
    body = await _create(client)

    assert body["household_id"]
    assert len(body["invite_code"]) == 8

    res = await client.get("/api/v1/households/current", headers=as_user("user-a"))
    assert res.status_code == 200
    current = res.json()
    assert current["household_id"] == body["household_id"]
    assert current["name"] == "The Smiths"
    assert current["theme"] == "default"
    assert current["role"] == "admin"


async def test_create_household_rejects_blank_name(client):
    res = await client.post(
        "/api/v1/households", json={"name": "   "}, headers=as_user("user-a"),
    )
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "body.name"


async def test_create_household_rejects_long_name(client):
    res = await client.post(
        "/api/v1/households", json={"name": "x" * 51}, headers=as_user("user-a"),
    )
    assert res.status_code == 400


async def test_create_household_name_limit_from_settings(client):
    settings = get_settings().model_copy(update={"household_name_max_length": 60})
    app.dependency_overrides[get_settings] = lambda: settings

    accepted = await client.post(
        "/api/v1/households", json={"name": "x" * 55}, headers=as_user("user-a"),
    )
    rejected = await client.post(
        "/api/v1/households", json={"name": "x" * 61}, headers=as_user("user-a"),
    )

    assert accepted.status_code == 201
    assert rejected.status_code == 400
    assert rejected.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_create_household_rejects_unknown_theme(client):
    res = await client.post(
        "/api/v1/households", json={"name": "Home", "theme": "neon"},
        headers=as_user("user-a"),
    )
    assert res.status_code == 400


# ─── Join ────────────────────────────────────────────────────────

async def test_join_household(client):
    created = await _create(client)

    res = await client.post(
        "/api/v1/households/join",
        json={"code": f"  {created['invite_code'].lower()} "},
        headers=as_user("user-b"),
    )

    assert res.status_code == 200
    assert res.json() == {
        "household_id": created["household_id"],
        "household_name": "The Smiths",
    }


async def test_join_twice_returns_already_member(client):
    created = await _create(client)
    payload = {"code": created["invite_code"]}
    await client.post("/api/v1/households/join", json=payload, headers=as_user("user-b"))

    res = await client.post("/api/v1/households/join", json=payload, headers=as_user("user-b"))

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "ALREADY_MEMBER"


async def test_join_empty_code(client):
    res = await client.post(
        "/api/v1/households/join", json={"code": "  "}, headers=as_user("user-b"),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "EMPTY_CODE"


async def test_join_unknown_code(client):
    res = await client.post(
        "/api/v1/households/join", json={"code": "ZZZZ2345"}, headers=as_user("user-b"),
    )
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "INVALID_CODE"


async def test_join_expired_code(client, api_clock):
    created = await _create(client)
    api_clock.advance(days=7, seconds=1)

    res = await client.post(
        "/api/v1/households/join", json={"code": created["invite_code"]},
        headers=as_user("user-b"),
    )

    assert res.status_code == 410
    assert res.json()["error"]["code"] == "EXPIRED_CODE"


async def test_single_use_invite_exhausts(client):
    created = await _create(client)
    res = await client.post(
        f"/api/v1/households/{created['household_id']}/invites",
        json={"uses_remaining": 1}, headers=as_user("user-a"),
    )
    code = res.json()["code"]

    first = await client.post(
        "/api/v1/households/join", json={"code": code}, headers=as_user("user-b"),
    )
    second = await client.post(
        "/api/v1/households/join", json={"code": code}, headers=as_user("user-c"),
    )

    assert first.status_code == 200
    assert second.status_code == 410
    assert second.json()["error"]["code"] == "EXHAUSTED_CODE"


# ─── Preview / current ───────────────────────────────────────────

async def test_preview_invite(client):
    created = await _create(client)
    code = created["invite_code"]

    res = await client.get(
        f"/api/v1/households/invites/{code[:4]}-{code[4:]}", headers=as_user("user-b"),
    )

    assert res.status_code == 200
    body = res.json()
    assert body["code"] == code
    assert body["household_name"] == "The Smiths"
    assert body["uses_remaining"] == 10


async def test_current_household_404_without_membership(client):
    res = await client.get("/api/v1/households/current", headers=as_user("user-z"))
    assert res.status_code == 404


# ─── Invites ─────────────────────────────────────────────────────

async def test_admin_creates_unlimited_invite(client):
    created = await _create(client)

    res = await client.post(
        f"/api/v1/households/{created['household_id']}/invites",
        json={"uses_remaining": None, "expires_in_days": 30},
        headers=as_user("user-a"),
    )

    assert res.status_code == 201
    body = res.json()
    assert body["uses_remaining"] is None
    assert body["household_id"] == created["household_id"]
    assert body["code"] != created["invite_code"]


async def test_default_invite_uses(client):
    created = await _create(client)

    res = await client.post(
        f"/api/v1/households/{created['household_id']}/invites",
        json={}, headers=as_user("user-a"),
    )

    assert res.status_code == 201
    assert res.json()["uses_remaining"] == 10


async def test_member_cannot_create_invite(client):
    created = await _create(client)
    await client.post(
        "/api/v1/households/join", json={"code": created["invite_code"]},
        headers=as_user("user-b"),
    )

    res = await client.post(
        f"/api/v1/households/{created['household_id']}/invites",
        json={}, headers=as_user("user-b"),
    )

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "NOT_HOUSEHOLD_ADMIN"


async def test_invite_for_unknown_household(client):
    res = await client.post(
        "/api/v1/households/not-a-uuid/invites", json={}, headers=as_user("user-a"),
    )
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "HOUSEHOLD_NOT_FOUND"


# ─── Members / leave / delete ────────────────────────────────────

async def test_list_members(client):
    created = await _create(client)
    await client.post(
        "/api/v1/households/join", json={"code": created["invite_code"]},
        headers=as_user("user-b"),
    )

    res = await client.get(
        f"/api/v1/households/{created['household_id']}/members", headers=as_user("user-b"),
    )

    assert res.status_code == 200
    roles = {m["user_id"]: m["role"] for m in res.json()}
    assert roles == {"user-a": "admin", "user-b": "member"}


async def test_outsider_cannot_list_members(client):
    created = await _create(client)
    res = await client.get(
        f"/api/v1/households/{created['household_id']}/members", headers=as_user("user-z"),
    )
    assert res.status_code == 403


async def test_sole_admin_cannot_leave(client):
    created = await _create(client)
    await client.post(
        "/api/v1/households/join", json={"code": created["invite_code"]},
        headers=as_user("user-b"),
    )

    res = await client.post(
        f"/api/v1/households/{created['household_id']}/leave", headers=as_user("user-a"),
    )

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "LAST_ADMIN"


async def test_member_leaves(client):
    created = await _create(client)
    await client.post(
        "/api/v1/households/join", json={"code": created["invite_code"]},
        headers=as_user("user-b"),
    )

    res = await client.post(
        f"/api/v1/households/{created['household_id']}/leave", headers=as_user("user-b"),
    )

    assert res.status_code == 204
    current = await client.get("/api/v1/households/current", headers=as_user("user-b"))
    assert current.status_code == 404


async def test_admin_deletes_household(client):
    created = await _create(client)

    res = await client.delete(
        f"/api/v1/households/{created['household_id']}", headers=as_user("user-a"),
    )

    assert res.status_code == 204
    preview = await client.get(
        f"/api/v1/households/invites/{created['invite_code']}", headers=as_user("user-b"),
    )
    assert preview.status_code == 404


async def test_member_cannot_delete_household(client):
    created = await _create(client)
    await client.post(
        "/api/v1/households/join", json={"code": created["invite_code"]},
        headers=as_user("user-b"),
    )

    res = await client.delete(
        f"/api/v1/households/{created['household_id']}", headers=as_user("user-b"),
    )

    assert res.status_code == 403


# ─── Member roles ────────────────────────────────────────────────

async def _household_with_member(client) -> str:
    created = await _create(client)
    await client.post(
        "/api/v1/households/join", json={"code": created["invite_code"]},
        headers=as_user("user-b"),
    )
    return created["household_id"]


async def test_admin_promotes_member(client):
    household_id = await _household_with_member(client)

    res = await client.patch(
        f"/api/v1/households/{household_id}/members/user-b",
        json={"role": "admin"}, headers=as_user("user-a"),
    )

    assert res.status_code == 200
    assert res.json()["user_id"] == "user-b"
    assert res.json()["role"] == "admin"

    leave = await client.post(
        f"/api/v1/households/{household_id}/leave", headers=as_user("user-a"),
    )
    assert leave.status_code == 204


async def test_member_cannot_change_roles(client):
    household_id = await _household_with_member(client)

    res = await client.patch(
        f"/api/v1/households/{household_id}/members/user-b",
        json={"role": "admin"}, headers=as_user("user-b"),
    )

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "NOT_HOUSEHOLD_ADMIN"


async def test_last_admin_cannot_step_down(client):
    household_id = await _household_with_member(client)

    res = await client.patch(
        f"/api/v1/households/{household_id}/members/user-a",
        json={"role": "member"}, headers=as_user("user-a"),
    )

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "LAST_ADMIN"


async def test_role_change_for_unknown_member(client):
    household_id = await _household_with_member(client)

    res = await client.patch(
        f"/api/v1/households/{household_id}/members/user-z",
        json={"role": "admin"}, headers=as_user("user-a"),
    )

    assert res.status_code == 404
    assert res.json()["error"]["code"] == "MEMBER_NOT_FOUND"


async def test_role_change_rejects_unknown_role(client):
    household_id = await _household_with_member(client)

    res = await client.patch(
        f"/api/v1/households/{household_id}/members/user-b",
        json={"role": "owner"}, headers=as_user("user-a"),
    )

    assert res.status_code == 400


# ─── Health ──────────────────────────────────────────────────────

async def test_health(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_readiness(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"
