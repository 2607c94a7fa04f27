"""Profile Routes — own profile, profile edit, avatar upload and public profiles."""

import base64
from datetime import datetime, timedelta, timezone

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


async def test_my_profile_lists_own_cases_newest_first(
    client, member, other_member, make_case, auth_headers,
):
    older = await make_case(member, "older", created_at=T0)
    newer = await make_case(member, "newer", created_at=T0 + timedelta(days=1))
    await make_case(other_member, "not mine")

    res = await client.get("/api/v1/profile/me", headers=auth_headers(member))
    assert res.status_code == 200
    body = res.json()
    assert body["user"]["name"] == "Member"
    assert body["user"]["department_role"] == ""
    assert body["user"]["avatar_url"] is None
    assert [c["id"] for c in body["case_studies"]] == [newer.id, older.id]
    assert all(c["is_favorite"] is False for c in body["case_studies"])


async def test_my_profile_requires_session(client):
    assert (await client.get("/api/v1/profile/me")).status_code == 401


async def test_update_profile(client, member, auth_headers):
    res = await client.put(
        "/api/v1/profile/me",
        json={"name": "  新しい名前 ", "department_role": " PdM ", "avatar_url": "/uploads/a.png"},
        headers=auth_headers(member),
    )
    assert res.status_code == 200

    body = (await client.get("/api/v1/profile/me", headers=auth_headers(member))).json()
    assert body["user"]["name"] == "新しい名前"
    assert body["user"]["department_role"] == "PdM"
    assert body["user"]["avatar_url"] == "/uploads/a.png"


async def test_blank_department_role_is_cleared(client, member, auth_headers):
    headers = auth_headers(member)
    await client.put(
        "/api/v1/profile/me", json={"name": "Member", "department_role": "Eng"}, headers=headers,
    )
    await client.put(
        "/api/v1/profile/me", json={"name": "Member", "department_role": "  "}, headers=headers,
    )
    body = (await client.get("/api/v1/profile/me", headers=headers)).json()
    assert body["user"]["department_role"] == ""


async def test_update_profile_validates_name(client, member, auth_headers):
    headers = auth_headers(member)
    blank = await client.put("/api/v1/profile/me", json={"name": "   "}, headers=headers)
    too_long = await client.put("/api/v1/profile/me", json={"name": "x" * 81}, headers=headers)
    assert blank.status_code == 400
    assert too_long.status_code == 400


async def test_avatar_upload(client, member, auth_headers):
    res = await client.post(
        "/api/v1/profile/me/avatar",
        json={
            "filename": "me.jpg",
            "content_type": "image/jpeg",
            "base64_data": base64.b64encode(b"jpeg-bytes").decode(),
        },
        headers=auth_headers(member),
    )
    assert res.status_code == 200
    assert res.json()["key"].startswith(f"avatars/{member.id}/me.jpg-")


async def test_public_profile_hides_private_fields(client, member, make_case):
    case = await make_case(member)
    res = await client.get(f"/api/v1/profile/users/{member.id}")
    assert res.status_code == 200
    body = res.json()
    assert body["user"]["name"] == "Member"
    assert "email" not in body["user"]
    assert "open_id" not in body["user"]
    assert [c["id"] for c in body["case_studies"]] == [case.id]


async def test_public_profile_unknown_user_is_null(client):
    res = await client.get("/api/v1/profile/users/999")
    assert res.status_code == 200
    assert res.json() is None


async def test_public_profile_nameless_user(client, test_db):
    from app.models.user import User

    user = User(open_id="nameless", name=None, role="user")
    test_db.add(user)
    await test_db.commit()
    body = (await client.get(f"/api/v1/profile/users/{user.id}")).json()
    assert body["user"]["name"] == "不明"
