"""Case Study Routes — gallery list, CRUD, favorites, pin, share and image upload.

Invariants:
    - Reads are public; writes need a session cookie (401) and a Google login (403)
    - Default order: pinned, then owner > admin > others, oldest first
    - Deleting a case removes its favorites and clears the pin
"""

import base64
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sqlalchemy import func, select

from app.models.favorite import Favorite
from app.services import case_study_store

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _ids(body):
    return [item["id"] for item in body["items"]]


# ─── list ────────────────────────────────────────────────────────

async def test_empty_gallery(client):
    res = await client.get("/api/v1/case-studies")
    assert res.status_code == 200
    body = res.json()
    assert body["items"] == []
    assert body["total"] == 0
    assert body["pinned_id"] is None
    assert body["category_counts"]["all"] == 0


async def test_default_order_owner_admin_then_oldest(
    client, owner, admin, member, make_case,
):
    m_old = await make_case(member, "m-old", created_at=T0)
    a_case = await make_case(admin, "a", created_at=T0 + timedelta(days=1))
    m_new = await make_case(member, "m-new", created_at=T0 + timedelta(days=2))
    o_case = await make_case(owner, "o", created_at=T0 + timedelta(days=3))

    body = (await client.get("/api/v1/case-studies")).json()
    assert _ids(body) == [o_case.id, a_case.id, m_old.id, m_new.id]
    first = body["items"][0]
    assert first["author_is_owner"] is True
    assert first["author_name"] == "Owner"
    assert body["items"][1]["author_role"] == "admin"


async def test_created_desc_and_pagination(client, member, make_case):
    cases = [
        await make_case(member, f"c{i}", created_at=T0 + timedelta(days=i))
        for i in range(5)
    ]
    res = await client.get(
        "/api/v1/case-studies",
        params={"sort": "createdDesc", "limit": 2, "offset": 1},
    )
    body = res.json()
    assert body["total"] == 5
    assert _ids(body) == [cases[3].id, cases[2].id]


async def test_search_and_category_filter_keep_unfiltered_counts(
    client, member, make_case,
):
    await make_case(member, "ChatGPT 議事録", category="prompt")
    tools_case = await make_case(member, "Slack bot", category="tools")

    res = await client.get(
        "/api/v1/case-studies", params={"search": "slack", "category": "tools"},
    )
    body = res.json()
    assert _ids(body) == [tools_case.id]
    assert body["total"] == 1
    assert body["category_counts"]["all"] == 2
    assert body["category_counts"]["prompt"] == 1


async def test_liked_filter_uses_viewer_favorites(
    client, member, make_case, auth_headers,
):
    liked = await make_case(member, "liked")
    await make_case(member, "not liked")
    await client.post(
        f"/api/v1/case-studies/{liked.id}/favorite", headers=auth_headers(member),
    )

    body = (await client.get(
        "/api/v1/case-studies", params={"category": "liked"},
        headers=auth_headers(member),
    )).json()
    assert _ids(body) == [liked.id]
    assert body["items"][0]["is_favorite"] is True
    assert body["category_counts"]["liked"] == 1


async def test_anonymous_viewer_never_sees_favorites(client, member, make_case, auth_headers):
    case = await make_case(member)
    await client.post(
        f"/api/v1/case-studies/{case.id}/favorite", headers=auth_headers(member),
    )
    body = (await client.get("/api/v1/case-studies")).json()
    assert body["items"][0]["is_favorite"] is False


async def test_invalid_sort_is_validation_error(client):
    res = await client.get("/api/v1/case-studies", params={"sort": "random"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


# ─── create / read ───────────────────────────────────────────────

async def test_create_generates_tags_and_normalizes_optionals(
    client, member, auth_headers, tag_generator, case_payload,
):
    res = await client.post(
        "/api/v1/case-studies", json=case_payload(), headers=auth_headers(member),
    )
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True

    detail = (await client.get(f"/api/v1/case-studies/{body['id']}")).json()
    assert detail["tags"] == ["AI", "automation"]
    assert detail["impact"] is None
    assert detail["author_name"] == "Member"
    assert detail["is_edited"] is False
    assert tag_generator.calls[0]["tools"] == ["ChatGPT", "Zoom", "Slack"]


async def test_fresh_case_is_not_edited_until_updated(
    client, member, auth_headers, case_payload,
):
    headers = auth_headers(member)
    case_id = (await client.post(
        "/api/v1/case-studies", json=case_payload(), headers=headers,
    )).json()["id"]

    detail = (await client.get(f"/api/v1/case-studies/{case_id}")).json()
    assert detail["created_at"] == detail["updated_at"]
    assert detail["is_edited"] is False

    await client.put(
        f"/api/v1/case-studies/{case_id}", json=case_payload(title="改訂版"),
        headers=headers,
    )
    detail = (await client.get(f"/api/v1/case-studies/{case_id}")).json()
    assert detail["is_edited"] is True


async def test_create_accepts_long_text_and_keeps_list_entries(
    client, member, auth_headers, case_payload,
):
    payload = case_payload(
        description="あ" * 2001, challenge="課" * 12_000,
        tools=[f"tool-{i}" for i in range(40)], steps=["録音", " ", "要約"],
    )
    res = await client.post(
        "/api/v1/case-studies", json=payload, headers=auth_headers(member),
    )
    assert res.status_code == 201

    detail = (await client.get(f"/api/v1/case-studies/{res.json()['id']}")).json()
    assert len(detail["description"]) == 2001
    assert len(detail["tools"]) == 40
    assert detail["steps"] == ["録音", " ", "要約"]


async def test_create_requires_session(client, case_payload):
    res = await client.post("/api/v1/case-studies", json=case_payload())
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


async def test_create_requires_google_login(client, guest, auth_headers, case_payload):
    res = await client.post(
        "/api/v1/case-studies", json=case_payload(), headers=auth_headers(guest),
    )
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "GOOGLE_LOGIN_REQUIRED"


async def test_create_rejects_blank_title(client, member, auth_headers, case_payload):
    res = await client.post(
        "/api/v1/case-studies", json=case_payload(title="   "),
        headers=auth_headers(member),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_create_rejects_unknown_category(client, member, auth_headers, case_payload):
    res = await client.post(
        "/api/v1/case-studies", json=case_payload(category="marketing"),
        headers=auth_headers(member),
    )
    assert res.status_code == 400


async def test_invalid_cookie_is_treated_as_anonymous(client, member, make_case):
    await make_case(member)
    res = await client.get(
        "/api/v1/case-studies", headers={"Cookie": "app_session_id=garbage"},
    )
    assert res.status_code == 200
    assert res.json()["total"] == 1


async def test_get_missing_case_is_404(client):
    res = await client.get("/api/v1/case-studies/999")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


# ─── update / delete ─────────────────────────────────────────────

async def test_author_updates_case(
    client, member, make_case, auth_headers, tag_generator, case_payload,
):
    case = await make_case(member, created_at=T0)
    res = await client.put(
        f"/api/v1/case-studies/{case.id}",
        json=case_payload(title="更新後", category="tools"),
        headers=auth_headers(member),
    )
    assert res.status_code == 200
    assert res.json() == {"success": True}

    detail = (await client.get(f"/api/v1/case-studies/{case.id}")).json()
    assert detail["title"] == "更新後"
    assert detail["tags"] == ["AI", "tools"]
    assert detail["is_edited"] is True
    assert len(tag_generator.calls) == 1


async def test_non_author_cannot_update(
    client, member, admin, make_case, auth_headers, case_payload,
):
    case = await make_case(member)
    res = await client.put(
        f"/api/v1/case-studies/{case.id}", json=case_payload(),
        headers=auth_headers(admin),
    )
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "NOT_CASE_AUTHOR"


async def test_update_missing_case_is_404(client, member, auth_headers, case_payload):
    res = await client.put(
        "/api/v1/case-studies/999", json=case_payload(), headers=auth_headers(member),
    )
    assert res.status_code == 404


async def test_admin_deletes_case_with_favorites_and_pin(
    client, owner, admin, member, make_case, auth_headers, test_db,
):
    case = await make_case(member)
    await client.post(
        f"/api/v1/case-studies/{case.id}/favorite", headers=auth_headers(member),
    )
    await client.post(
        f"/api/v1/case-studies/{case.id}/pin", headers=auth_headers(owner),
    )

    res = await client.delete(
        f"/api/v1/case-studies/{case.id}", headers=auth_headers(admin),
    )
    assert res.status_code == 200

    assert (await client.get(f"/api/v1/case-studies/{case.id}")).status_code == 404
    remaining = await test_db.execute(select(func.count(Favorite.id)))
    assert remaining.scalar_one() == 0
    assert (await client.get("/api/v1/case-studies")).json()["pinned_id"] is None


async def test_other_member_cannot_delete(
    client, member, other_member, make_case, auth_headers,
):
    case = await make_case(member)
    res = await client.delete(
        f"/api/v1/case-studies/{case.id}", headers=auth_headers(other_member),
    )
    assert res.status_code == 403


# ─── favorites ───────────────────────────────────────────────────

async def test_favorite_toggles(client, member, make_case, auth_headers):
    case = await make_case(member)
    url = f"/api/v1/case-studies/{case.id}/favorite"
    assert (await client.post(url, headers=auth_headers(member))).json() == {"is_favorite": True}
    assert (await client.post(url, headers=auth_headers(member))).json() == {"is_favorite": False}


async def test_favorite_missing_case_is_404(client, member, auth_headers):
    res = await client.post(
        "/api/v1/case-studies/999/favorite", headers=auth_headers(member),
    )
    assert res.status_code == 404


async def test_repeated_favorite_insert_keeps_one_row(
    client, member, make_case, auth_headers, test_db,
):
    case = await make_case(member)
    # both of two racing "add" toggles reach the insert
    await case_study_store.add_favorite(test_db, member.id, case.id)
    await case_study_store.add_favorite(test_db, member.id, case.id)
    await test_db.commit()

    count = (await test_db.execute(
        select(func.count(Favorite.id)).where(Favorite.case_study_id == case.id),
    )).scalar_one()
    assert count == 1

    res = await client.post(
        f"/api/v1/case-studies/{case.id}/favorite", headers=auth_headers(member),
    )
    assert res.json() == {"is_favorite": False}


async def test_favorites_listed_oldest_favorite_first(
    client, member, make_case, auth_headers,
):
    first = await make_case(member, "first")
    second = await make_case(member, "second")
    await client.post(f"/api/v1/case-studies/{second.id}/favorite", headers=auth_headers(member))
    await client.post(f"/api/v1/case-studies/{first.id}/favorite", headers=auth_headers(member))

    res = await client.get("/api/v1/case-studies/favorites", headers=auth_headers(member))
    assert res.status_code == 200
    assert [c["id"] for c in res.json()] == [second.id, first.id]
    assert all(c["is_favorite"] for c in res.json())


# ─── pin / share ─────────────────────────────────────────────────

async def test_owner_pins_case_to_top(client, owner, member, make_case, auth_headers):
    older = await make_case(member, "older", created_at=T0)
    newer = await make_case(member, "newer", created_at=T0 + timedelta(days=1))

    res = await client.post(
        f"/api/v1/case-studies/{newer.id}/pin", headers=auth_headers(owner),
    )
    assert res.json() == {"success": True, "pinned_id": newer.id}

    body = (await client.get("/api/v1/case-studies", params={"sort": "createdAsc"})).json()
    assert _ids(body) == [newer.id, older.id]
    assert body["pinned_id"] == newer.id
    assert body["items"][0]["is_pinned"] is True

    res = await client.delete("/api/v1/case-studies/pin", headers=auth_headers(owner))
    assert res.json()["pinned_id"] is None
    body = (await client.get("/api/v1/case-studies", params={"sort": "createdAsc"})).json()
    assert _ids(body) == [older.id, newer.id]


async def test_admin_cannot_pin(client, admin, member, make_case, auth_headers):
    case = await make_case(member)
    res = await client.post(
        f"/api/v1/case-studies/{case.id}/pin", headers=auth_headers(admin),
    )
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "OWNER_REQUIRED"


async def test_share_link(client, member, make_case):
    case = await make_case(member)
    res = await client.get(f"/api/v1/case-studies/{case.id}/share")
    assert res.json() == {"url": f"https://cai.example/?case={case.id}"}


# ─── images ──────────────────────────────────────────────────────

async def test_image_upload_stores_file(client, member, auth_headers, test_settings):
    res = await client.post(
        "/api/v1/case-studies/images",
        json={
            "filename": "screen shot.png",
            "content_type": "image/png",
            "base64_data": base64.b64encode(b"\x89PNG-data").decode(),
        },
        headers=auth_headers(member),
    )
    assert res.status_code == 200
    body = res.json()
    assert body["key"].startswith(f"case-studies/{member.id}/screen_shot.png-")
    assert body["url"] == f"/uploads/{body['key']}"
    assert (Path(test_settings.upload_dir) / body["key"]).read_bytes() == b"\x89PNG-data"


async def test_image_upload_rejects_non_image(client, member, auth_headers):
    res = await client.post(
        "/api/v1/case-studies/images",
        json={
            "filename": "doc.pdf",
            "content_type": "application/pdf",
            "base64_data": base64.b64encode(b"%PDF").decode(),
        },
        headers=auth_headers(member),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_image_upload_rejects_oversized_file(client, member, auth_headers):
    res = await client.post(
        "/api/v1/case-studies/images",
        json={
            "filename": "big.png",
            "content_type": "image/png",
            "base64_data": base64.b64encode(b"x" * 2048).decode(),
        },
        headers=auth_headers(member),
    )
    assert res.status_code == 400


async def test_image_upload_rejects_bad_base64(client, member, auth_headers):
    res = await client.post(
        "/api/v1/case-studies/images",
        json={"filename": "a.png", "content_type": "image/png", "base64_data": "%%%"},
        headers=auth_headers(member),
    )
    assert res.status_code == 400
