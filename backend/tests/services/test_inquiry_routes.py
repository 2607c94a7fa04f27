"""Inquiry Routes — signed-in users send messages to administrators."""


async def test_create_inquiry(client, member, admin, auth_headers):
    res = await client.post(
        "/api/v1/inquiries",
        json={"title": " 質問 ", "content": " 投稿方法を教えてください "},
        headers=auth_headers(member),
    )
    assert res.status_code == 201
    assert res.json()["success"] is True

    items = (await client.get("/api/v1/admin/inquiries", headers=auth_headers(admin))).json()
    assert items[0]["title"] == "質問"
    assert items[0]["content"] == "投稿方法を教えてください"
    assert items[0]["is_resolved"] is False


async def test_inquiry_requires_session(client):
    res = await client.post("/api/v1/inquiries", json={"title": "t", "content": "c"})
    assert res.status_code == 401


async def test_inquiry_length_limits(client, member, auth_headers):
    headers = auth_headers(member)
    long_title = await client.post(
        "/api/v1/inquiries", json={"title": "x" * 121, "content": "c"}, headers=headers,
    )
    long_content = await client.post(
        "/api/v1/inquiries", json={"title": "t", "content": "x" * 4001}, headers=headers,
    )
    blank = await client.post(
        "/api/v1/inquiries", json={"title": "  ", "content": "c"}, headers=headers,
    )
    assert long_title.status_code == 400
    assert long_content.status_code == 400
    assert blank.status_code == 400
