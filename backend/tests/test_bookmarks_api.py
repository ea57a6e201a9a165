"""书签接口"""
from smart_bookmarks.api.deps import get_bookmark_store
from smart_bookmarks.realtime import BookmarkDeleted, BookmarkInserted, BookmarkUpdated
from smart_bookmarks.services import StoreError


async def test_requires_login(client):
    response = await client.get("/api/bookmarks")
    assert response.status_code == 401


async def test_invalid_token_rejected(client):
    response = await client.get("/api/bookmarks", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


async def test_create_derives_title_from_host(client, auth_headers, user):
    response = await client.post("/api/bookmarks", json={"url": "example.com"}, headers=auth_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["url"] == "https://example.com"
    assert data["title"] == "example.com"
    assert data["user_id"] == user.id


async def test_create_keeps_user_title(client, auth_headers):
    response = await client.post(
        "/api/bookmarks",
        json={"url": "  HTTP://Docs.Python.org/3/  ", "title": "  Python docs "},
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["url"] == "HTTP://Docs.Python.org/3/"
    assert data["title"] == "Python docs"


async def test_create_reports_field_error(client, auth_headers):
    response = await client.post("/api/bookmarks", json={"url": "notahost"}, headers=auth_headers)

    assert response.status_code == 422
    error = response.json()["detail"][0]
    assert error["loc"] == ["body", "url"]
    assert error["type"] == "invalid_host"
    assert error["msg"] == "Enter a valid URL (e.g. example.com)"


async def test_create_rejects_blank_and_ftp(client, auth_headers):
    blank = await client.post("/api/bookmarks", json={"url": "   "}, headers=auth_headers)
    ftp = await client.post("/api/bookmarks", json={"url": "ftp://example.com"}, headers=auth_headers)

    assert blank.json()["detail"][0]["type"] == "empty_input"
    assert ftp.json()["detail"][0]["type"] == "unsupported_scheme"


async def test_list_newest_first(client, auth_headers):
    for url in ["one.example.com", "two.example.com", "three.example.com"]:
        await client.post("/api/bookmarks", json={"url": url}, headers=auth_headers)

    response = await client.get("/api/bookmarks", headers=auth_headers)

    assert response.status_code == 200
    assert [b["title"] for b in response.json()] == [
        "three.example.com", "two.example.com", "one.example.com",
    ]


async def test_bookmarks_are_private(client, auth_headers, other_headers):
    created = await client.post("/api/bookmarks", json={"url": "example.com"}, headers=auth_headers)
    bookmark_id = created.json()["id"]

    listing = await client.get("/api/bookmarks", headers=other_headers)
    patch = await client.patch(f"/api/bookmarks/{bookmark_id}", json={"title": "x"}, headers=other_headers)
    delete = await client.delete(f"/api/bookmarks/{bookmark_id}", headers=other_headers)

    assert listing.json() == []
    assert patch.status_code == 404
    assert delete.status_code == 404


async def test_update_url_and_title(client, auth_headers):
    created = (await client.post("/api/bookmarks", json={"url": "example.com"}, headers=auth_headers)).json()

    response = await client.patch(
        f"/api/bookmarks/{created['id']}",
        json={"url": "news.ycombinator.com", "title": "HN"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["url"] == "https://news.ycombinator.com"
    assert data["title"] == "HN"
    assert data["created_at"] == created["created_at"]


async def test_update_blank_title_falls_back_to_host(client, auth_headers):
    created = (await client.post(
        "/api/bookmarks", json={"url": "example.com", "title": "Mine"}, headers=auth_headers,
    )).json()

    response = await client.patch(f"/api/bookmarks/{created['id']}", json={"title": "  "}, headers=auth_headers)

    assert response.json()["title"] == "example.com"


async def test_update_invalid_url(client, auth_headers):
    created = (await client.post("/api/bookmarks", json={"url": "example.com"}, headers=auth_headers)).json()

    response = await client.patch(f"/api/bookmarks/{created['id']}", json={"url": "localhost:99999"}, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["detail"][0]["type"] == "invalid_url"


async def test_delete_twice(client, auth_headers):
    created = (await client.post("/api/bookmarks", json={"url": "example.com"}, headers=auth_headers)).json()

    first = await client.delete(f"/api/bookmarks/{created['id']}", headers=auth_headers)
    second = await client.delete(f"/api/bookmarks/{created['id']}", headers=auth_headers)

    assert first.status_code == 200
    assert second.status_code == 404
    assert (await client.get("/api/bookmarks", headers=auth_headers)).json() == []


async def test_mutations_publish_change_events(app, client, auth_headers, user, other_user):
    feed = app.state.change_feed
    mine, theirs = [], []
    feed.subscribe(user.id, mine.append)
    feed.subscribe(other_user.id, theirs.append)

    created = (await client.post("/api/bookmarks", json={"url": "example.com"}, headers=auth_headers)).json()
    await client.patch(f"/api/bookmarks/{created['id']}", json={"title": "Renamed"}, headers=auth_headers)
    await client.delete(f"/api/bookmarks/{created['id']}", headers=auth_headers)

    assert [type(e) for e in mine] == [BookmarkInserted, BookmarkUpdated, BookmarkDeleted]
    assert mine[0].record.id == created["id"]
    assert mine[1].record.title == "Renamed"
    assert mine[2].id == created["id"]
    assert theirs == []


async def test_rejected_create_publishes_nothing(app, client, auth_headers, user):
    received = []
    app.state.change_feed.subscribe(user.id, received.append)

    await client.post("/api/bookmarks", json={"url": "notahost"}, headers=auth_headers)

    assert received == []


async def test_store_error_is_surfaced(app, client, auth_headers):
    class FailingStore:
        async def insert(self, owner_id, bookmark_in):
            raise StoreError("database is locked")

    app.dependency_overrides[get_bookmark_store] = lambda: FailingStore()

    response = await client.post("/api/bookmarks", json={"url": "example.com"}, headers=auth_headers)

    assert response.status_code == 503
    assert response.json()["detail"] == "database is locked"


async def test_validate_endpoint(client, auth_headers):
    ok = (await client.post("/api/bookmarks/validate", json={"url": "example.com/x"}, headers=auth_headers)).json()
    bad = (await client.post("/api/bookmarks/validate", json={"url": "nope"}, headers=auth_headers)).json()

    assert ok == {
        "ok": True,
        "url": "https://example.com/x",
        "error": None,
        "message": None,
        "title": "example.com",
    }
    assert bad["ok"] is False
    assert bad["error"] == "invalid_host"
    assert bad["message"] == "Enter a valid URL (e.g. example.com)"


async def test_current_user(client, auth_headers, user):
    response = await client.get("/api/users/me", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["email"] == "alice@example.com"
    assert response.json()["id"] == user.id


async def test_health(client):
    response = await client.get("/health")
    assert response.json()["status"] == "healthy"
