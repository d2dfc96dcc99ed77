from urllib.parse import parse_qs, urlsplit

import pytest

from usersvc.services import user as user_service

CONTENT_TYPE = "application/json; charset=utf-8"


@pytest.fixture(autouse=True)
def no_smtp(monkeypatch):
    monkeypatch.setattr(user_service, "send_email", lambda *args, **kwargs: True)


async def _register(client, email="alice@example.com", password="Secret123"):
    return await client.post("/users/v1/register", json={
        "email": email, "password": password, "confirm_password": password,
    })


async def test_register_returns_created_user(client):
    resp = await _register(client)
    assert resp.status_code == 201
    assert resp.headers["content-type"] == CONTENT_TYPE
    body = resp.json()
    assert body["meta"] == {"status": 201}
    assert body["data"]["id"] == 1
    assert body["data"]["email"] == "alice@example.com"
    assert "password_hash" not in body["data"]


async def test_register_duplicate_email_conflicts(client):
    await _register(client)
    resp = await _register(client)
    assert resp.status_code == 409
    assert resp.json() == {"meta": {"status": 409, "error": "user: email already registered"}}


async def test_register_missing_field(client):
    resp = await client.post("/users/v1/register", json={"email": "a@example.com"})
    assert resp.status_code == 400
    assert resp.json()["meta"]["error"] == "password is required"
    assert "data" not in resp.json()


async def test_register_password_mismatch(client):
    resp = await client.post("/users/v1/register", json={
        "email": "a@example.com", "password": "one", "confirm_password": "two",
    })
    assert resp.status_code == 400
    assert resp.json()["meta"]["error"] == "passwords do not match"


async def test_malformed_body_is_400(client):
    resp = await client.post(
        "/users/v1/login",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.headers["content-type"] == CONTENT_TYPE
    assert resp.json()["meta"]["error"].startswith("malformed request")


async def test_login(client):
    await _register(client)
    resp = await client.post("/users/v1/login", json={
        "email": "alice@example.com", "password": "Secret123",
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["meta"] == {"status": 200}
    assert body["data"]["email"] == "alice@example.com"


async def test_login_wrong_password(client):
    await _register(client)
    resp = await client.post("/users/v1/login", json={
        "email": "alice@example.com", "password": "wrong",
    })
    assert resp.status_code == 400
    assert resp.json() == {"meta": {"status": 400, "error": "user: invalid password"}}


async def test_login_unknown_email(client):
    resp = await client.post("/users/v1/login", json={
        "email": "ghost@example.com", "password": "Secret123",
    })
    assert resp.status_code == 404
    assert resp.json() == {"meta": {"status": 404, "error": "user: not found"}}


async def test_password_reset_flow(client, monkeypatch):
    await _register(client)
    issued = []
    original = user_service.generate_reset_key

    def capture_key():
        key = original()
        issued.append(key)
        return key

    monkeypatch.setattr(user_service, "generate_reset_key", capture_key)

    resp = await client.post("/users/v1/forgot-password", json={"email": "alice@example.com"})
    assert resp.status_code == 200
    assert issued

    resp = await client.post("/users/v1/reset-password", json={
        "email": "alice@example.com", "reset_key": "wrong",
        "password": "NewSecret1", "confirm_password": "NewSecret1",
    })
    assert resp.status_code == 400
    assert resp.json()["meta"]["error"] == "user: invalid reset key"

    resp = await client.post("/users/v1/reset-password", json={
        "email": "alice@example.com", "reset_key": issued[0],
        "password": "NewSecret1", "confirm_password": "NewSecret1",
    })
    assert resp.status_code == 200

    resp = await client.post("/users/v1/login", json={
        "email": "alice@example.com", "password": "NewSecret1",
    })
    assert resp.status_code == 200


async def test_reset_password_unknown_email_keeps_context(client):
    resp = await client.post("/users/v1/reset-password", json={
        "email": "ghost@example.com", "reset_key": "k",
        "password": "NewSecret1", "confirm_password": "NewSecret1",
    })
    assert resp.status_code == 404
    assert resp.json()["meta"]["error"] == "reset password: user: not found"


async def test_change_password(client):
    await _register(client)
    resp = await client.post("/users/v1/change-password", json={
        "email": "alice@example.com", "password": "wrong",
        "new_password": "Changed123", "confirm_password": "Changed123",
    })
    assert resp.status_code == 401

    resp = await client.post("/users/v1/change-password", json={
        "email": "alice@example.com", "password": "Secret123",
        "new_password": "Changed123", "confirm_password": "Changed123",
    })
    assert resp.status_code == 200
    assert resp.json()["data"] == {"message": "Password changed."}


async def test_list_defaults(fake_client, fake_repo):
    resp = await fake_client.get("/users/v1/list")
    assert resp.status_code == 200
    assert fake_repo.list_calls == [("", 20, 0)]
    assert resp.json() == {"data": {"users": []}, "meta": {"status": 200}}


@pytest.mark.parametrize(
    "query, expected",
    [
        ("limit=abc", ("", 20, 0)),
        ("limit=0&offset=xyz", ("", 20, 0)),
        ("limit=-5&offset=-3", ("", 20, 0)),
        ("limit=5&offset=10&order=-email", ("-email", 5, 10)),
        ("limit=%205", ("", 20, 0)),
        ("limit=99999999999999999999", ("", 20, 0)),
        ("offset=99999999999999999999", ("", 20, 0)),
        ("limit=-99999999999999999999&offset=-99999999999999999999", ("", 20, 0)),
        ("limit=9223372036854775807", ("", 9223372036854775807, 0)),
    ],
)
async def test_list_unparsable_values_fall_back(fake_client, fake_repo, query, expected):
    resp = await fake_client.get(f"/users/v1/list?{query}")
    assert resp.status_code == 200
    assert fake_repo.list_calls == [expected]


async def test_list_pagination_links(fake_client, fake_repo):
    for i in range(5):
        await fake_repo.create(f"user{i}@example.com", "x")

    resp = await fake_client.get("/users/v1/list?limit=2&order=email")
    body = resp.json()
    assert [u["email"] for u in body["data"]["users"]] == ["user0@example.com", "user1@example.com"]
    assert body["meta"]["total"] == 5
    assert "previous" not in body["meta"]

    next_link = body["meta"]["next"]
    assert urlsplit(next_link).path == "/users/v1/list"
    query = parse_qs(urlsplit(next_link).query)
    assert query == {"limit": ["2"], "order": ["email"], "offset": ["2"]}

    resp = await fake_client.get(next_link)
    body = resp.json()
    assert fake_repo.list_calls[-1] == ("email", 2, 2)
    assert parse_qs(urlsplit(body["meta"]["previous"]).query)["offset"] == ["0"]
    assert parse_qs(urlsplit(body["meta"]["next"]).query)["offset"] == ["4"]


async def test_list_out_of_range_values_fall_back_against_database(client):
    await _register(client)
    for query in ("limit=99999999999999999999", "offset=99999999999999999999"):
        resp = await client.get(f"/users/v1/list?{query}")
        assert resp.status_code == 200
        assert [u["id"] for u in resp.json()["data"]["users"]] == [1]
        assert "X-Request-ID" in resp.headers


async def test_list_against_database(client):
    for i in range(3):
        await _register(client, email=f"user{i}@example.com", password=f"Pass{i}word")
    resp = await client.get("/users/v1/list?limit=2&offset=2")
    body = resp.json()
    assert [u["id"] for u in body["data"]["users"]] == [3]
    assert body["meta"]["total"] == 3
    assert "next" not in body["meta"]
    assert parse_qs(urlsplit(body["meta"]["previous"]).query)["offset"] == ["0"]


async def test_unknown_route_uses_envelope(client):
    resp = await client.get("/users/v1/nope")
    assert resp.status_code == 404
    assert resp.headers["content-type"] == CONTENT_TYPE
    assert resp.json() == {"meta": {"status": 404, "error": "Not Found"}}


async def test_request_id_is_echoed(client):
    resp = await client.get("/users/v1/list", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


async def test_listed_users_expose_no_hash_material(client):
    await _register(client)
    resp = await client.get("/users/v1/list")
    user = resp.json()["data"]["users"][0]
    assert set(user) == {"id", "email", "created_at"}
    assert "$2b$" not in resp.text
