import uuid

from .conftest import client, ensure_auth_headers


def test_list_users(client):
    headers, user = ensure_auth_headers(client)
    resp = client.get("/api/users", headers=headers)
    assert resp.status_code == 200
    users = resp.json()["users"]
    assert user["email"] in [u["email"] for u in users]
    assert all("hashedPassword" not in u and "pin" not in u for u in users)


def test_search_users(client):
    name = f"Zed{uuid.uuid4().hex[:6]}"
    headers, user = ensure_auth_headers(client, first_name=name)
    resp = client.get("/api/users/search", params={"q": name.lower()}, headers=headers)
    assert resp.status_code == 200
    assert [u["email"] for u in resp.json()["users"]] == [user["email"]]

    empty = client.get("/api/users/search", params={"q": "  "}, headers=headers)
    assert empty.status_code == 400
