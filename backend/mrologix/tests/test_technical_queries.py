import uuid

from .conftest import client, ensure_auth_headers


def create_query(client, headers, **overrides):
    payload = {
        "title": "APU fails to start",
        "description": "Intermittent no-start after cold soak",
        "category": "Powerplant",
        "tags": ["apu"],
    }
    payload.update(overrides)
    resp = client.post("/api/technical-queries", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_create_defaults_and_validation(client):
    headers, user = ensure_auth_headers(client)
    query = create_query(client, headers)
    assert query["priority"] == "MEDIUM"
    assert query["status"] == "OPEN"
    assert query["createdBy"]["username"] == user["username"]

    resp = client.post("/api/technical-queries", json={"title": "  "}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Title and description are required"


def test_list_search_and_pagination(client):
    headers, _ = ensure_auth_headers(client)
    marker = uuid.uuid4().hex[:8]
    for i in range(3):
        create_query(client, headers, title=f"Bleed leak {marker} #{i}", priority="HIGH")
    create_query(client, headers, description=f"body mentions {marker.upper()}")

    resp = client.get(
        "/api/technical-queries",
        params={"search": marker, "limit": 2, "sortBy": "title", "sortOrder": "asc"},
        headers=headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["pagination"]["total"] == 4
    assert data["pagination"]["totalPages"] == 2
    titles = [q["title"] for q in data["queries"]]
    assert titles == sorted(titles)

    high = client.get(
        "/api/technical-queries", params={"search": marker, "priority": "HIGH"}, headers=headers
    ).json()["data"]
    assert high["pagination"]["total"] == 3


def test_view_count_and_response_order(client):
    author, _ = ensure_auth_headers(client)
    helper, _ = ensure_auth_headers(client)
    query = create_query(client, author)

    first = client.post(
        f"/api/technical-queries/{query['id']}/responses", json={"content": "Check the igniter"}, headers=helper
    ).json()["data"]
    second = client.post(
        f"/api/technical-queries/{query['id']}/responses", json={"content": "Replace the ECU"}, headers=helper
    ).json()["data"]
    client.post(
        f"/api/technical-queries/{query['id']}/responses/{second['id']}/vote",
        json={"voteType": "UP"},
        headers=author,
    )

    detail = client.get(f"/api/technical-queries/{query['id']}", headers=author).json()["data"]
    assert detail["viewCount"] == 1
    assert [r["id"] for r in detail["responses"]] == [second["id"], first["id"]]
    again = client.get(f"/api/technical-queries/{query['id']}", headers=author).json()["data"]
    assert again["viewCount"] == 2

    empty = client.post(
        f"/api/technical-queries/{query['id']}/responses", json={"content": " "}, headers=helper
    )
    assert empty.status_code == 400


def test_only_author_can_edit_or_delete(client):
    author, _ = ensure_auth_headers(client)
    intruder, _ = ensure_auth_headers(client)
    query = create_query(client, author)
    update = {"title": "Changed", "description": "Changed too"}

    assert client.put(f"/api/technical-queries/{query['id']}", json=update, headers=intruder).status_code == 403
    assert client.delete(f"/api/technical-queries/{query['id']}", headers=intruder).status_code == 403

    resolved = client.put(
        f"/api/technical-queries/{query['id']}",
        json={**update, "status": "RESOLVED", "isResolved": True},
        headers=author,
    )
    assert resolved.status_code == 200
    data = resolved.json()["data"]
    assert data["isResolved"] is True
    assert data["resolvedAt"] is not None
    assert data["resolvedBy"]["id"] == data["createdBy"]["id"]

    reopened = client.put(f"/api/technical-queries/{query['id']}", json=update, headers=author).json()["data"]
    assert reopened["resolvedAt"] is None
    assert reopened["status"] == "OPEN"

    assert client.delete(f"/api/technical-queries/{query['id']}", headers=author).status_code == 200
    assert client.get(f"/api/technical-queries/{query['id']}", headers=author).status_code == 404


def test_vote_toggle(client):
    headers, _ = ensure_auth_headers(client)
    query = create_query(client, headers)
    url = f"/api/technical-queries/{query['id']}/vote"

    created = client.post(url, json={"voteType": "UP"}, headers=headers).json()["data"]
    assert created == {
        "action": "created",
        "voteType": "UP",
        "previousVoteType": None,
        "upvotes": 1,
        "downvotes": 0,
        "userVote": "UP",
    }
    switched = client.post(url, json={"voteType": "DOWN"}, headers=headers).json()["data"]
    assert switched["action"] == "updated"
    assert switched["previousVoteType"] == "UP"
    assert (switched["upvotes"], switched["downvotes"]) == (0, 1)

    assert client.get(url, headers=headers).json()["data"] == {"userVote": "DOWN"}

    removed = client.post(url, json={"voteType": "DOWN"}, headers=headers).json()["data"]
    assert removed["action"] == "removed"
    assert removed["userVote"] is None
    assert (removed["upvotes"], removed["downvotes"]) == (0, 0)

    bad = client.post(url, json={"voteType": "SIDEWAYS"}, headers=headers)
    assert bad.status_code == 400


def test_vote_status_when_signed_out(client):
    headers, _ = ensure_auth_headers(client)
    query = create_query(client, headers)
    resp = client.get(f"/api/technical-queries/{query['id']}/vote")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"userVote": None}


def test_votes_from_several_users_are_tallied(client):
    author, _ = ensure_auth_headers(client)
    query = create_query(client, author)
    url = f"/api/technical-queries/{query['id']}/vote"
    for vote in ("UP", "UP", "DOWN"):
        voter, _ = ensure_auth_headers(client)
        last = client.post(url, json={"voteType": vote}, headers=voter).json()["data"]
    assert (last["upvotes"], last["downvotes"]) == (2, 1)

    actions = [
        a["action"]
        for a in client.get(
            "/api/user-activity", params={"resourceType": "TECHNICAL_QUERY"}, headers=author
        ).json()["activities"]
    ]
    assert actions == ["CREATED_TECHNICAL_QUERY"]
