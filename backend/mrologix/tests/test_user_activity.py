import uuid

from sqlalchemy.exc import OperationalError

from .conftest import client, ensure_auth_headers
from .test_stock_inventory import create_stock
from mrologix import activity


def test_activity_is_per_user_and_filtered(client):
    headers, _ = ensure_auth_headers(client)
    other, _ = ensure_auth_headers(client)
    create_stock(client, headers)
    create_stock(client, headers)

    mine = client.get("/api/user-activity", headers=headers).json()
    actions = [a["action"] for a in mine["activities"]]
    assert actions[:2] == ["ADDED_STOCK_INVENTORY", "ADDED_STOCK_INVENTORY"]
    assert mine["pagination"]["total"] == 3

    stock_only = client.get("/api/user-activity", params={"action": "stock"}, headers=headers).json()
    assert stock_only["pagination"]["total"] == 2
    entry = stock_only["activities"][0]
    assert entry["resourceType"] == "STOCK_INVENTORY"
    assert entry["metadata"]["station"] == "KMIA"
    assert entry["resourceTitle"].startswith("Stock Item: ")

    theirs = client.get("/api/user-activity", headers=other).json()
    assert [a["action"] for a in theirs["activities"]] == ["LOGIN"]


def test_pagination(client):
    headers, _ = ensure_auth_headers(client)
    for _ in range(3):
        create_stock(client, headers)
    page = client.get("/api/user-activity", params={"page": 2, "limit": 3}, headers=headers).json()
    assert page["pagination"] == {"page": 2, "limit": 3, "total": 4, "totalPages": 2}
    assert len(page["activities"]) == 1


class FailingSession:
    def __init__(self):
        self.rolled_back = False

    def add(self, entry):
        pass

    def commit(self):
        raise OperationalError("INSERT INTO user_activities", {}, Exception("database is locked"))

    def rollback(self):
        self.rolled_back = True


def test_log_activity_swallows_database_errors():
    session = FailingSession()
    entry = activity.log_activity(session, uuid.uuid4(), activity.LOGIN, metadata={"k": "v"})
    assert entry is None
    assert session.rolled_back is True
