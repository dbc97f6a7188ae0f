import os
import sqlite3
import time
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("LOG_LEVEL", "WARNING")

from todo_api.db import Database  # noqa: E402
from todo_api.main import app  # noqa: E402
from todo_api.routers.todos import get_database, get_todo_service  # noqa: E402
from todo_api.service import TodoService  # noqa: E402


@pytest.fixture
def db(tmp_path):
    return Database(str(tmp_path / "todos.db"))


@pytest.fixture
def client(db):
    app.dependency_overrides[get_todo_service] = lambda: TodoService(db)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def parse_ts(value: str) -> datetime:
    # pydantic writes UTC as a trailing Z, which fromisoformat only reads on 3.11+
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def count_rows(db: Database) -> int:
    with db.connect() as conn:
        return conn.execute("SELECT COUNT(*) FROM todos").fetchone()[0]


def create(client, subject="Test Task", description="Do something"):
    res = client.post("/todos", json={"subject": subject, "description": description})
    assert res.status_code == 200
    return res.json()["todo"]


def delete(client, payload=None):
    if payload is None:
        return client.request("DELETE", "/todos")
    return client.request("DELETE", "/todos", json=payload)


def assert_todo_shape(todo: dict):
    for key in ["id", "subject", "description", "created_at", "updated_at"]:
        assert key in todo
    assert isinstance(todo["id"], int)
    assert isinstance(todo["subject"], str)
    assert isinstance(todo["description"], str)
    assert parse_ts(todo["created_at"]).utcoffset() == timedelta(0)
    assert parse_ts(todo["updated_at"]).utcoffset() == timedelta(0)


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        assert res.json()["message"] == "Healthy"


class TestCreate:
    def test_create_returns_full_todo(self, client):
        todo = create(client, subject="Buy milk", description="2 liters")
        assert_todo_shape(todo)
        assert todo["id"] > 0
        assert todo["subject"] == "Buy milk"
        assert todo["description"] == "2 liters"

    def test_create_without_description(self, client):
        res = client.post("/todos", json={"subject": "Only subject"})
        assert res.status_code == 200
        assert res.json()["todo"]["description"] == ""

    def test_created_timestamps_do_not_go_backwards(self, client):
        first = create(client, subject="first")
        second = create(client, subject="second")
        assert second["id"] > first["id"]
        assert parse_ts(second["created_at"]) >= parse_ts(first["created_at"])
        assert parse_ts(second["updated_at"]) >= parse_ts(first["updated_at"])

    @pytest.mark.parametrize("body", [{"subject": "", "description": "x"}, {"description": "x"}, {}])
    def test_create_empty_subject_is_bad_request(self, client, db, body):
        res = client.post("/todos", json=body)
        assert res.status_code == 400
        assert res.headers["content-type"].startswith("text/plain")
        assert res.text.strip() == "Bad request"
        assert count_rows(db) == 0

    def test_create_malformed_json(self, client, db):
        res = client.post("/todos", content=b"{not json", headers={"Content-Type": "application/json"})
        assert res.status_code == 422
        body = res.json()
        assert body["error"] == "ValidationError"
        assert body["message"] == "Request validation failed"
        assert isinstance(body["detail"], list)
        assert count_rows(db) == 0


class TestRead:
    def seed(self, client, count):
        return [create(client, subject=f"Task {i}")["id"] for i in range(count)]

    def test_read_empty_store_returns_empty_list(self, client):
        res = client.get("/todos")
        assert res.status_code == 200
        assert res.json() == {"todos": []}

    def test_read_defaults_to_five_newest(self, client):
        ids = self.seed(client, 7)
        res = client.get("/todos?prev_id=0&size=0")
        assert res.status_code == 200
        got = [t["id"] for t in res.json()["todos"]]
        assert got == sorted(ids, reverse=True)[:5]

    def test_read_with_size(self, client):
        ids = self.seed(client, 4)
        res = client.get("/todos?size=2")
        got = [t["id"] for t in res.json()["todos"]]
        assert got == [ids[3], ids[2]]

    def test_read_with_cursor(self, client):
        ids = self.seed(client, 6)
        cursor = ids[4]
        res = client.get(f"/todos?prev_id={cursor}&size=3")
        todos = res.json()["todos"]
        assert [t["id"] for t in todos] == [ids[3], ids[2], ids[1]]
        assert all(t["id"] < cursor for t in todos)

    def test_read_past_the_oldest_is_empty(self, client):
        ids = self.seed(client, 2)
        res = client.get(f"/todos?prev_id={ids[0]}")
        assert res.status_code == 200
        assert res.json()["todos"] == []

    def test_read_unparsable_params_read_as_zero(self, client):
        ids = self.seed(client, 6)
        res = client.get("/todos?prev_id=abc&size=lots")
        assert res.status_code == 200
        assert [t["id"] for t in res.json()["todos"]] == sorted(ids, reverse=True)[:5]

    @pytest.mark.parametrize(
        "query",
        [
            "size=99999999999999999999",
            "prev_id=99999999999999999999",
            "prev_id=-99999999999999999999&size=99999999999999999999",
            "size=1_000",
            "size=%207%20",
        ],
    )
    def test_read_out_of_range_or_loose_numbers_read_as_zero(self, client, query):
        ids = self.seed(client, 6)
        res = client.get(f"/todos?{query}")
        assert res.status_code == 200
        assert [t["id"] for t in res.json()["todos"]] == sorted(ids, reverse=True)[:5]


class TestUpdate:
    def test_update_round_trip(self, client):
        todo = create(client, subject="Initial", description="A")
        time.sleep(0.01)
        res = client.put("/todos", json={"id": todo["id"], "subject": "Changed", "description": "B"})
        assert res.status_code == 200
        updated = res.json()["todo"]
        assert updated["id"] == todo["id"]
        assert updated["subject"] == "Changed"
        assert updated["description"] == "B"
        assert updated["created_at"] == todo["created_at"]
        assert parse_ts(updated["updated_at"]) > parse_ts(todo["updated_at"])

        # the cursor scheme finds it again with prev_id = id + 1
        page = client.get(f"/todos?prev_id={todo['id'] + 1}&size=1").json()["todos"]
        assert page == [updated]

    @pytest.mark.parametrize(
        "body",
        [
            {"id": 0, "subject": "x"},
            {"subject": "x"},
            {"id": 1, "subject": ""},
            {"id": 1},
        ],
    )
    def test_update_bad_request(self, client, body):
        create(client, subject="Untouched")
        res = client.put("/todos", json=body)
        assert res.status_code == 400
        assert res.text.strip() == "Bad request"
        assert client.get("/todos").json()["todos"][0]["subject"] == "Untouched"

    def test_update_bad_request_skips_store(self, client):
        calls = []

        class RecordingService:
            def update_todo(self, *args):
                calls.append(args)

        app.dependency_overrides[get_todo_service] = RecordingService
        res = client.put("/todos", json={"id": 0, "subject": "x"})
        assert res.status_code == 400
        assert calls == []

    @pytest.mark.parametrize("todo_id", [2**63, 99999999999999999999, -1])
    def test_update_id_outside_int64_is_rejected(self, client, todo_id):
        todo = create(client, subject="Untouched")
        res = client.put("/todos", json={"id": todo_id, "subject": "x"})
        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"
        assert client.get("/todos").json()["todos"][0]["subject"] == "Untouched"

    def test_update_not_found(self, client, db):
        res = client.put("/todos", json={"id": 424242, "subject": "Nope"})
        assert res.status_code == 404
        assert res.json() == {"error": "Todo not found"}
        assert count_rows(db) == 0


class TestDelete:
    def test_delete_removes_listed_ids(self, client):
        a = create(client, subject="a")
        b = create(client, subject="b")
        c = create(client, subject="c")
        res = delete(client, {"ids": [a["id"], c["id"]]})
        assert res.status_code == 200
        assert res.json() == {}
        assert [t["id"] for t in client.get("/todos").json()["todos"]] == [b["id"]]

    def test_delete_empty_ids_is_noop(self, client, db):
        create(client)
        assert delete(client, {"ids": []}).status_code == 200
        assert delete(client).status_code == 200
        assert count_rows(db) == 1

    def test_delete_unknown_ids_not_found(self, client, db):
        create(client)
        res = delete(client, {"ids": [99998, 99999]})
        assert res.status_code == 404
        assert res.json() == {"error": "Todo not found"}
        assert count_rows(db) == 1


    def test_delete_id_outside_int64_is_rejected(self, client, db):
        todo = create(client)
        res = delete(client, {"ids": [todo["id"], 2**63]})
        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"
        assert count_rows(db) == 1


class TestStoreErrors:
    def test_store_failure_is_generic_500(self, client, db):
        conn = sqlite3.connect(db.path)
        conn.execute("DROP TABLE todos")
        conn.commit()
        conn.close()

        res = client.get("/todos")
        assert res.status_code == 500
        assert res.json() == {"error": "Internal server error"}


class TestStoreHandle:
    def test_store_handle_is_built_once(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "shared" / "todos.db"))
        get_database.cache_clear()
        try:
            first = get_database()
            assert get_database() is first
            assert first.path == str(tmp_path / "shared" / "todos.db")

            client = TestClient(app)
            created = client.post("/todos", json={"subject": "kept"}).json()["todo"]
            assert client.get("/todos").json()["todos"] == [created]
            assert get_database() is first
        finally:
            get_database.cache_clear()
