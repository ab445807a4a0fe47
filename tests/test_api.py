"""
Tests for the REST API.
"""

import pytest
from fastapi.testclient import TestClient

from api.server import app, get_engine


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def people_client(client):
    response = client.post("/table", json={
        "name": "people",
        "columns": [{"name": "id", "type": "INT"}, {"name": "name", "type": "TEXT"}]
    })
    assert response.status_code == 200
    for values in ([1, "a"], [5, "b"], [3, "c"]):
        assert client.post("/rows", json={"values": values}).status_code == 200
    return client


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "POST /search" in response.json()["endpoints"]


def test_no_table_is_404(client):
    response = client.get("/table")
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "NoTable"


def test_show_table(people_client):
    body = people_client.get("/table").json()
    assert body["row_count"] == 3
    assert body["rows"][2] == {"row_number": 3, "record": {"id": 3, "name": "c"}}


def test_row_endpoints(people_client):
    assert people_client.get("/rows/2").json()["row"]["record"] == {"id": 5, "name": "b"}

    response = people_client.put("/rows/2", json={"values": [6, "bb"]})
    assert response.json()["row"]["record"] == {"id": 6, "name": "bb"}

    response = people_client.delete("/rows/1")
    assert response.json()["row_count"] == 2
    assert people_client.get("/rows/1").json()["row"]["record"] == {"id": 6, "name": "bb"}


def test_row_errors(people_client):
    response = people_client.get("/rows/9")
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "OutOfRange"

    response = people_client.post("/rows", json={"values": ["x", "y"]})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "TypeMismatch"


def test_request_validation(people_client):
    response = people_client.post("/rows", json={"values": [1.5, "y"]})
    assert response.status_code == 422


def test_search_compare(people_client):
    response = people_client.post("/search", json={"column": "id", "predicate": ">=", "value": 3})
    body = response.json()
    assert response.status_code == 200
    assert body["linear"]["count"] == 2
    assert body["indexed"]["count"] == 2
    assert "total_us" in body["indexed"]


def test_search_modes(people_client):
    body = people_client.post("/search", json={
        "column": "id", "predicate": "TOP_N", "value": 1, "mode": "indexed"
    }).json()
    assert body["linear"] is None
    assert body["indexed"]["rows"] == [{"row_number": None, "record": {"id": 5, "name": "b"}}]

    response = people_client.post("/search", json={"column": "id", "predicate": "MAX", "mode": "fast"})
    assert response.status_code == 422


def test_search_contains_indexed_is_rejected(people_client):
    response = people_client.post("/search", json={
        "column": "name", "predicate": "CONTAINS", "value": "a", "mode": "indexed"
    })
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "UnsupportedPredicate"


def test_delete_where(people_client):
    response = people_client.post("/delete-where", json={"column": "id", "predicate": "<=", "value": 3})
    assert response.json()["deleted_count"] == 2
    assert people_client.get("/table").json()["row_count"] == 1


def test_save_and_load(people_client):
    assert people_client.post("/save").status_code == 200
    assert people_client.get("/tables").json()["tables"] == ["people"]

    people_client.delete("/rows/1")
    response = people_client.post("/load", json={"name": "people"})
    assert response.status_code == 200
    assert response.json()["row_count"] == 3


def test_load_missing(people_client):
    response = people_client.post("/load", json={"name": "ghost"})
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "NotFound"


def test_query(people_client):
    response = people_client.post("/query", json={"query": "SEARCH name = 'b' USING LINEAR"})
    assert response.json()["linear"]["rows"][0]["row_number"] == 2

    assert people_client.post("/query", json={}).status_code == 400
    assert people_client.post("/query", json={"query": "NONSENSE"}).json()["detail"]["error"] == "SyntaxError"


def test_load_errors(people_client, engine):
    data_dir = engine.storage.data_dir
    (data_dir / "latin.json").write_bytes(b'{"numColumns": 1, "columns": [{"name": "\xff"}]}')
    (data_dir / "folder.json").mkdir()

    response = people_client.post("/load", json={"name": "latin"})
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "MalformedInput"

    response = people_client.post("/load", json={"name": "folder"})
    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "StorageError"

    assert people_client.get("/table").json()["row_count"] == 3
