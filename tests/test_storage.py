"""
Tests for JSON persistence.
"""

import json

import pytest

from tablestore.errors import MalformedInputError, StorageError
from tablestore.storage import Storage, deserialize, serialize
from tablestore.store import Store
from tablestore.types import Column, DataType


def snapshot(store):
    return store.columns, [row.values() for _, row in store.rows()]


class TestSerialize:

    def test_document_layout(self, people):
        document = json.loads(serialize(people))
        assert document == {
            "numColumns": 2,
            "columns": [{"name": "id", "type": "INT"}, {"name": "name", "type": "TEXT"}],
            "records": [
                {"id": 1, "name": "a"},
                {"id": 5, "name": "b"},
                {"id": 3, "name": "c"},
            ]
        }

    def test_round_trip_empty(self, empty_store):
        assert snapshot(deserialize(serialize(empty_store))) == snapshot(empty_store)

    def test_round_trip_single_row(self, people_columns):
        store = Store(people_columns)
        store.append([-7, ""])
        assert snapshot(deserialize(serialize(store))) == snapshot(store)

    def test_round_trip_awkward_text(self, people_columns):
        store = Store(people_columns)
        for i, text in enumerate(['say "hi"', "a,b", "{x: [1]}", "line\nbreak", "back\\slash", "naïve"]):
            store.append([i, text])
        restored = deserialize(serialize(store))
        assert snapshot(restored) == snapshot(store)
        assert restored.fetch_at(4)[1].value == "line\nbreak"

    def test_round_trip_preserves_row_numbers(self, random_store):
        restored = deserialize(serialize(random_store))
        assert len(restored) == 200
        assert restored.fetch_at(57).values() == random_store.fetch_at(57).values()


class TestDeserialize:

    def test_bytes_blob(self, people):
        assert snapshot(deserialize(serialize(people).encode('utf-8'))) == snapshot(people)

    def test_invalid_utf8_bytes(self):
        with pytest.raises(MalformedInputError):
            deserialize(b'{"numColumns": \xff}')

    def test_legacy_type_codes(self):
        blob = json.dumps({
            "numColumns": 2,
            "columns": [{"name": "id", "type": 1}, {"name": "name", "type": 2}],
            "records": [{"id": 4, "name": "d"}]
        })
        store = deserialize(blob)
        assert [col.dtype for col in store.columns] == [DataType.INT, DataType.TEXT]
        assert store.fetch_at(1).values() == [4, "d"]

    @pytest.mark.parametrize("blob", [
        "",
        "not json",
        "[]",
        '{"numColumns": 1, "columns": [{"name": "id", "type": "INT"}]}',
        '{"numColumns": 2, "columns": [{"name": "id", "type": "INT"}], "records": []}',
        '{"numColumns": 1, "columns": [{"name": "id", "type": "FLOAT"}], "records": []}',
        '{"numColumns": 1, "columns": [{"name": "id", "type": "INT"}], "records": [{"other": 1}]}',
        '{"numColumns": 1, "columns": [{"name": "id", "type": "INT"}], "records": [{"id": "one"}]}',
        '{"numColumns": 1, "columns": [{"name": "id", "type": "INT"}], "records": [{"id": 1.5}]}',
        '{"numColumns": 1, "columns": [{"name": "id", "type": "INT"}], "records": [{"id": true}]}',
        '{"numColumns": 0, "columns": [], "records": []}',
        '{"numColumns": 2, "columns": [{"name": "a", "type": "INT"}, {"name": "a", "type": "INT"}],'
        ' "records": []}',
    ])
    def test_malformed_blobs(self, blob):
        with pytest.raises(MalformedInputError):
            deserialize(blob)


class TestStorage:

    def test_save_and_load(self, tmp_path, people):
        storage = Storage(str(tmp_path / "nested" / "data"))
        path = storage.save_table("people", people)

        assert path.name == "people.json"
        assert storage.table_exists("people")
        assert snapshot(storage.load_table("people.json")) == snapshot(people)

    def test_load_missing_returns_none(self, tmp_path):
        assert Storage(str(tmp_path)).load_table("nothing") is None

    def test_list_tables(self, tmp_path, people, scores):
        storage = Storage(str(tmp_path))
        storage.save_table("zeta", people)
        storage.save_table("alpha", scores)
        assert storage.list_tables() == ["alpha", "zeta"]

    @pytest.mark.parametrize("name", ["../escape", "a b", "", "x/y"])
    def test_invalid_names(self, tmp_path, people, name):
        with pytest.raises(ValueError):
            Storage(str(tmp_path)).save_table(name, people)

    def test_corrupt_file(self, tmp_path):
        storage = Storage(str(tmp_path))
        (tmp_path / "broken.json").write_text("{", encoding="utf-8")
        with pytest.raises(MalformedInputError):
            storage.load_table("broken")

    def test_file_that_is_not_utf8(self, tmp_path):
        storage = Storage(str(tmp_path))
        (tmp_path / "latin.json").write_bytes(
            b'{"numColumns": 1, "columns": [{"name": "caf\xe9", "type": "INT"}], "records": []}'
        )
        with pytest.raises(MalformedInputError):
            storage.load_table("latin")

    def test_unreadable_path(self, tmp_path):
        storage = Storage(str(tmp_path))
        (tmp_path / "folder.json").mkdir()
        with pytest.raises(StorageError):
            storage.load_table("folder")

    def test_unwritable_path(self, tmp_path, people):
        storage = Storage(str(tmp_path))
        (tmp_path / "folder.json").mkdir()
        with pytest.raises(StorageError):
            storage.save_table("folder", people)
