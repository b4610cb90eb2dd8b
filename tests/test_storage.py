import json
import os
from unittest.mock import patch

import pytest

from foodtruck_orders.domain.interfaces import StorageError
from foodtruck_orders.infrastructure.persistence.storage import (
    InMemoryStorage,
    JsonFileStorage,
    build_storage,
)
from foodtruck_orders.infrastructure.persistence.pg_storage import PgKeyValueStorage


class TestInMemoryStorage:

    def test_get_missing_key_returns_none(self):
        assert InMemoryStorage().get("orders") is None

    def test_set_then_get(self):
        storage = InMemoryStorage({"lastOrderNumber": "3"})
        storage.set("orders", "[]")

        assert storage.get("orders") == "[]"
        assert storage.get("lastOrderNumber") == "3"


class TestJsonFileStorage:

    def test_missing_file_reads_as_empty(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path / "store.json"))
        assert storage.get("orders") is None

    def test_set_creates_directory_and_keeps_other_keys(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        storage = JsonFileStorage(str(path))

        storage.set("lastOrderNumber", "5")
        storage.set("orders", "[]")

        assert json.loads(path.read_text(encoding="utf-8")) == {"lastOrderNumber": "5", "orders": "[]"}
        assert JsonFileStorage(str(path)).get("lastOrderNumber") == "5"

    def test_no_temporary_files_are_left_behind(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path / "store.json"))
        storage.set("orders", "[]")

        assert os.listdir(tmp_path) == ["store.json"]

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{corrupt", encoding="utf-8")

        with pytest.raises(StorageError):
            JsonFileStorage(str(path)).get("orders")

    def test_non_object_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(StorageError):
            JsonFileStorage(str(path)).get("orders")

    def test_write_failure_raises_storage_error(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path / "store.json"))

        with patch('foodtruck_orders.infrastructure.persistence.storage.os.replace',
                   side_effect=OSError("disk full")):
            with pytest.raises(StorageError):
                storage.set("orders", "[]")

        assert os.listdir(tmp_path) == []


class FakeConfig:
    STORAGE_BACKEND = 'file'
    STORAGE_PATH = 'data/test_store.json'


class TestBuildStorage:

    def test_memory_backend(self):
        config = FakeConfig()
        config.STORAGE_BACKEND = 'memory'
        assert isinstance(build_storage(config), InMemoryStorage)

    def test_file_backend(self):
        storage = build_storage(FakeConfig())
        assert isinstance(storage, JsonFileStorage)
        assert storage.path == 'data/test_store.json'

    def test_postgres_backend(self):
        config = FakeConfig()
        config.STORAGE_BACKEND = 'postgres'
        assert isinstance(build_storage(config), PgKeyValueStorage)

    def test_unknown_backend_raises(self):
        config = FakeConfig()
        config.STORAGE_BACKEND = 'redis'
        with pytest.raises(ValueError):
            build_storage(config)
