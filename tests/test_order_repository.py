import json
from datetime import datetime, timezone, timedelta
from unittest.mock import Mock

import pytest

from foodtruck_orders.domain.entities import Order, OrderItem, ORDER_STATUSES
from foodtruck_orders.domain.interfaces import StorageError
from foodtruck_orders.infrastructure.persistence.storage import InMemoryStorage
from foodtruck_orders.infrastructure.persistence.order_numbering import OrderNumberAuthority
from foodtruck_orders.infrastructure.persistence.order_repository import (
    KeyValueOrderRepository,
    SCHEMA_VERSION,
)

BASE_DATE = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_order(order_id: str, number: str, status: str = "pending", minutes: int = 0) -> Order:
    return Order(
        id=order_id,
        number=number,
        customer_name="Cliente " + order_id,
        customer_phone="555-0100",
        items=[OrderItem(product_id="p1", name="Burger", quantity=1, unit_price=10.0)],
        total=10.0,
        status=status,
        created_at=BASE_DATE + timedelta(minutes=minutes),
    )


# --- Fixtures ---

@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def repository(storage):
    return KeyValueOrderRepository(storage)


# --- upsert_order ---

class TestUpsertOrder:

    def test_upsert_appends_new_order(self, repository):
        assert repository.upsert_order(make_order("a1", "#0001"))
        before = len(repository.list_orders())

        assert repository.upsert_order(make_order("b2", "#0002"))

        assert len(repository.list_orders()) == before + 1

    def test_upsert_same_id_replaces_record(self, repository):
        """Dos upsert con el mismo id dejan un único registro con el último estado."""
        repository.upsert_order(make_order("a1", "#0001"))
        repository.upsert_order(make_order("a1", "#0001", status="ready"))

        orders = [order for order in repository.list_orders() if order.id == "a1"]
        assert len(orders) == 1
        assert orders[0].status == "ready"

    def test_upsert_preserves_array_position(self, repository, storage):
        repository.upsert_order(make_order("a1", "#0001"))
        repository.upsert_order(make_order("b2", "#0002"))
        repository.upsert_order(make_order("a1", "#0001", status="preparing"))

        stored = json.loads(storage.get("orders"))["orders"]
        assert [record["id"] for record in stored] == ["a1", "b2"]

    def test_same_number_with_different_id_is_a_new_record(self, repository):
        """Solo el id identifica el pedido: un número repetido (tras dar la vuelta) no reemplaza."""
        repository.upsert_order(make_order("a1", "#0001"))
        repository.upsert_order(make_order("z9", "#0001"))

        assert {order.id for order in repository.list_orders()} == {"a1", "z9"}

    def test_writes_versioned_envelope(self, repository, storage):
        repository.upsert_order(make_order("a1", "#0001"))

        payload = json.loads(storage.get("orders"))
        assert payload["schemaVersion"] == SCHEMA_VERSION
        assert payload["orders"][0]["id"] == "a1"

    def test_storage_write_failure_returns_false(self):
        storage = Mock()
        storage.get.return_value = None
        storage.set.side_effect = StorageError("quota exceeded")
        repository = KeyValueOrderRepository(storage)

        assert repository.upsert_order(make_order("a1", "#0001")) is False

    def test_order_that_cannot_be_read_back_is_not_stored(self, storage, repository):
        repository.upsert_order(make_order("a1", "#0001"))
        before = storage.get("orders")
        invalid = make_order("b2", "#0002")
        invalid.total = -5.0

        assert repository.upsert_order(invalid) is False
        assert storage.get("orders") == before
        assert repository.get_order_statistics()["total"] == 1

    def test_unreadable_data_is_not_overwritten(self, storage, repository):
        storage.set("orders", "{not json")

        assert repository.upsert_order(make_order("a1", "#0001")) is False
        assert storage.get("orders") == "{not json"


# --- list_orders ---

class TestListOrders:

    def test_orders_are_sorted_by_number(self, repository):
        for order_id, number in (("c", "#0003"), ("a", "#0001"), ("b", "#0002")):
            repository.upsert_order(make_order(order_id, number))

        assert [order.number for order in repository.list_orders()] == ["#0001", "#0002", "#0003"]

    def test_absent_key_returns_empty_list(self, repository):
        assert repository.list_orders() == []

    @pytest.mark.parametrize("raw", [
        "{not json",
        '"just a string"',
        '{"schemaVersion": 99, "orders": []}',
        '{"schemaVersion": 1, "orders": "nope"}',
    ])
    def test_malformed_data_returns_empty_list(self, storage, repository, raw):
        storage.set("orders", raw)
        assert repository.list_orders() == []

    def test_storage_read_failure_returns_empty_list(self):
        storage = Mock()
        storage.get.side_effect = StorageError("boom")

        assert KeyValueOrderRepository(storage).list_orders() == []

    def test_reads_legacy_bare_array_and_migrates_on_write(self, storage, repository):
        legacy = [make_order("old", "#0005").to_dict()]
        storage.set("orders", json.dumps(legacy))

        assert [order.id for order in repository.list_orders()] == ["old"]

        repository.upsert_order(make_order("new", "#0006"))
        payload = json.loads(storage.get("orders"))
        assert payload["schemaVersion"] == SCHEMA_VERSION
        assert [record["id"] for record in payload["orders"]] == ["old", "new"]

    def test_malformed_records_are_skipped(self, storage, repository):
        good = make_order("ok", "#0001").to_dict()
        storage.set("orders", json.dumps({
            "schemaVersion": SCHEMA_VERSION,
            "orders": [good, {"id": "broken"}, "garbage"],
        }))

        assert [order.id for order in repository.list_orders()] == ["ok"]

    def test_reads_and_migrates_records_from_previous_web_client(self, storage, repository):
        storage.set("orders", json.dumps([{
            "id": "ped_1",
            "numero": "#0001",
            "cliente": "Ana",
            "telefone": "555-0101",
            "itens": [{"produtoid": "p1", "nome": "Taco", "quantidade": 2, "preco": 4.5}],
            "total": 9,
            "status": "pendente",
            "data": "2025-01-01T10:00:00.000Z",
        }]))

        orders = repository.list_orders()
        assert [(order.id, order.number, order.status) for order in orders] == [("ped_1", "#0001", "pending")]
        assert repository.get_order_statistics()["pending"] == 1

        assert repository.update_order_status("ped_1", "preparing")
        payload = json.loads(storage.get("orders"))
        assert payload["schemaVersion"] == SCHEMA_VERSION
        record = payload["orders"][0]
        assert record["customerName"] == "Ana"
        assert record["status"] == "preparing"
        assert record["items"][0]["unitPrice"] == 4.5
        assert "cliente" not in record

    def test_non_object_entries_survive_writes(self, storage, repository):
        good = make_order("ok", "#0001").to_dict()
        storage.set("orders", json.dumps({
            "schemaVersion": SCHEMA_VERSION,
            "orders": [good, "garbage", 42],
        }))

        assert repository.upsert_order(make_order("new", "#0002"))
        assert repository.update_order_status("ok", "ready")

        stored = json.loads(storage.get("orders"))["orders"]
        assert stored[1:3] == ["garbage", 42]
        assert [order.id for order in repository.list_orders()] == ["ok", "new"]


# --- update_order_status ---

class TestUpdateOrderStatus:

    def test_unknown_id_returns_false_and_changes_nothing(self, repository):
        repository.upsert_order(make_order("a1", "#0001"))
        before = repository.list_orders()

        assert repository.update_order_status("does-not-exist", "ready") is False
        assert repository.list_orders() == before

    def test_updates_only_status(self, repository):
        repository.upsert_order(make_order("a1", "#0001"))

        assert repository.update_order_status("a1", "preparing") is True

        order = repository.get_order("a1")
        assert order.status == "preparing"
        assert order.number == "#0001"
        assert order.created_at == BASE_DATE

    def test_backward_moves_are_allowed(self, repository):
        repository.upsert_order(make_order("a1", "#0001", status="delivered"))
        assert repository.update_order_status("a1", "pending") is True

    def test_invalid_status_value_is_rejected(self, repository):
        repository.upsert_order(make_order("a1", "#0001"))

        assert repository.update_order_status("a1", "lost") is False
        assert repository.get_order("a1").status == "pending"


# --- estadísticas y búsquedas ---

class TestStatisticsAndLookups:

    def test_statistics_are_consistent_with_list(self, repository):
        statuses = ["pending", "pending", "preparing", "ready", "delivered", "cancelled"]
        for index, status in enumerate(statuses, start=1):
            repository.upsert_order(make_order(f"o{index}", f"#{index:04d}", status=status))
        repository.update_order_status("o1", "cancelled")

        statistics = repository.get_order_statistics()

        assert statistics["total"] == len(repository.list_orders())
        assert sum(statistics[status] for status in ORDER_STATUSES) == statistics["total"]
        assert statistics["pending"] == 1
        assert statistics["cancelled"] == 2

    def test_statistics_on_empty_store(self, repository):
        statistics = repository.get_order_statistics()
        assert statistics == {status: 0 for status in ORDER_STATUSES} | {"total": 0}

    def test_get_order_missing_returns_none(self, repository):
        assert repository.get_order("nope") is None

    @pytest.mark.parametrize("query", ["#0007", "0007", "7"])
    def test_find_order_by_number_accepts_formats(self, repository, query):
        repository.upsert_order(make_order("a1", "#0007"))
        assert repository.find_order_by_number(query).id == "a1"

    def test_find_order_by_number_prefers_most_recent_after_wraparound(self, repository):
        repository.upsert_order(make_order("old", "#0001", minutes=0))
        repository.upsert_order(make_order("new", "#0001", minutes=30))

        assert repository.find_order_by_number("#0001").id == "new"

    def test_find_order_by_number_invalid(self, repository):
        assert repository.find_order_by_number("abc") is None


# --- Escenario completo ---

def test_end_to_end_numbering_and_status(storage):
    """Crear A, asignarle #0001, pasar a 'preparing' y verificar un único registro."""
    repository = KeyValueOrderRepository(storage)
    authority = OrderNumberAuthority(storage)

    order = make_order("a1", "")
    assert repository.upsert_order(order)

    order.number = authority.next_order_number()
    assert order.number == "#0001"
    assert repository.upsert_order(order)

    assert repository.update_order_status("a1", "preparing")

    matches = [o for o in repository.list_orders() if o.id == "a1"]
    assert len(matches) == 1
    assert matches[0].number == "#0001"
    assert matches[0].status == "preparing"
