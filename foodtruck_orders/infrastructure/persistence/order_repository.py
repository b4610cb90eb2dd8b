import json
import logging
from typing import Callable, Dict, List, Optional, Any

from foodtruck_orders.domain.entities import Order, ORDER_STATUSES, parse_order_number
from foodtruck_orders.domain.interfaces import KeyValueStorage, OrderRepository, StorageError
from foodtruck_orders.domain.order_aliases import normalize_order_payload

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class KeyValueOrderRepository(OrderRepository):
    """
    Implementación concreta que guarda todos los pedidos como un único arreglo JSON
    en una clave del almacenamiento clave/valor.

    La unidad de lectura y escritura es el arreglo completo. Formato persistido:

        {"schemaVersion": 1, "orders": [ {...}, ... ]}

    Un arreglo JSON sin envoltorio (formato del cliente web anterior, sin versión)
    se lee como versión 0: sus registros pasan por la normalización de nombres
    (numero, cliente, itens, status 'pendente', ...) y quedan migrados en la
    siguiente escritura.

    Las entradas que no son objetos se conservan tal cual al reescribir el arreglo;
    solo se omiten al construir los pedidos.
    """

    def __init__(self, storage: KeyValueStorage, orders_key: str = 'orders'):
        self.storage = storage
        self.orders_key = orders_key

    # -------------------- lectura / escritura del arreglo --------------------

    def _load_records(self) -> Optional[List[Any]]:
        """
        Lee los registros crudos. Clave ausente -> lista vacía.
        Ilegible o mal formado -> None (se registra en el log, no se lanza).
        """
        try:
            raw = self.storage.get(self.orders_key)
        except StorageError as e:
            logger.error(f"No se pudieron leer los pedidos: {e}")
            return None
        if raw is None:
            return []

        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"Datos de pedidos mal formados en '{self.orders_key}': {e}")
            return None

        if isinstance(payload, list):
            return [self._migrate_legacy_record(record) for record in payload]
        if not isinstance(payload, dict):
            logger.error(f"Datos de pedidos con forma inesperada: {type(payload).__name__}")
            return None

        version = payload.get("schemaVersion")
        if version != SCHEMA_VERSION:
            logger.error(f"Versión de esquema de pedidos no soportada: {version!r}")
            return None
        records = payload.get("orders")
        if not isinstance(records, list):
            logger.error("El envoltorio de pedidos no contiene un arreglo 'orders'.")
            return None
        return records

    @staticmethod
    def _migrate_legacy_record(record: Any) -> Any:
        """Versión 0 -> forma canónica. Lo que no es un objeto queda igual."""
        if not isinstance(record, dict):
            return record
        return normalize_order_payload(record)

    def _save_records(self, records: List[Any]) -> bool:
        try:
            raw = json.dumps({"schemaVersion": SCHEMA_VERSION, "orders": records}, ensure_ascii=False)
            self.storage.set(self.orders_key, raw)
            return True
        except (StorageError, TypeError, ValueError) as e:
            logger.error(f"No se pudieron guardar los pedidos: {e}")
            return False

    def _read_modify_write(self, mutate: Callable[[List[Any]], bool]) -> bool:
        """
        Punto único de lectura-modificación-escritura. `mutate` modifica la lista
        en sitio y devuelve False para abortar sin escribir. Si los datos guardados
        no se pueden leer no se sobrescriben.
        """
        records = self._load_records()
        if records is None or not mutate(records):
            return False
        return self._save_records(records)

    @staticmethod
    def _to_order(record: Any) -> Optional[Order]:
        if not isinstance(record, dict):
            logger.warning(f"Se omite una entrada de pedidos que no es un objeto: {record!r}")
            return None
        try:
            return Order.from_dict(record)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Se omite un pedido mal formado ({record.get('id')!r}): {e}")
            return None

    # -------------------- operaciones del repositorio --------------------

    def list_orders(self) -> List[Order]:
        records = self._load_records() or []
        orders = [order for order in map(self._to_order, records) if order is not None]
        # sort es estable: números repetidos conservan el orden guardado
        orders.sort(key=lambda order: order.number_value)
        return orders

    def upsert_order(self, order: Order) -> bool:
        try:
            new_record = order.to_dict()
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"No se pudo serializar el pedido {getattr(order, 'id', None)!r}: {e}")
            return False

        def mutate(records: List[Any]) -> bool:
            for index, record in enumerate(records):
                if isinstance(record, dict) and record.get("id") == order.id:
                    logger.info(f"Pedido {order.id} ya existe, actualizando...")
                    records[index] = new_record
                    return True
            records.append(new_record)
            return True

        saved = self._read_modify_write(mutate)
        if saved:
            logger.info(f"Pedido guardado: {order.id} ({order.number})")
        return saved

    def update_order_status(self, order_id: str, new_status: str) -> bool:
        if new_status not in ORDER_STATUSES:
            logger.error(f"Estado inválido para el pedido {order_id}: {new_status!r}")
            return False

        def mutate(records: List[Any]) -> bool:
            for record in records:
                if isinstance(record, dict) and record.get("id") == order_id:
                    record["status"] = new_status
                    return True
            logger.error(f"Pedido no encontrado: {order_id}")
            return False

        updated = self._read_modify_write(mutate)
        if updated:
            logger.info(f"Estado actualizado: {order_id} -> {new_status}")
        return updated

    def get_order_statistics(self) -> Dict[str, int]:
        orders = self.list_orders()
        statistics = {status: 0 for status in ORDER_STATUSES}
        for order in orders:
            statistics[order.status] += 1
        statistics["total"] = len(orders)
        return statistics

    def get_order(self, order_id: str) -> Optional[Order]:
        for order in self.list_orders():
            if order.id == order_id:
                return order
        return None

    def find_order_by_number(self, number: str) -> Optional[Order]:
        wanted = parse_order_number(number)
        if wanted <= 0:
            return None
        matches = [order for order in self.list_orders() if order.number_value == wanted]
        if not matches:
            return None
        # Después de que el contador da la vuelta puede haber repetidos: gana el más reciente
        return max(matches, key=lambda order: order.created_at)
