import logging

from foodtruck_orders.domain.entities import ORDER_NUMBER_PREFIX
from foodtruck_orders.domain.interfaces import KeyValueStorage, OrderNumberGenerator, StorageError

logger = logging.getLogger(__name__)

MAX_ORDER_NUMBER = 9999
ORDER_NUMBER_WIDTH = 4


def format_order_number(value: int) -> str:
    """7 -> '#0007'"""
    return f"{ORDER_NUMBER_PREFIX}{value:0{ORDER_NUMBER_WIDTH}d}"


class OrderNumberAuthority(OrderNumberGenerator):
    """
    Emite números de pedido secuenciales ('#0001' ... '#9999', luego vuelve a '#0001').

    El último número emitido se guarda como texto numérico en `counter_key`.
    Un contador ausente, corrupto o ilegible cuenta como 0. No hay bloqueo:
    dos llamadas concurrentes pueden emitir el mismo número.
    """

    def __init__(self, storage: KeyValueStorage, counter_key: str = 'lastOrderNumber'):
        self.storage = storage
        self.counter_key = counter_key

    def _read_last_number(self) -> int:
        try:
            raw = self.storage.get(self.counter_key)
        except StorageError as e:
            logger.error(f"No se pudo leer el contador de pedidos: {e}")
            return 0
        if raw is None:
            return 0
        try:
            last = int(str(raw).strip())
        except ValueError:
            logger.warning(f"Contador de pedidos corrupto ({raw!r}); se reinicia en 0.")
            return 0
        if last < 0 or last > MAX_ORDER_NUMBER:
            logger.warning(f"Contador de pedidos fuera de rango ({last}); se reinicia en 0.")
            return 0
        return last

    @staticmethod
    def _following(last: int) -> int:
        candidate = last + 1
        return 1 if candidate > MAX_ORDER_NUMBER else candidate

    def next_order_number(self) -> str:
        number = self._following(self._read_last_number())
        try:
            self.storage.set(self.counter_key, str(number))
        except StorageError as e:
            # Se entrega el número igualmente; el contador queda sin avanzar.
            logger.error(f"No se pudo guardar el contador de pedidos ({number}): {e}")
        return format_order_number(number)

    def peek_next_order_number(self) -> str:
        return format_order_number(self._following(self._read_last_number()))
