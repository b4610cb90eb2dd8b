# foodtruck_orders/domain/status_flow.py
"""
Máquina de estados del pedido.

    pending -> preparing -> ready -> delivered
    (cualquier estado no terminal) -> cancelled

Las funciones son consultas de ayuda para la UI/API: el repositorio acepta
cualquier estado válido, así que no se impide retroceder desde aquí.
"""
from typing import Optional

from .entities import (
    ORDER_STATUSES,
    STATUS_PENDING,
    STATUS_PREPARING,
    STATUS_READY,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
)

STATUS_FLOW = (STATUS_PENDING, STATUS_PREPARING, STATUS_READY, STATUS_DELIVERED)
TERMINAL_STATUSES = frozenset({STATUS_DELIVERED, STATUS_CANCELLED})


def _check_status(status: str) -> None:
    if status not in ORDER_STATUSES:
        raise ValueError(f"Estado de pedido desconocido: {status}")


def is_terminal(current: str) -> bool:
    _check_status(current)
    return current in TERMINAL_STATUSES


def next_status(current: str) -> Optional[str]:
    """Siguiente estado en el flujo normal, o None si el estado es terminal."""
    if is_terminal(current):
        return None
    return STATUS_FLOW[STATUS_FLOW.index(current) + 1]


def can_cancel(current: str) -> bool:
    return not is_terminal(current)


def cancel(current: str) -> str:
    """
    Devuelve 'cancelled' desde cualquier estado no terminal.
    Desde 'delivered' o 'cancelled' no hace nada y devuelve el estado actual;
    es responsabilidad del llamador ofrecer la acción solo cuando aplica.
    """
    if is_terminal(current):
        return current
    return STATUS_CANCELLED
