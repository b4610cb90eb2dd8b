# foodtruck_orders/application/use_cases.py
import logging
import random
import string
import time
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Tuple

from foodtruck_orders.domain.interfaces import OrderRepository, OrderNumberGenerator
from foodtruck_orders.domain.entities import (
    Order,
    OrderItem,
    calculate_total,
    validate_total,
    STATUS_PENDING,
    STATUS_READY,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
)
from foodtruck_orders.domain import status_flow

logger = logging.getLogger(__name__)


def generate_order_id() -> str:
    """Id opaco basado en tiempo + sufijo aleatorio: 'ord_1718049600000_k3x9a'."""
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=5))
    return f"ord_{int(time.time() * 1000)}_{suffix}"


class CheckoutOrderUseCase:
    """
    Caso de uso: Registrar un pedido nuevo desde el checkout.
    Pide el número a la autoridad de numeración, arma el pedido en estado
    'pending' y lo guarda. Si hay backend REST configurado, lo envía también
    (sin afectar el resultado local).
    """

    def __init__(self, order_repository: OrderRepository, number_generator: OrderNumberGenerator,
                 backend_client=None):
        self.repository = order_repository
        self.number_generator = number_generator
        self.backend_client = backend_client

    def execute(self, customer_name: str, customer_phone: str, items: List[OrderItem],
                total: Optional[float] = None, **optional_fields) -> Optional[Order]:
        """
        Devuelve el pedido creado, o None si no se pudo guardar.
        `optional_fields` acepta customer_email, delivery_address, notes,
        payment_method y customer_id.
        Lanza ValueError si el total es negativo o no es finito; en ese caso
        no se consume número de pedido.
        """
        total = calculate_total(items) if total is None else validate_total(total)

        order = Order(
            id=generate_order_id(),
            number=self.number_generator.next_order_number(),
            customer_name=customer_name,
            customer_phone=customer_phone,
            items=list(items),
            total=total,
            status=STATUS_PENDING,
            created_at=datetime.now(timezone.utc),
            **optional_fields
        )

        if not self.repository.upsert_order(order):
            logger.error(f"No se pudo registrar el pedido {order.number}")
            return None

        if self.backend_client is not None and order.customer_id:
            self.backend_client.push_order(order)

        return order


class SaveOrderUseCase:
    """Caso de uso: Guardar (insertar o reemplazar) un pedido completo."""

    def __init__(self, order_repository: OrderRepository):
        self.repository = order_repository

    def execute(self, order: Order) -> bool:
        return self.repository.upsert_order(order)


class ListOrdersUseCase:
    """
    Caso de uso: Listar pedidos para el panel de administración,
    en orden de número ascendente, con filtros opcionales.
    """

    def __init__(self, order_repository: OrderRepository):
        self.repository = order_repository

    def execute(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Order]:
        orders = self.repository.list_orders()

        if status:
            orders = [order for order in orders if order.status == status]

        if search:
            term = search.strip().lower()
            orders = [
                order for order in orders
                if term in order.number.lower()
                or term in order.customer_name.lower()
                or term in order.customer_phone.lower()
            ]

        return orders


class GetOrderUseCase:
    def __init__(self, order_repository: OrderRepository):
        self.repository = order_repository

    def execute(self, order_id: str) -> Optional[Order]:
        return self.repository.get_order(order_id)


class TrackOrderUseCase:
    """
    Caso de uso: Seguimiento del pedido por el cliente usando su número público.
    """

    def __init__(self, order_repository: OrderRepository):
        self.repository = order_repository

    def execute(self, number: str) -> Optional[Dict[str, Any]]:
        order = self.repository.find_order_by_number(number)
        if order is None:
            return None

        # Un pedido cancelado no está en ningún paso del flujo
        current_step = -1
        if order.status in status_flow.STATUS_FLOW:
            current_step = status_flow.STATUS_FLOW.index(order.status)

        return {
            "order": order,
            "steps": list(status_flow.STATUS_FLOW),
            "current_step": current_step,
        }


class UpdateOrderStatusUseCase:
    """Caso de uso: Fijar el estado directamente (sin validar la transición)."""

    def __init__(self, order_repository: OrderRepository):
        self.repository = order_repository

    def execute(self, order_id: str, new_status: str) -> bool:
        return self.repository.update_order_status(order_id, new_status)


class AdvanceOrderStatusUseCase:
    """
    Caso de uso: Mover el pedido al siguiente estado del flujo
    (pending -> preparing -> ready -> delivered).
    """

    def __init__(self, order_repository: OrderRepository):
        self.repository = order_repository

    def execute(self, order_id: str) -> Tuple[Optional[Order], Optional[str]]:
        """
        Devuelve (pedido, nuevo_estado).
        (None, None) si el pedido no existe; (pedido, None) si es terminal o no se pudo guardar.
        """
        order = self.repository.get_order(order_id)
        if order is None:
            return None, None

        new_status = status_flow.next_status(order.status)
        if new_status is None:
            return order, None

        if not self.repository.update_order_status(order_id, new_status):
            return order, None

        order.status = new_status
        return order, new_status


class CancelOrderUseCase:
    """Caso de uso: Cancelar un pedido que todavía no terminó."""

    def __init__(self, order_repository: OrderRepository):
        self.repository = order_repository

    def execute(self, order_id: str) -> Tuple[Optional[Order], bool]:
        """Devuelve (pedido, cambió). Cancelar un pedido terminal no hace nada."""
        order = self.repository.get_order(order_id)
        if order is None:
            return None, False

        new_status = status_flow.cancel(order.status)
        if new_status == order.status:
            return order, False

        if not self.repository.update_order_status(order_id, new_status):
            return order, False

        order.status = new_status
        return order, True


class GetOrderStatisticsUseCase:
    def __init__(self, order_repository: OrderRepository):
        self.repository = order_repository

    def execute(self) -> Dict[str, int]:
        return self.repository.get_order_statistics()


class GetSalesReportUseCase:
    """
    Caso de uso: Reporte de ventas para el panel de administración.
    Cuenta como venta concluida todo pedido 'ready' o 'delivered'.
    Los horarios pico agrupan los pedidos concluidos por hora de creación (UTC).
    """

    TOP_PRODUCTS_LIMIT = 5
    PEAK_HOURS_LIMIT = 6

    def __init__(self, order_repository: OrderRepository):
        self.repository = order_repository

    def execute(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
        orders = self.repository.list_orders()
        if start is not None:
            orders = [order for order in orders if order.created_at >= start]
        if end is not None:
            orders = [order for order in orders if order.created_at <= end]

        completed = [order for order in orders if order.status in (STATUS_READY, STATUS_DELIVERED)]
        cancelled = [order for order in orders if order.status == STATUS_CANCELLED]

        total_sales = round(sum(order.total for order in completed), 2)
        average_ticket = round(total_sales / len(completed), 2) if completed else 0.0

        products: Dict[str, Dict[str, Any]] = {}
        for order in completed:
            for item in order.items:
                entry = products.setdefault(item.name, {"name": item.name, "quantity": 0, "total": 0.0})
                entry["quantity"] += item.quantity
                entry["total"] = round(entry["total"] + item.subtotal, 2)

        top_products = sorted(products.values(), key=lambda p: p["quantity"], reverse=True)

        hours: Dict[str, int] = {}
        for order in completed:
            hour = f"{order.created_at.astimezone(timezone.utc).hour:02d}:00"
            hours[hour] = hours.get(hour, 0) + 1

        peak_hours = sorted(
            ({"hour": hour, "orders": count} for hour, count in hours.items()),
            key=lambda h: h["orders"],
            reverse=True
        )

        return {
            "total_orders": len(orders),
            "completed_orders": len(completed),
            "cancelled_orders": len(cancelled),
            "total_sales": total_sales,
            "average_ticket": average_ticket,
            "top_products": top_products[:self.TOP_PRODUCTS_LIMIT],
            "peak_hours": peak_hours[:self.PEAK_HOURS_LIMIT],
        }


class PreviewOrderNumberUseCase:
    """Caso de uso: Mostrar el próximo número de pedido sin consumirlo."""

    def __init__(self, number_generator: OrderNumberGenerator):
        self.number_generator = number_generator

    def execute(self) -> str:
        return self.number_generator.peek_next_order_number()
