# foodtruck_orders/domain/entities.py
import math
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Optional, List, Dict, Any

# Estados del pedido en el orden del ciclo de vida (Regla de Negocio Central).
# Los valores son los que se persisten; los nombres son solo para mostrar.
STATUS_PENDING = "pending"
STATUS_PREPARING = "preparing"
STATUS_READY = "ready"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"

ORDER_STATUSES = (
    STATUS_PENDING,
    STATUS_PREPARING,
    STATUS_READY,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
)

ORDER_STATUS_MAP = {
    STATUS_PENDING: {"name": "Pendiente"},
    STATUS_PREPARING: {"name": "En preparación"},
    STATUS_READY: {"name": "Listo"},
    STATUS_DELIVERED: {"name": "Entregado"},
    STATUS_CANCELLED: {"name": "Cancelado"},
}

ORDER_NUMBER_PREFIX = "#"


def parse_order_number(number: Optional[str]) -> int:
    """Devuelve la parte numérica de un número de pedido ('#0007' -> 7). 0 si no es válido."""
    if number is None:
        return 0
    digits = str(number).strip().lstrip(ORDER_NUMBER_PREFIX)
    try:
        return int(digits)
    except ValueError:
        return 0


@dataclass
class OrderItem:
    """Entidad que representa un producto dentro de un pedido."""
    product_id: str
    name: str
    quantity: int
    unit_price: float

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderItem":
        quantity = int(data["quantity"])
        unit_price = float(data["unitPrice"])
        if quantity <= 0:
            raise ValueError(f"La cantidad debe ser positiva: {quantity}")
        if unit_price < 0:
            raise ValueError(f"El precio unitario no puede ser negativo: {unit_price}")
        return cls(
            product_id=str(data["productId"]),
            name=str(data.get("name", "")),
            quantity=quantity,
            unit_price=unit_price,
        )


def calculate_total(items: List[OrderItem]) -> float:
    """Suma de precio unitario por cantidad de todas las líneas."""
    return round(sum(item.subtotal for item in items), 2)


def validate_total(total: Any) -> float:
    """Convierte el total de un pedido a float. Debe ser finito y no negativo."""
    value = float(total)
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"El total debe ser un número finito no negativo: {total}")
    return value


@dataclass
class Order:
    """
    Entidad central de Pedido.

    `id` es la identidad (clave de upsert); `number` es la etiqueta secuencial
    que ve el cliente ('#0007') y puede repetirse después de que el contador
    da la vuelta.
    """
    id: str
    number: str
    customer_name: str
    customer_phone: str
    items: List[OrderItem]
    total: float
    status: str
    created_at: datetime
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    customer_id: Optional[str] = None

    @property
    def status_label(self) -> str:
        """Devuelve el nombre legible del estado."""
        status_info = ORDER_STATUS_MAP.get(self.status, {"name": "Desconocido"})
        return status_info["name"]

    @property
    def number_value(self) -> int:
        return parse_order_number(self.number)

    def to_dict(self) -> Dict[str, Any]:
        """
        Forma JSON persistida (claves camelCase).
        Lanza ValueError si el pedido no se podría volver a leer con from_dict.
        """
        if self.status not in ORDER_STATUSES:
            raise ValueError(f"Estado de pedido desconocido: {self.status}")
        data = {
            "id": self.id,
            "number": self.number,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "items": [item.to_dict() for item in self.items],
            "total": validate_total(self.total),
            "status": self.status,
            "createdAt": self.created_at.isoformat(),
        }
        optional_fields = {
            "customerEmail": self.customer_email,
            "deliveryAddress": self.delivery_address,
            "notes": self.notes,
            "paymentMethod": self.payment_method,
            "customerId": self.customer_id,
        }
        data.update({key: value for key, value in optional_fields.items() if value is not None})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        """
        Reconstruye un pedido desde su forma persistida.
        Lanza KeyError/ValueError/TypeError si el registro está mal formado.
        """
        status = data["status"]
        if status not in ORDER_STATUSES:
            raise ValueError(f"Estado de pedido desconocido: {status}")

        created_at = datetime.fromisoformat(data["createdAt"])
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        total = validate_total(data["total"])

        return cls(
            id=str(data["id"]),
            number=str(data["number"]),
            customer_name=str(data.get("customerName", "")),
            customer_phone=str(data.get("customerPhone", "")),
            items=[OrderItem.from_dict(item) for item in data.get("items", [])],
            total=total,
            status=status,
            created_at=created_at,
            customer_email=data.get("customerEmail"),
            delivery_address=data.get("deliveryAddress"),
            notes=data.get("notes"),
            payment_method=data.get("paymentMethod"),
            customer_id=data.get("customerId"),
        )
