# foodtruck_orders/domain/order_aliases.py
"""
Nombres alternativos de campos y estados de pedido.

El cliente web anterior guardaba y enviaba los pedidos con nombres en
portugués (numero, cliente, itens, status 'pendente', ...). Tanto la API
HTTP como la migración de datos sin versión los llevan a la forma canónica
que entiende Order.from_dict.
"""
from typing import Any, Dict, Optional

from foodtruck_orders.domain.entities import ORDER_STATUSES

ORDER_FIELD_ALIASES = {
    "numero": "number",
    "cliente": "customerName",
    "clienteId": "customerId",
    "telefone": "customerPhone",
    "email": "customerEmail",
    "endereco": "deliveryAddress",
    "observacoes": "notes",
    "formaPagamento": "paymentMethod",
    "itens": "items",
    "data": "createdAt",
    "orderDate": "createdAt",
}

ITEM_FIELD_ALIASES = {
    "produtoid": "productId",
    "produtoId": "productId",
    "nome": "name",
    "quantidade": "quantity",
    "preco": "unitPrice",
}

STATUS_ALIASES = {
    "pendente": "pending",
    "preparando": "preparing",
    "pronto": "ready",
    "entregue": "delivered",
    "cancelado": "cancelled",
}


def _apply_aliases(data: Dict[str, Any], aliases: Dict[str, str]) -> Dict[str, Any]:
    normalized = {}
    for key, value in data.items():
        canonical = aliases.get(key, key)
        # El nombre canónico gana si vienen los dos
        if canonical != key and canonical in data:
            continue
        normalized[canonical] = value
    return normalized


def normalize_status(value: Any) -> Optional[str]:
    """'Pendente' -> 'pending'. None si el valor no es un estado conocido."""
    if not isinstance(value, str):
        return None
    status = value.strip().lower()
    status = STATUS_ALIASES.get(status, status)
    return status if status in ORDER_STATUSES else None


def normalize_order_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """Lleva un pedido con nombres alternativos a la forma canónica de Order.from_dict."""
    normalized = _apply_aliases(data, ORDER_FIELD_ALIASES)
    items = normalized.get("items")
    if isinstance(items, list):
        normalized["items"] = [
            _apply_aliases(item, ITEM_FIELD_ALIASES) if isinstance(item, dict) else item
            for item in items
        ]
    if "status" in normalized:
        normalized["status"] = normalize_status(normalized["status"]) or normalized["status"]
    return normalized
