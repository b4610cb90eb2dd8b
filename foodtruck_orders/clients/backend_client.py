"""Cliente HTTP para el backend REST opcional (productos/clientes/pedidos)."""

import logging
import requests
from typing import Optional

from foodtruck_orders.domain.entities import Order

logger = logging.getLogger(__name__)

ORDER_ENDPOINT = "/v1/order/create_order"
PRODUCT_ENDPOINT = "/v1/product"


class BackendOrdersClient:
    """
    Cliente para comunicarse con el backend REST.
    El almacenamiento local sigue siendo la fuente de verdad: cualquier fallo
    de red se registra y se devuelve como False.
    """

    def __init__(self, base_url: str, timeout: int = 5):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def is_available(self) -> bool:
        """Comprueba si el backend responde."""
        try:
            response = requests.get(f"{self.base_url}{PRODUCT_ENDPOINT}", timeout=self.timeout)
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"Backend no disponible en {self.base_url}: {e}")
            return False

    def push_order(self, order: Order) -> bool:
        """
        Envía el pedido al backend.

        El endpoint esperado es: POST /v1/order/create_order
        con {clienteId, itens: [{produtoId, quantidade}], total}.
        """
        if not order.customer_id:
            logger.info(f"Pedido {order.id} sin cliente registrado; no se envía al backend.")
            return False

        payload = {
            "clienteId": order.customer_id,
            "itens": [
                {"produtoId": item.product_id, "quantidade": item.quantity}
                for item in order.items
            ],
            "total": order.total,
        }
        try:
            response = requests.post(
                f"{self.base_url}{ORDER_ENDPOINT}",
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
            logger.info(f"Pedido {order.id} enviado al backend.")
            return True
        except requests.exceptions.RequestException as e:
            logger.error(f"Error al enviar el pedido {order.id} al backend: {e}")
            return False


def build_backend_client(config) -> Optional[BackendOrdersClient]:
    """Devuelve el cliente si BACKEND_API_URL está configurado."""
    if not config.BACKEND_API_URL:
        return None
    return BackendOrdersClient(config.BACKEND_API_URL, timeout=config.BACKEND_API_TIMEOUT)
