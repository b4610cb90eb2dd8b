# foodtruck_orders/domain/interfaces.py
from abc import ABC, abstractmethod
from typing import List, Dict, Optional
from .entities import Order


class StorageError(Exception):
    """Fallo de lectura o escritura en el almacenamiento clave/valor."""


class KeyValueStorage(ABC):
    """
    Contrato para el almacenamiento de 'blobs' con nombre (equivalente a localStorage).
    Solo soporta lectura y escritura del valor completo de una clave.
    Las implementaciones lanzan StorageError ante cualquier fallo de E/S.
    """
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Devuelve el valor guardado en la clave, o None si no existe."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Reemplaza el valor completo de la clave."""
        pass


class OrderNumberGenerator(ABC):
    """Contrato para la autoridad que emite los números secuenciales de pedido."""
    @abstractmethod
    def next_order_number(self) -> str:
        """Emite el siguiente número ('#0008') y avanza el contador."""
        pass

    @abstractmethod
    def peek_next_order_number(self) -> str:
        """Muestra el siguiente número sin consumirlo."""
        pass


class OrderRepository(ABC):
    """
    Contrato (Interfaz) para la capa de acceso a datos de Pedidos.
    La capa de Aplicación solo conoce esta Interfaz, no la implementación.
    Ninguna operación lanza excepciones: los fallos se devuelven como False,
    None o colección vacía.
    """
    @abstractmethod
    def list_orders(self) -> List[Order]:
        """Recupera todos los pedidos ordenados por número ascendente."""
        pass

    @abstractmethod
    def upsert_order(self, order: Order) -> bool:
        """Inserta el pedido o reemplaza el existente con el mismo id."""
        pass

    @abstractmethod
    def update_order_status(self, order_id: str, new_status: str) -> bool:
        """Cambia solo el estado de un pedido existente."""
        pass

    @abstractmethod
    def get_order_statistics(self) -> Dict[str, int]:
        """Conteo de pedidos por estado más el total."""
        pass

    @abstractmethod
    def get_order(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    def find_order_by_number(self, number: str) -> Optional[Order]:
        """Busca por número público (seguimiento del pedido por el cliente)."""
        pass
