"""Almacenamientos clave/valor locales (memoria y archivo JSON)."""

import json
import logging
import os
import tempfile
from typing import Dict, Optional

from foodtruck_orders.domain.interfaces import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)


class InMemoryStorage(KeyValueStorage):
    """Almacenamiento en un diccionario. Útil para pruebas y ejecuciones efímeras."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStorage(KeyValueStorage):
    """
    Todas las claves en un único archivo JSON ({clave: valor}).
    La escritura va a un archivo temporal que luego reemplaza al original.
    """

    def __init__(self, path: str):
        self.path = path

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"No se pudo leer {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Contenido inesperado en {self.path}: se esperaba un objeto JSON")
        return data

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"No se pudo escribir {self.path}: {e}") from e


def build_storage(config) -> KeyValueStorage:
    """Elige la implementación según Config.STORAGE_BACKEND."""
    backend = config.STORAGE_BACKEND
    if backend == 'memory':
        return InMemoryStorage()
    if backend == 'file':
        return JsonFileStorage(config.STORAGE_PATH)
    if backend == 'postgres':
        from .pg_storage import PgKeyValueStorage
        return PgKeyValueStorage()
    raise ValueError(f"STORAGE_BACKEND no soportado: {backend}")
