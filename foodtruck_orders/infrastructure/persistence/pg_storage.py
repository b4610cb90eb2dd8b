import logging
from typing import Optional

import psycopg2

from foodtruck_orders.domain.interfaces import KeyValueStorage, StorageError
from .db_connector import get_connection, release_connection

logger = logging.getLogger(__name__)


class PgKeyValueStorage(KeyValueStorage):
    """
    Implementación concreta del almacenamiento clave/valor sobre PostgreSQL
    (tabla kv_store) usando psycopg2. Cada escritura es su propia transacción.
    """

    def get(self, key: str) -> Optional[str]:
        conn = None
        try:
            conn = get_connection()
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM kv_store WHERE key = %s;", (key,))
            row = cursor.fetchone()
            return row[0] if row else None

        except psycopg2.Error as e:
            logger.error(f"Error de base de datos al leer la clave '{key}': {e}")
            if conn:
                conn.rollback()
            raise StorageError(f"Database error reading key '{key}'.") from e
        except ConnectionError as e:
            raise StorageError(str(e)) from e
        finally:
            if conn:
                release_connection(conn)

    def set(self, key: str, value: str) -> None:
        conn = None
        try:
            conn = get_connection()
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (%s, %s, NOW())
                ON CONFLICT (key) DO UPDATE
                    SET value = EXCLUDED.value, updated_at = NOW();
                """,
                (key, value)
            )
            conn.commit()

        except psycopg2.Error as e:
            logger.error(f"Error de base de datos al escribir la clave '{key}': {e}")
            if conn:
                conn.rollback()
            raise StorageError(f"Database error writing key '{key}'.") from e
        except ConnectionError as e:
            raise StorageError(str(e)) from e
        finally:
            if conn:
                release_connection(conn)
