# foodtruck_orders/infrastructure/persistence/db_initializer.py
import os
import logging
import psycopg2
from .db_connector import get_connection, release_connection
from foodtruck_orders.config import Config

logger = logging.getLogger(__name__)

# Ruta al archivo SQL del esquema
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
RESOURCES_DIR = os.path.join(BASE_DIR, 'resources')
SCHEMA_FILE = os.path.join(RESOURCES_DIR, 'schema.sql')


def _read_sql_file(filepath: str) -> str:
    """Lee el contenido de un archivo SQL."""
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            return f.read()
    except FileNotFoundError:
        logger.error(f"Archivo SQL no encontrado: {filepath}")
        return ""


def initialize_database():
    """
    Crea la tabla kv_store si no existe. Los errores se registran y no se propagan:
    el servicio sigue arriba y las operaciones de pedidos degradan a vacío/False.
    """
    if not Config.RUN_DB_INIT_ON_STARTUP:
        logger.info("Inicialización de la base de datos omitida por configuración.")
        return

    schema_sql = _read_sql_file(SCHEMA_FILE)
    if not schema_sql:
        logger.error("El script de esquema (schema.sql) está vacío o no se encontró. Abortando inicialización.")
        return

    conn = None
    try:
        conn = get_connection()
        cursor = conn.cursor()

        logger.info("Ejecutando script de creación de esquema...")
        cursor.execute(schema_sql)
        conn.commit()

    except psycopg2.Error as e:
        logger.error(f"Fallo durante la inicialización de la base de datos: {e}")
        if conn:
            conn.rollback()
    except ConnectionError as e:
        logger.error(str(e))
    finally:
        if conn:
            release_connection(conn)
