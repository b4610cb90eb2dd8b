# foodtruck_orders/infrastructure/persistence/db_connector.py
import logging
import psycopg2
from psycopg2 import pool
from foodtruck_orders.config import Config

logger = logging.getLogger(__name__)

# Pool compartido por todas las instancias de PgKeyValueStorage
db_pool = None

POOL_MIN_CONNECTIONS = 1
POOL_MAX_CONNECTIONS = 10


def init_db_pool(config=Config):
    """Inicializa el pool de conexiones de PostgreSQL. No hace nada si ya existe."""
    global db_pool
    if db_pool is not None:
        return
    try:
        db_pool = pool.SimpleConnectionPool(
            minconn=POOL_MIN_CONNECTIONS,
            maxconn=POOL_MAX_CONNECTIONS,
            host=config.DB_HOST,
            port=config.DB_PORT,
            database=config.DB_NAME,
            user=config.DB_USER,
            password=config.DB_PASSWORD
        )
        logger.info(f"Pool de conexiones inicializado ({config.DB_HOST}:{config.DB_PORT}/{config.DB_NAME}).")
    except psycopg2.Error as e:
        logger.error(f"No se pudo conectar a la base de datos de pedidos. {e}")
        raise ConnectionError("Fallo en la conexión inicial a la base de datos.") from e


def get_connection():
    """Obtiene una conexión del pool. ConnectionError si el pool no existe."""
    if db_pool is None:
        raise ConnectionError("El pool de la base de datos no está inicializado.")
    return db_pool.getconn()


def release_connection(conn):
    """Devuelve una conexión al pool."""
    if db_pool is not None:
        db_pool.putconn(conn)
