# foodtruck_orders/config.py
import os
from dotenv import load_dotenv

# Cargar variables de entorno del archivo .env (si existe) antes de leerlas
load_dotenv()


class Config:
    """Clase base de configuración, con variables de entorno para el almacenamiento y la API."""
    # Almacenamiento clave/valor de pedidos: 'memory', 'file' o 'postgres'
    STORAGE_BACKEND = os.environ.get('STORAGE_BACKEND', 'file').lower()
    STORAGE_PATH = os.environ.get('STORAGE_PATH', os.path.join('data', 'foodtruck_store.json'))
    ORDERS_KEY = os.environ.get('ORDERS_KEY', 'orders')
    ORDER_COUNTER_KEY = os.environ.get('ORDER_COUNTER_KEY', 'lastOrderNumber')

    # Configuración de la Base de Datos (solo si STORAGE_BACKEND=postgres)
    DB_HOST = os.environ.get('DB_HOST', 'localhost')
    DB_PORT = os.environ.get('DB_PORT', '5432')
    DB_NAME = os.environ.get('DB_NAME', 'foodtruck_db')
    DB_USER = os.environ.get('DB_USER', 'postgres')
    DB_PASSWORD = os.environ.get('DB_PASSWORD', 'postgres')
    # Parámetros para la inicialización de la BD
    RUN_DB_INIT_ON_STARTUP = os.environ.get('RUN_DB_INIT_ON_STARTUP', 'False').lower() == 'true'

    # Backend REST opcional (productos/clientes/pedidos). Vacío = deshabilitado.
    BACKEND_API_URL = os.environ.get('BACKEND_API_URL', '')
    BACKEND_API_TIMEOUT = int(os.environ.get('BACKEND_API_TIMEOUT', '5'))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
