# foodtruck_orders/app.py
import logging

from flask import Flask, jsonify
from flask_cors import CORS

from foodtruck_orders.config import Config
from foodtruck_orders.infrastructure.web.flask_routes import create_api_blueprint
from foodtruck_orders.application.use_cases import (
    CheckoutOrderUseCase,
    ListOrdersUseCase,
    GetOrderUseCase,
    SaveOrderUseCase,
    TrackOrderUseCase,
    UpdateOrderStatusUseCase,
    AdvanceOrderStatusUseCase,
    CancelOrderUseCase,
    GetOrderStatisticsUseCase,
    GetSalesReportUseCase,
    PreviewOrderNumberUseCase,
)
from foodtruck_orders.infrastructure.persistence.storage import build_storage
from foodtruck_orders.infrastructure.persistence.order_repository import KeyValueOrderRepository
from foodtruck_orders.infrastructure.persistence.order_numbering import OrderNumberAuthority
from foodtruck_orders.clients.backend_client import build_backend_client

logger = logging.getLogger(__name__)


def create_app(config=Config, storage=None):
    """
    Crea, configura y cablea la aplicación Flask siguiendo la Arquitectura Limpia.
    `storage` permite inyectar otro almacenamiento (p. ej. InMemoryStorage en tests).
    """
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    app = Flask(__name__)
    app.config.from_object(config)

    # --- INICIALIZACIÓN DEL ALMACENAMIENTO ---
    if storage is None:
        if config.STORAGE_BACKEND == 'postgres':
            from foodtruck_orders.infrastructure.persistence.db_connector import init_db_pool
            from foodtruck_orders.infrastructure.persistence.db_initializer import initialize_database
            try:
                init_db_pool(config)
                initialize_database()
            except ConnectionError:
                # El servicio arranca igual; las lecturas devolverán vacío y las escrituras False.
                logger.exception("Fallo crítico al inicializar la BD.")
        storage = build_storage(config)

    # --- CABLEADO DE DEPENDENCIAS (Dependency Injection - DI) ---

    # 1. Infraestructura de Persistencia
    order_repository = KeyValueOrderRepository(storage, orders_key=config.ORDERS_KEY)
    number_authority = OrderNumberAuthority(storage, counter_key=config.ORDER_COUNTER_KEY)
    backend_client = build_backend_client(config)

    # 2. Capa de Aplicación (Use Cases)
    api_bp = create_api_blueprint(
        checkout_case=CheckoutOrderUseCase(order_repository, number_authority, backend_client),
        list_case=ListOrdersUseCase(order_repository),
        get_case=GetOrderUseCase(order_repository),
        save_case=SaveOrderUseCase(order_repository),
        track_case=TrackOrderUseCase(order_repository),
        update_status_case=UpdateOrderStatusUseCase(order_repository),
        advance_case=AdvanceOrderStatusUseCase(order_repository),
        cancel_case=CancelOrderUseCase(order_repository),
        statistics_case=GetOrderStatisticsUseCase(order_repository),
        report_case=GetSalesReportUseCase(order_repository),
        preview_number_case=PreviewOrderNumberUseCase(number_authority),
    )

    # Configurar CORS
    CORS(app, resources={
        r"/*": {
            "origins": config.CORS_ORIGINS,
            "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "X-Requested-With"]
        }
    })

    # 3. Capa de Presentación (Web)
    app.register_blueprint(api_bp, url_prefix='/orders')

    # --- Ruta de control ---
    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=8080, debug=False)
