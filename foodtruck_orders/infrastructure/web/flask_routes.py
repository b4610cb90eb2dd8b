from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from flask import Blueprint, jsonify, request, current_app

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
from foodtruck_orders.domain.entities import Order, OrderItem, ORDER_STATUSES, validate_total
from foodtruck_orders.domain.order_aliases import normalize_order_payload, normalize_status
from foodtruck_orders.domain import status_flow


def _parse_items(raw_items: List[Dict[str, Any]]) -> List[OrderItem]:
    return [OrderItem.from_dict(item) for item in raw_items]


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def serialize_order(order: Order) -> Dict[str, Any]:
    data = order.to_dict()
    data["statusLabel"] = order.status_label
    return data


def create_api_blueprint(
    checkout_case: CheckoutOrderUseCase,
    list_case: ListOrdersUseCase,
    get_case: GetOrderUseCase,
    save_case: SaveOrderUseCase,
    track_case: TrackOrderUseCase,
    update_status_case: UpdateOrderStatusUseCase,
    advance_case: AdvanceOrderStatusUseCase,
    cancel_case: CancelOrderUseCase,
    statistics_case: GetOrderStatisticsUseCase,
    report_case: GetSalesReportUseCase,
    preview_number_case: PreviewOrderNumberUseCase
):
    """
    Función de fábrica para inyectar los Casos de Uso en el Blueprint.
    Crea un nuevo Blueprint en cada llamada para evitar conflictos en tests.
    """
    api_bp = Blueprint('orders_api', __name__)

    @api_bp.route('/', methods=['GET'])
    def list_orders():
        """Pedidos en orden de número ascendente. Filtros: ?status= y ?q="""
        status = request.args.get('status')
        if status is not None:
            status = normalize_status(status)
            if status is None:
                return jsonify({"error": f"status must be one of {list(ORDER_STATUSES)}"}), 400

        orders = list_case.execute(status=status, search=request.args.get('q'))
        return jsonify({"orders": [serialize_order(order) for order in orders]}), 200

    @api_bp.route('/', methods=['POST'])
    def checkout():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON body is required"}), 400

        data = normalize_order_payload(data)

        # Validaciones mínimas
        if not data.get("customerName") or not data.get("customerPhone"):
            return jsonify({"error": "customerName and customerPhone are required"}), 400
        if not data.get("items"):
            return jsonify({"error": "items must contain at least one product"}), 400

        try:
            items = _parse_items(data["items"])
        except (KeyError, TypeError, ValueError) as e:
            return jsonify({"error": f"Invalid items: {e}"}), 400

        try:
            total = validate_total(data["total"]) if data.get("total") is not None else None
        except (TypeError, ValueError) as e:
            return jsonify({"error": f"Invalid total: {e}"}), 400

        order = checkout_case.execute(
            customer_name=data["customerName"],
            customer_phone=data["customerPhone"],
            items=items,
            total=total,
            customer_email=data.get("customerEmail"),
            delivery_address=data.get("deliveryAddress"),
            notes=data.get("notes"),
            payment_method=data.get("paymentMethod"),
            customer_id=data.get("customerId"),
        )
        if order is None:
            return jsonify({"message": "No fue posible registrar el pedido."}), 500

        return jsonify(serialize_order(order)), 201

    @api_bp.route('/statistics', methods=['GET'])
    def get_statistics():
        return jsonify(statistics_case.execute()), 200

    @api_bp.route('/next-number', methods=['GET'])
    def preview_next_number():
        return jsonify({"next_number": preview_number_case.execute()}), 200

    @api_bp.route('/reports/sales', methods=['GET'])
    def get_sales_report():
        try:
            start = _parse_datetime(request.args.get('start'))
            end = _parse_datetime(request.args.get('end'))
        except ValueError as e:
            return jsonify({"error": f"Invalid date: {e}"}), 400

        return jsonify(report_case.execute(start=start, end=end)), 200

    @api_bp.route('/track/<number>', methods=['GET'])
    def track_order(number):
        """Seguimiento por número público: /track/0007"""
        tracking = track_case.execute(number)
        if tracking is None:
            return jsonify({"message": "Pedido no encontrado."}), 404

        return jsonify({
            "order": serialize_order(tracking["order"]),
            "steps": tracking["steps"],
            "current_step": tracking["current_step"],
        }), 200

    @api_bp.route('/<order_id>', methods=['GET'])
    def get_order(order_id):
        order = get_case.execute(order_id)
        if order is None:
            return jsonify({"message": "Pedido no encontrado."}), 404
        return jsonify(serialize_order(order)), 200

    @api_bp.route('/<order_id>', methods=['PUT'])
    def save_order(order_id):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON body is required"}), 400

        data = normalize_order_payload(data)
        data["id"] = order_id
        try:
            order = Order.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            return jsonify({"error": f"Invalid order: {e}"}), 400

        if not save_case.execute(order):
            current_app.logger.error(f"No se pudo guardar el pedido {order_id}")
            return jsonify({"message": "No fue posible guardar el pedido."}), 500

        return jsonify(serialize_order(order)), 200

    @api_bp.route('/<order_id>/status', methods=['PATCH'])
    def update_status(order_id):
        data = request.get_json(silent=True) or {}
        new_status = normalize_status(data.get("status"))
        if new_status is None:
            return jsonify({"error": f"status must be one of {list(ORDER_STATUSES)}"}), 400

        if get_case.execute(order_id) is None:
            return jsonify({"message": "Pedido no encontrado."}), 404

        if not update_status_case.execute(order_id, new_status):
            current_app.logger.error(f"No se pudo actualizar el estado del pedido {order_id}")
            return jsonify({"message": "No fue posible actualizar el estado."}), 500

        return jsonify({"id": order_id, "status": new_status}), 200

    @api_bp.route('/<order_id>/advance', methods=['POST'])
    def advance_status(order_id):
        order, new_status = advance_case.execute(order_id)
        if order is None:
            return jsonify({"message": "Pedido no encontrado."}), 404
        if new_status is None:
            if status_flow.is_terminal(order.status):
                return jsonify({"message": f"El pedido ya está en estado final ({order.status})."}), 409
            return jsonify({"message": "No fue posible actualizar el estado."}), 500

        return jsonify(serialize_order(order)), 200

    @api_bp.route('/<order_id>/cancel', methods=['POST'])
    def cancel_order(order_id):
        order, changed = cancel_case.execute(order_id)
        if order is None:
            return jsonify({"message": "Pedido no encontrado."}), 404
        if not changed:
            if not status_flow.can_cancel(order.status):
                return jsonify({"message": f"El pedido ya está en estado final ({order.status})."}), 409
            return jsonify({"message": "No fue posible cancelar el pedido."}), 500

        return jsonify(serialize_order(order)), 200

    return api_bp
