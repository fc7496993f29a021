# Overview: Flask API routes for shop-wide stock movement history.

from flask import Blueprint, request, jsonify, g

from ..services.stock_movement_service import list_shop_movements
from ..decorators import require_tenant

stock_history_bp = Blueprint("stock_history", __name__, url_prefix="/api/stock-history")


@stock_history_bp.get("")
@require_tenant
def list_stock_history():
    """
    Shop-wide stock movements, newest first, 20 per page.

    Query params:
    - page: int (optional, default 1)
    """
    page = request.args.get("page", default=1, type=int)
    if page is None or page < 1:
        page = 1

    return jsonify(list_shop_movements(g.shop_id, page=page)), 200
