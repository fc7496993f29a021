# Overview: Flask API routes for POS checkout; parses input and returns JSON responses.

# backend/smart_inventory/routes/pos.py
"""POS checkout route. Any role in the shop may ring up a sale."""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import StockError
from ..services import sales_service
from ..decorators import require_tenant


pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


def _normalize_cart(cart):
    """
    Accept the client's camelCase keys (productId, qty) alongside snake_case.

    Anything that is not a list of dicts is passed through untouched so the
    service reports it.
    """
    if not isinstance(cart, list):
        return cart

    normalized = []
    for item in cart:
        if not isinstance(item, dict):
            normalized.append(item)
            continue
        normalized.append({
            "product_id": item.get("product_id", item.get("productId")),
            "quantity": item.get("quantity", item.get("qty")),
        })
    return normalized


@pos_bp.post("/checkout")
@require_tenant
def checkout_route():
    """
    Process a sale atomically.

    Body: {"cart": [{"product_id": 1, "quantity": 2}, ...]}

    Every line is decremented or none is. The first failing line is
    reported, e.g. 409 "Insufficient stock for Widget. Available: 1".
    """
    data = request.get_json(silent=True) or {}
    cart = _normalize_cart(data.get("cart"))

    try:
        receipt = sales_service.checkout(g.shop_id, g.current_user.id, cart)
    except StockError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "success": True,
        "message": "Sale processed successfully",
        "sale": receipt.to_dict(),
    }), 200
