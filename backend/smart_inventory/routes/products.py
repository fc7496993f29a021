# Overview: Flask API routes for products and manual stock adjustments; parses input and returns JSON responses.

# backend/smart_inventory/routes/products.py
"""
Product management routes with multi-tenant support.

MULTI-TENANT: All product operations are scoped to the caller's shop.
The shop_id is derived from g.shop_id (set by @require_tenant).

SECURITY: All routes require authentication.
- Create and update require the owner or manager role
- Reads, adjustments and history are open to every role in the shop
"""
from flask import Blueprint, request, g, jsonify, current_app

from ..errors import StockError
from ..models import Product
from ..models.auth import ROLE_OWNER, ROLE_MANAGER
from ..services import products_service, stock_service
from ..services.stock_movement_service import get_stock_history
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_tenant, restrict_to

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"sku", "name", "description", "price_cents", "stock_quantity"},
    required_on_create={"name"},
)

# No stock_quantity: stock only changes through /adjust and checkout
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.post("")
@require_tenant
@restrict_to(ROLE_OWNER, ROLE_MANAGER)
def create_product_route():
    """
    Create a new product in the caller's shop.

    SKU is generated from the name unless supplied. A positive
    stock_quantity is recorded as an "Initial Stock" movement.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = products_service.create_product(
            shop_id=g.shop_id,
            patch=patch,
            actor_user_id=g.current_user.id,
        )
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": product.to_dict()}), 201


@products_bp.get("/<int:product_id>")
@require_tenant
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(shop_id=g.shop_id, product_id=product_id)
    except StockError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code

    return jsonify({"product": product.to_dict()}), 200


@products_bp.patch("/<int:product_id>")
@require_tenant
@restrict_to(ROLE_OWNER, ROLE_MANAGER)
def update_product_route(product_id: int):
    """Update name, description or price. Stock is not writable here."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if not patch:
        return jsonify({"error": "No fields to update"}), 400

    try:
        product = products_service.update_product(
            shop_id=g.shop_id,
            product_id=product_id,
            patch=patch,
        )
    except StockError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": product.to_dict()}), 200


@products_bp.post("/<int:product_id>/adjust")
@require_tenant
def adjust_stock_route(product_id: int):
    """
    Manual stock adjustment.

    Body:
    - adjustment_type (or direction): "add" | "remove"
    - quantity: positive integer
    - reason: optional, defaults to "Restock" / "Sale"
    - notes: optional
    """
    data = request.get_json(silent=True) or {}
    direction = data.get("adjustment_type", data.get("direction"))
    quantity = data.get("quantity")
    # Form clients send quantities as strings
    if isinstance(quantity, str) and quantity.strip().isdecimal():
        quantity = int(quantity.strip())

    try:
        mutation = stock_service.adjust_stock(
            shop_id=g.shop_id,
            product_id=product_id,
            actor_user_id=g.current_user.id,
            direction=direction,
            quantity=quantity,
            reason=data.get("reason"),
            notes=data.get("notes"),
        )
    except StockError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "success": True,
        "message": "Stock adjusted successfully",
        "adjustment": mutation.to_dict(),
    }), 200


@products_bp.get("/<int:product_id>/history")
@require_tenant
def product_history_route(product_id: int):
    """Last 20 stock movements for one product, newest first."""
    try:
        products_service.get_product(shop_id=g.shop_id, product_id=product_id)
    except StockError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code

    history = get_stock_history(product_id, g.shop_id)
    return jsonify({"product_id": product_id, "history": history}), 200
