# backend/smart_inventory/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: All product operations are shop-scoped.
- create_product creates in the caller's shop
- get_product and update_product treat another shop's product as missing

STOCK: stock_quantity is set once at creation (recorded as an "Initial Stock"
movement). Every later change goes through stock_service.
"""
from __future__ import annotations

import logging
import random
import string
import time

from sqlalchemy.exc import IntegrityError

from ..errors import NotFoundError
from ..extensions import db
from ..models import Product
from ..validation import ConflictError, ValidationError
from .concurrency import lock_for_update, run_in_unit_of_work
from .stock_movement_service import record_stock_movement

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"name", "description", "price_cents"}

SKU_ALPHABET = string.ascii_uppercase + string.digits
SKU_RANDOM_LENGTH = 6
MAX_SKU_RETRIES = 3
INITIAL_STOCK_REASON = "Initial Stock"


def generate_sku(name: str) -> str:
    """
    First three letters of the name (letters only, upper-cased, X-padded),
    a hyphen, then six random [A-Z0-9] characters.

        "iPhone 15" -> "IPH-9X2B4A"
    """
    letters = "".join(ch for ch in name if ch.isascii() and ch.isalpha())
    prefix = letters[:3].upper().ljust(3, "X")
    suffix = "".join(random.choice(SKU_ALPHABET) for _ in range(SKU_RANDOM_LENGTH))
    return f"{prefix}-{suffix}"


def _is_sku_collision(exc: IntegrityError) -> bool:
    return "sku" in str(exc.orig).lower()


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def create_product(*, shop_id: int, patch: dict, actor_user_id: int | None = None) -> Product:
    """
    Create product using a validated patch dict.

    A generated SKU that collides with an existing one is regenerated up to
    MAX_SKU_RETRIES times with a randomized backoff. An explicitly supplied
    SKU is never regenerated.

    Raises:
        ValidationError: missing name or negative initial stock
        ConflictError: SKU collision that could not be resolved
    """
    name = patch.get("name")
    if not name:
        raise ValidationError("name is required")

    initial_stock = patch.get("stock_quantity") or 0
    if initial_stock < 0:
        raise ValidationError("stock_quantity must be >= 0")

    explicit_sku = patch.get("sku")

    product = None
    for attempt in range(MAX_SKU_RETRIES + 1):
        product = Product(
            shop_id=shop_id,
            sku=explicit_sku or generate_sku(name),
            stock_quantity=initial_stock,
            low_stock_alert_sent=False,
        )
        apply_product_patch(product, patch)
        db.session.add(product)
        try:
            db.session.commit()
            break
        except IntegrityError as exc:
            db.session.rollback()
            if not _is_sku_collision(exc):
                raise ConflictError("A product with this information already exists") from exc
            if explicit_sku:
                raise ConflictError("SKU already exists.") from exc
            if attempt >= MAX_SKU_RETRIES:
                raise ConflictError("Failed to generate unique SKU. Please try again.") from exc
            logger.warning("SKU collision detected, retrying... (attempt %d)", attempt + 1)
            time.sleep(random.random() * 0.1 * (attempt + 1))

    if initial_stock > 0:
        record_stock_movement(
            shop_id=shop_id,
            product_id=product.id,
            quantity_change=initial_stock,
            reason=INITIAL_STOCK_REASON,
            user_id=actor_user_id,
            in_transaction=False,
        )

    logger.info("Product created: shop %s sku=%s name=%r", shop_id, product.sku, product.name)
    return product


def get_product(*, shop_id: int, product_id: int) -> Product:
    product = (
        db.session.query(Product)
        .filter(Product.id == product_id, Product.shop_id == shop_id)
        .first()
    )
    if product is None:
        raise NotFoundError(f"Product {product_id} not found", details={"product_id": product_id})
    return product


def update_product(*, shop_id: int, product_id: int, patch: dict) -> Product:
    """
    Update descriptive fields and price.

    Takes the same row lock as stock mutations, so a price change never lands
    in the middle of a checkout that already read the old price.
    """
    def _op():
        query = db.session.query(Product).filter(
            Product.id == product_id,
            Product.shop_id == shop_id,
        )
        product = lock_for_update(query).first()
        if product is None:
            raise NotFoundError(f"Product {product_id} not found", details={"product_id": product_id})
        apply_product_patch(product, patch)
        return product

    product = run_in_unit_of_work(_op)
    logger.info("Product updated: %s fields=%s", product_id, ", ".join(sorted(patch.keys())))
    return product
