# Overview: Service-layer operations for stock mutation; the only writer of Product.stock_quantity.

# backend/smart_inventory/services/stock_service.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..errors import (
    InsufficientStockError,
    InvalidDirectionError,
    InvalidQuantityError,
    NotFoundError,
)
from ..extensions import db
from ..models import Product
from .alert_service import AlertIntent, AlertOutbox, dispatch_alerts, evaluate_alert
from .concurrency import lock_for_update, run_in_unit_of_work
from .stock_movement_service import record_stock_movement
from .tenant_service import get_shop_owner_email
"""
Stock Invariants & Locking (authoritative)

- stock_quantity never goes negative; a mutation that would make it negative
  aborts its whole unit of work with InsufficientStockError.
- Every mutation locks the product row scoped by (id, shop_id) before reading
  the current quantity and holds the lock until the unit commits or rolls
  back. Concurrent mutators of one product serialize; different products
  never contend.
- A row in another shop is indistinguishable from a missing row (NotFound).
- Quantity, alert flag and the matching StockMovement are written in the same
  unit of work.
- Alert side effects are queued on the caller's AlertOutbox and dispatched
  only after commit.
"""

logger = logging.getLogger(__name__)

DIRECTION_ADD = "add"
DIRECTION_REMOVE = "remove"
VALID_DIRECTIONS = {DIRECTION_ADD, DIRECTION_REMOVE}

DEFAULT_REASONS = {
    DIRECTION_ADD: "Restock",
    DIRECTION_REMOVE: "Sale",
}


@dataclass
class StockMutation:
    """Outcome of one apply_delta call."""
    product_id: int
    product_name: str
    unit_price_cents: int
    previous_quantity: int
    new_quantity: int
    movement_recorded: bool
    alerts_triggered: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "previous_quantity": self.previous_quantity,
            "new_quantity": self.new_quantity,
            "movement_recorded": self.movement_recorded,
            "alerts_triggered": list(self.alerts_triggered),
        }


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _lock_product(shop_id: int, product_id: int) -> Product:
    query = db.session.query(Product).filter(
        Product.id == product_id,
        Product.shop_id == shop_id,
    )
    product = lock_for_update(query).first()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found", details={"product_id": product_id})
    return product


def apply_delta(
    *,
    shop_id: int,
    product_id: int,
    delta: int,
    reason: str,
    actor_user_id: int | None,
    outbox: AlertOutbox,
    owner_email: str | None = None,
    notes: str | None = None,
) -> StockMutation:
    """
    Apply a signed quantity change to one product inside the caller's unit
    of work (see concurrency.run_in_unit_of_work). Does not commit.

    owner_email is the alert recipient resolved once by the caller; None
    means the shop has no owner email and only in-app notifications go out.
    """
    if not _is_int(delta) or delta == 0:
        raise InvalidQuantityError("Quantity change must be a non-zero integer", details={"delta": delta})

    product = _lock_product(shop_id, product_id)

    previous_quantity = product.stock_quantity
    new_quantity = previous_quantity + delta
    if new_quantity < 0:
        raise InsufficientStockError(
            product_id=product.id,
            product_name=product.name,
            available=previous_quantity,
            requested=-delta,
        )

    decision = evaluate_alert(previous_quantity, new_quantity, product.low_stock_alert_sent)

    product.stock_quantity = new_quantity
    product.low_stock_alert_sent = decision.new_flag
    db.session.flush()

    record_stock_movement(
        shop_id=shop_id,
        product_id=product.id,
        quantity_change=delta,
        reason=reason,
        user_id=actor_user_id,
        notes=notes,
        in_transaction=True,
    )

    alerts: list[str] = []
    if decision.event:
        outbox.add(
            AlertIntent(
                shop_id=shop_id,
                product_id=product.id,
                product_name=product.name,
                event=decision.event,
                current_stock=new_quantity,
                recipient_email=owner_email,
            )
        )
        alerts.append(decision.event)

    return StockMutation(
        product_id=product.id,
        product_name=product.name,
        unit_price_cents=product.price_cents,
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
        movement_recorded=True,
        alerts_triggered=alerts,
    )


def adjust_stock(
    *,
    shop_id: int,
    product_id: int,
    actor_user_id: int | None,
    direction: str,
    quantity: int,
    reason: str | None = None,
    notes: str | None = None,
) -> StockMutation:
    """
    Manual single-product adjustment (restock, shrink, correction).

    Opens and commits its own unit of work, then dispatches any alerts.

    Raises:
        InvalidQuantityError: quantity is not a positive integer
        InvalidDirectionError: direction is not 'add' or 'remove'
        NotFoundError: product missing or in another shop
        InsufficientStockError: 'remove' would make stock negative
        PersistenceError: storage failure (nothing persisted)
    """
    if not _is_int(quantity) or quantity <= 0:
        raise InvalidQuantityError("Invalid quantity", details={"quantity": quantity})

    if direction not in VALID_DIRECTIONS:
        raise InvalidDirectionError("Invalid adjustment type", details={"direction": direction})

    delta = quantity if direction == DIRECTION_ADD else -quantity
    reason = (reason or "").strip() or DEFAULT_REASONS[direction]
    notes = (notes or "").strip() or None

    def _op():
        outbox = AlertOutbox()
        owner_email = get_shop_owner_email(shop_id)
        mutation = apply_delta(
            shop_id=shop_id,
            product_id=product_id,
            delta=delta,
            reason=reason,
            actor_user_id=actor_user_id,
            outbox=outbox,
            owner_email=owner_email,
            notes=notes,
        )
        return mutation, outbox

    mutation, outbox = run_in_unit_of_work(_op)

    logger.info(
        "Stock adjusted: shop %s product %s %+d (%s) -> %d",
        shop_id, product_id, delta, reason, mutation.new_quantity,
    )
    dispatch_alerts(outbox)
    return mutation
