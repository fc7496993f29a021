# Overview: Service-layer operations for the stock movement audit trail.

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceError
from ..extensions import db
from ..models import Product, StockMovement, User

"""
Stock Movement Invariants (authoritative)

- Append-only: rows are inserted, never updated or deleted.
- One row per successful stock mutation, carrying the same signed delta.
- Inside a unit of work the insert shares the transaction with the stock
  update; a failed insert raises PersistenceError so the caller rolls back
  both (stock change + audit row are all-or-nothing).
- Standalone (no enclosing unit of work; only the initial-stock-on-creation
  path) the insert commits on its own and a failure is logged and swallowed:
  the product already exists and a missing first row is a cosmetic gap.
- Every read is filtered by shop_id.
"""

logger = logging.getLogger(__name__)

HISTORY_PAGE_SIZE = 20


def record_stock_movement(
    *,
    shop_id: int,
    product_id: int,
    quantity_change: int,
    reason: str,
    user_id: int | None = None,
    notes: str | None = None,
    in_transaction: bool = True,
) -> StockMovement | None:
    """
    Append one StockMovement row.

    in_transaction=True: flush into the caller's unit of work (no commit).
    in_transaction=False: commit immediately; failures are logged and None is
    returned.
    """
    movement = StockMovement(
        shop_id=shop_id,
        product_id=product_id,
        quantity_change=quantity_change,
        reason=reason,
        notes=notes,
        user_id=user_id,
    )

    if in_transaction:
        try:
            db.session.add(movement)
            db.session.flush()
        except SQLAlchemyError as exc:
            logger.error("Failed to record stock movement for product %s: %s", product_id, exc)
            raise PersistenceError("Failed to record stock movement") from exc
    else:
        try:
            db.session.add(movement)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception(
                "Failed to record standalone stock movement for product %s (%+d, %s)",
                product_id, quantity_change, reason,
            )
            return None

    logger.info(
        "Stock movement recorded: product %s, %+d (%s)",
        product_id, quantity_change, reason,
    )
    return movement


def _movement_row(movement: StockMovement, user_email: str | None, **extra) -> dict:
    row = movement.to_dict()
    row["user_email"] = user_email
    row.update(extra)
    return row


def get_stock_history(product_id: int, shop_id: int, limit: int = HISTORY_PAGE_SIZE) -> list[dict]:
    """Newest-first movements for one product, with the actor's email."""
    rows = (
        db.session.query(StockMovement, User.email)
        .outerjoin(User, StockMovement.user_id == User.id)
        .filter(
            StockMovement.product_id == product_id,
            StockMovement.shop_id == shop_id,
        )
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .limit(limit)
        .all()
    )
    return [_movement_row(m, email) for m, email in rows]


def list_shop_movements(shop_id: int, page: int = 1, per_page: int = HISTORY_PAGE_SIZE) -> dict:
    """
    Shop-wide movement history with product name/sku and actor email.

    Returns:
        Dict with 'items' and 'pagination' metadata.
    """
    page = max(page, 1)

    total = db.session.query(StockMovement).filter(StockMovement.shop_id == shop_id).count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    rows = (
        db.session.query(StockMovement, Product.name, Product.sku, User.email)
        .outerjoin(Product, StockMovement.product_id == Product.id)
        .outerjoin(User, StockMovement.user_id == User.id)
        .filter(StockMovement.shop_id == shop_id)
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return {
        "items": [
            _movement_row(m, email, product_name=name, product_sku=sku)
            for m, name, sku, email in rows
        ],
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def movement_total(product_id: int, shop_id: int) -> int:
    """Sum of quantity_change for a product; used for reconciliation checks."""
    total = (
        db.session.query(db.func.coalesce(db.func.sum(StockMovement.quantity_change), 0))
        .filter(
            StockMovement.product_id == product_id,
            StockMovement.shop_id == shop_id,
        )
        .scalar()
    )
    return int(total or 0)
