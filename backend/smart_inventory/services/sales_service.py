"""
POS Checkout Service

WHY: A sale is one atomic unit of work over the whole cart. Either every line
is decremented (with its audit row) or nothing is; a failure on any line
rolls back lines already processed in the same cart.

- Lines are processed strictly in submission order, so the first failing line
  is the one reported.
- Each line goes through stock_service.apply_delta (row lock, negative-stock
  guard, alert flag, audit row); there is no separate sale-specific write path.
- Line prices are read from the locked product row, so a concurrent price edit
  cannot tear the total.
- Alerts queued by any line are dispatched only after the commit.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from ..errors import EmptyCartError, InvalidCartLineError
from ..money import apply_rate_bps, format_cents
from ..time_utils import utcnow, to_utc_z
from .alert_service import AlertOutbox, dispatch_alerts
from .concurrency import run_in_unit_of_work
from .stock_service import apply_delta
from .tenant_service import get_shop_owner_email

logger = logging.getLogger(__name__)

TAX_RATE_BPS = 1000  # 10%
SALE_REASON = "POS Sale"


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int


@dataclass
class ReceiptLine:
    product_id: int
    product_name: str
    quantity: int
    unit_price_cents: int
    line_total_cents: int

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": format_cents(self.unit_price_cents),
            "total": format_cents(self.line_total_cents),
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }


@dataclass
class SaleReceipt:
    items: list[ReceiptLine]
    subtotal_cents: int
    tax_cents: int
    grand_total_cents: int
    timestamp: datetime
    alerts_triggered: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "subtotal": format_cents(self.subtotal_cents),
            "tax": format_cents(self.tax_cents),
            "grand_total": format_cents(self.grand_total_cents),
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "grand_total_cents": self.grand_total_cents,
            "timestamp": to_utc_z(self.timestamp),
        }


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _parse_cart_line(raw, index: int) -> CartLine:
    if isinstance(raw, CartLine):
        product_id, quantity = raw.product_id, raw.quantity
    elif isinstance(raw, dict):
        product_id, quantity = raw.get("product_id"), raw.get("quantity")
    else:
        raise InvalidCartLineError("Invalid cart item", details={"line": index})

    if not _is_positive_int(product_id) or not _is_positive_int(quantity):
        raise InvalidCartLineError(
            "Invalid cart item",
            details={"line": index, "product_id": product_id, "quantity": quantity},
        )
    return CartLine(product_id=product_id, quantity=quantity)


def checkout(shop_id: int, actor_user_id: int | None, cart_lines) -> SaleReceipt:
    """
    Process a POS sale for a cart of {product_id, quantity} lines.

    Raises:
        EmptyCartError: cart missing, not a list, or empty
        InvalidCartLineError: a line lacks a positive product_id/quantity
        NotFoundError: a product is missing or in another shop
        InsufficientStockError: a line asks for more than is on hand
        PersistenceError: storage failure (nothing persisted)
    """
    if not isinstance(cart_lines, (list, tuple)) or not cart_lines:
        raise EmptyCartError("Cart is empty")

    def _op():
        outbox = AlertOutbox()
        owner_email = get_shop_owner_email(shop_id)

        items: list[ReceiptLine] = []
        alerts: list[str] = []
        subtotal_cents = 0

        for index, raw in enumerate(cart_lines):
            line = _parse_cart_line(raw, index)
            mutation = apply_delta(
                shop_id=shop_id,
                product_id=line.product_id,
                delta=-line.quantity,
                reason=SALE_REASON,
                actor_user_id=actor_user_id,
                outbox=outbox,
                owner_email=owner_email,
            )

            line_total = mutation.unit_price_cents * line.quantity
            subtotal_cents += line_total
            alerts.extend(mutation.alerts_triggered)
            items.append(
                ReceiptLine(
                    product_id=mutation.product_id,
                    product_name=mutation.product_name,
                    quantity=line.quantity,
                    unit_price_cents=mutation.unit_price_cents,
                    line_total_cents=line_total,
                )
            )

        tax_cents = apply_rate_bps(subtotal_cents, TAX_RATE_BPS)
        receipt = SaleReceipt(
            items=items,
            subtotal_cents=subtotal_cents,
            tax_cents=tax_cents,
            grand_total_cents=subtotal_cents + tax_cents,
            timestamp=utcnow(),
            alerts_triggered=alerts,
        )
        return receipt, outbox

    receipt, outbox = run_in_unit_of_work(_op)

    logger.info(
        "Sale completed: shop %s, %d line(s), grand total %s",
        shop_id, len(receipt.items), format_cents(receipt.grand_total_cents),
    )
    dispatch_alerts(outbox)
    return receipt
