# Overview: Integer-cents money helpers shared by products and checkout.

from __future__ import annotations

from decimal import Decimal


def apply_rate_bps(amount_cents: int, rate_bps: int) -> int:
    """
    Apply a basis-point rate (1000 bps = 10%) to an amount in cents.

    Nearest-cent rounding, half-up (amounts are never negative here).
    """
    return (amount_cents * rate_bps + 5_000) // 10_000


def cents_to_decimal(amount_cents: int) -> Decimal:
    return (Decimal(amount_cents) / 100).quantize(Decimal("0.01"))


def format_cents(amount_cents: int | None) -> str | None:
    """999 -> "9.99"."""
    if amount_cents is None:
        return None
    return f"{cents_to_decimal(amount_cents):.2f}"
