"""
Multi-Tenant Service: tenant context and shop-scoped lookups.

SECURITY INVARIANTS:
1. Every authenticated request has g.shop_id set (see decorators.require_tenant)
2. Queries touching shop-owned data filter by shop_id
3. A row in another shop is reported exactly like a missing row
"""

from __future__ import annotations

from ..extensions import db
from ..models import Shop, User
from ..models.auth import ROLE_OWNER


def get_shop(shop_id: int) -> Shop | None:
    return db.session.get(Shop, shop_id)


def get_shop_owner_email(shop_id: int) -> str | None:
    """
    Email of the shop's owner, the only recipient of stock alerts.

    Staff and managers who perform the sale are never recipients.
    """
    row = (
        db.session.query(User.email)
        .filter(User.shop_id == shop_id, User.role == ROLE_OWNER)
        .order_by(User.id.asc())
        .first()
    )
    return row[0] if row else None


def create_shop(name: str) -> Shop:
    name = (name or "").strip()
    if not name:
        raise ValueError("Shop name is required")

    shop = Shop(name=name)
    db.session.add(shop)
    db.session.commit()
    return shop


def list_shops() -> list[Shop]:
    return db.session.query(Shop).order_by(Shop.id.asc()).all()
