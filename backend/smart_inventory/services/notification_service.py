# Overview: Service-layer operations for in-app notifications (creation and unread reads).

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotificationDeliveryError
from ..extensions import db
from ..models import Notification
from ..models.communications import TYPE_INFO, VALID_NOTIFICATION_TYPES

logger = logging.getLogger(__name__)


def create_notification(shop_id: int, message: str, type_: str = TYPE_INFO) -> Notification:
    """
    Create and commit a notification for a shop.

    Runs outside any stock unit of work (after its commit). Raises
    NotificationDeliveryError if the row cannot be saved; the session is
    rolled back first so the caller can keep using it.
    """
    if type_ not in VALID_NOTIFICATION_TYPES:
        raise ValueError(f"type must be one of: {', '.join(sorted(VALID_NOTIFICATION_TYPES))}")

    notification = Notification(shop_id=shop_id, message=message, type=type_)
    try:
        db.session.add(notification)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise NotificationDeliveryError(f"Failed to create notification for shop {shop_id}") from exc

    logger.info("Notification created: [%s] %s", type_, message)
    return notification


def get_unread_notifications(shop_id: int, limit: int = 10) -> list[Notification]:
    return (
        db.session.query(Notification)
        .filter(Notification.shop_id == shop_id, Notification.is_read.is_(False))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def get_unread_count(shop_id: int) -> int:
    return (
        db.session.query(Notification)
        .filter(Notification.shop_id == shop_id, Notification.is_read.is_(False))
        .count()
    )
