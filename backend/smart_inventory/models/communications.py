from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

TYPE_ALERT = "alert"
TYPE_WARNING = "warning"
TYPE_SUCCESS = "success"
TYPE_INFO = "info"
VALID_NOTIFICATION_TYPES = {TYPE_ALERT, TYPE_WARNING, TYPE_SUCCESS, TYPE_INFO}


class Notification(db.Model):
    """
    In-app notification shown in the shop's bell menu.

    Created by the stock alert dispatcher after a committed mutation.
    is_read is toggled elsewhere; nothing in the stock core reads or writes it
    after creation.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_shop_unread", "shop_id", "is_read"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(16), nullable=False, default=TYPE_INFO)  # alert, warning, success, info
    is_read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "message": self.message,
            "type": self.type,
            "is_read": self.is_read,
            "created_at": to_utc_z(self.created_at),
        }
