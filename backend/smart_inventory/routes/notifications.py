# Overview: Flask API routes for in-app notifications (read-only).

from flask import Blueprint, jsonify, g

from ..services.notification_service import get_unread_notifications, get_unread_count
from ..decorators import require_tenant

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("/unread")
@require_tenant
def unread_notifications():
    """Up to 10 newest unread notifications for the caller's shop, plus the total unread count."""
    notifications = get_unread_notifications(g.shop_id)
    return jsonify({
        "notifications": [n.to_dict() for n in notifications],
        "count": get_unread_count(g.shop_id),
    }), 200
