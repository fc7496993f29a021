# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import jsonify, g, session

from .extensions import db
from .models import User


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'shop_id')


def require_tenant(f):
    """
    Require an authenticated user and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.shop_id: The user's shop (tenant context) - REQUIRED

    The user id is read from the signed session cookie written by the login
    flow. Returns 401 if it is missing or names no user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = session.get("user_id")
        if not user_id:
            return jsonify({"error": "Authentication required"}), 401

        user = db.session.get(User, user_id)
        if user is None:
            session.pop("user_id", None)
            return jsonify({"error": "Invalid session"}), 401

        g.current_user = user
        g.shop_id = user.shop_id

        return f(*args, **kwargs)

    return decorated_function


def restrict_to(*roles: str):
    """
    Require one of the given roles. Must be applied after @require_tenant.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.current_user.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": sorted(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
