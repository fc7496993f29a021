# Overview: Service-layer operations for user accounts; password hashing and creation.

"""
User account service.

WHY: Every stock movement must be attributable to a user, and the shop owner
is the recipient of stock alerts. Uses bcrypt for password hashing.

MULTI-TENANT: Users belong to exactly one shop (shop_id). Email is globally
unique so a login resolves to exactly one tenant.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Login and session issuance live outside this service
"""

import bcrypt
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Shop, User
from ..models.auth import VALID_ROLES, ROLE_STAFF


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class UserCreationError(Exception):
    """Raised when a user cannot be created (unknown shop, bad role, duplicate email)."""
    pass


def validate_password_strength(password: str) -> None:
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def create_user(shop_id: int, email: str, password: str, role: str = ROLE_STAFF) -> User:
    """
    Create a user in a shop with a bcrypt-hashed password.

    Raises:
        PasswordValidationError: password too weak
        UserCreationError: unknown shop, invalid role or email already taken
    """
    email = (email or "").strip().lower()
    if not email:
        raise UserCreationError("Email is required")

    if role not in VALID_ROLES:
        raise UserCreationError(f"Role must be one of: {', '.join(sorted(VALID_ROLES))}")

    if db.session.get(Shop, shop_id) is None:
        raise UserCreationError(f"Shop {shop_id} not found")

    user = User(
        shop_id=shop_id,
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise UserCreationError(f"Email {email} is already registered") from exc

    return user
