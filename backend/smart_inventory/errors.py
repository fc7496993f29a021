# Overview: Error taxonomy for stock mutation, checkout and alert delivery.

"""
Stock consistency errors.

Every StockError raised inside a unit of work forces a full rollback of that
unit. The HTTP layer renders them as {"error": message, "details": details}
with the carried status_code.

NotificationDeliveryError is NOT a StockError: it is raised only
by the alert sinks and is always swallowed (and logged) by the dispatcher.
"""
from __future__ import annotations


class StockError(Exception):
    """Base class for caller-visible stock failures."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(StockError):
    """Wrong tenant or nonexistent id. Both cases look identical to the caller."""
    status_code = 404


class InsufficientStockError(StockError):
    status_code = 409

    def __init__(
        self,
        *,
        product_id: int,
        product_name: str,
        available: int,
        requested: int,
    ):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "available": available,
                "requested": requested,
            },
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class InvalidQuantityError(StockError):
    pass


class InvalidDirectionError(StockError):
    pass


class InvalidCartLineError(StockError):
    pass


class EmptyCartError(StockError):
    pass


class PersistenceError(StockError):
    """Storage failure, including lock timeouts and exhausted retries."""
    status_code = 503


class NotificationDeliveryError(Exception):
    """An alert sink (email or in-app) could not deliver."""
