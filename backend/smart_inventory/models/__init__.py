from .tenancy import Shop
from .auth import User
from .inventory import Product, StockMovement
from .communications import Notification

__all__ = [
    'Shop',
    'User',
    'Product', 'StockMovement',
    'Notification',
]
