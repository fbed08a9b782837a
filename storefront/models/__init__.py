from .database import Base, Database, get_db
from .products import Product
from .orders import Order, OrderItem, OrderStatus

__all__ = [
    "Base",
    "Database",
    "get_db",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatus",
]
