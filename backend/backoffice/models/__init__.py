# Overview: Model registry; importing this package registers every table on db.metadata.

from .users import User
from .catalog import Product, Stock, StockHistory, ImmutableRecordError
from .orders import Order, OrderItem, ScannedOrder
from .finance import Charge, AdsCost, Salary

__all__ = [
    "User",
    "Product",
    "Stock",
    "StockHistory",
    "ImmutableRecordError",
    "Order",
    "OrderItem",
    "ScannedOrder",
    "Charge",
    "AdsCost",
    "Salary",
]
