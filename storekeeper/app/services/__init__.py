# storekeeper/app/services/__init__.py
"""
Services layer for cart and inventory mutations.
Keeps tool handlers thin and the store logic testable on its own.
"""

from storekeeper.app.services.cart import CartService
from storekeeper.app.services.inventory import (
    InventoryService,
    InventoryServiceError,
    ItemNotFoundError,
    DuplicateItemError,
    InvalidStockError,
)

__all__ = [
    "CartService",
    "InventoryService",
    "InventoryServiceError",
    "ItemNotFoundError",
    "DuplicateItemError",
    "InvalidStockError",
]
