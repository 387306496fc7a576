# storekeeper/app/services/inventory.py
"""
Inventory service - catalog records and stock levels.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update
from typing import List, Dict, Any, Optional

from storekeeper.app.core.clock import utcnow
from storekeeper.app.core.constants import (
    CATEGORY_ALL,
    DEFAULT_LOW_STOCK_THRESHOLD,
    SORT_BY_NAME,
    SORT_BY_PRICE,
)
from storekeeper.app.core.database import insert_for, contains_case_sensitive
from storekeeper.app.core.exceptions import ServiceError
from storekeeper.app.models.inventory import InventoryItem


class InventoryServiceError(ServiceError):
    """Base exception for inventory service errors."""


class ItemNotFoundError(InventoryServiceError):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__("Item not found", 404)


class DuplicateItemError(InventoryServiceError):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__("Item with this ID already exists", 409)


class InvalidStockError(InventoryServiceError):
    def __init__(self, stock: int):
        self.stock = stock
        super().__init__("Stock cannot be negative", 400)


class InventoryService:
    """Service class for inventory item operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_items(
        self,
        category: Optional[str] = None,
        sort_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        List catalog items.

        Args:
            category: Case-sensitive substring of the item category.
                None or "all" disables the filter.
            sort_by: "price" or "name" (ascending); anything else sorts by
                creation time, newest first.
            limit: Maximum number of items, applied after sorting.
        """
        query = select(InventoryItem)
        if category and category != CATEGORY_ALL:
            query = query.where(contains_case_sensitive(self.session, InventoryItem.category, category))

        if sort_by == SORT_BY_PRICE:
            query = query.order_by(InventoryItem.price.asc(), InventoryItem.id)
        elif sort_by == SORT_BY_NAME:
            query = query.order_by(InventoryItem.name.asc(), InventoryItem.id)
        else:
            query = query.order_by(InventoryItem.created_at.desc(), InventoryItem.id)

        if limit:
            query = query.limit(limit)

        result = await self.session.execute(query.execution_options(populate_existing=True))
        return [item.to_dict() for item in result.scalars().all()]

    async def get_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        """Point lookup. Returns None when the item does not exist."""
        item = await self.session.get(InventoryItem, item_id, populate_existing=True)
        return item.to_dict() if item else None

    async def create_item(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a new item. The existing record is left untouched when the id is taken.

        Raises:
            DuplicateItemError: an item with this id already exists
        """
        now = utcnow()
        values = {**data, "created_at": now, "updated_at": now}
        if values.get("stock") is None:
            values["stock"] = 0
        if values["stock"] < 0:
            raise InvalidStockError(values["stock"])

        stmt = (
            insert_for(self.session, InventoryItem)
            .values(**values)
            .on_conflict_do_nothing(index_elements=[InventoryItem.id])
            .returning(InventoryItem.id)
        )
        result = await self.session.execute(stmt)
        inserted = result.scalar_one_or_none()
        if inserted is None:
            await self.session.rollback()
            raise DuplicateItemError(data["id"])
        await self.session.commit()
        return {"success": True, "message": "Item created successfully"}

    async def update_item(self, item_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge the supplied fields into the item and refresh updated_at.
        Fields absent from `changes` keep their values.

        Raises:
            ItemNotFoundError: no item with this id
            InvalidStockError: `changes` sets a negative stock
        """
        if changes.get("stock") is not None and changes["stock"] < 0:
            raise InvalidStockError(changes["stock"])

        result = await self.session.execute(
            update(InventoryItem)
            .where(InventoryItem.id == item_id)
            .values(**changes, updated_at=utcnow())
        )
        if not result.rowcount:
            await self.session.rollback()
            raise ItemNotFoundError(item_id)
        await self.session.commit()
        return {"success": True, "message": "Item updated successfully"}

    async def delete_item(self, item_id: str) -> Dict[str, Any]:
        result = await self.session.execute(
            delete(InventoryItem).where(InventoryItem.id == item_id)
        )
        if not result.rowcount:
            await self.session.rollback()
            raise ItemNotFoundError(item_id)
        await self.session.commit()
        return {"success": True, "message": "Item deleted successfully"}

    async def update_stock(self, item_id: str, stock: int) -> Dict[str, Any]:
        """
        Overwrite the stock level.

        Raises:
            ItemNotFoundError: no item with this id (checked first)
            InvalidStockError: stock < 0; the stored level is unchanged
        """
        if stock < 0:
            if await self.session.get(InventoryItem, item_id) is None:
                raise ItemNotFoundError(item_id)
            raise InvalidStockError(stock)

        result = await self.session.execute(
            update(InventoryItem)
            .where(InventoryItem.id == item_id)
            .values(stock=stock, updated_at=utcnow())
        )
        if not result.rowcount:
            await self.session.rollback()
            raise ItemNotFoundError(item_id)
        await self.session.commit()
        return {"success": True, "message": "Stock updated successfully"}

    async def get_low_stock_items(self, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> List[Dict[str, Any]]:
        """Items with stock at or below `threshold`, lowest stock first."""
        result = await self.session.execute(
            select(InventoryItem)
            .where(InventoryItem.stock <= threshold)
            .order_by(InventoryItem.stock.asc(), InventoryItem.name.asc())
            .execution_options(populate_existing=True)
        )
        return [item.to_dict() for item in result.scalars().all()]

    async def search_items(self, query: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring search on item name, sorted by name."""
        result = await self.session.execute(
            select(InventoryItem)
            .where(InventoryItem.name.icontains(query, autoescape=True))
            .order_by(InventoryItem.name.asc())
            .execution_options(populate_existing=True)
        )
        return [item.to_dict() for item in result.scalars().all()]
