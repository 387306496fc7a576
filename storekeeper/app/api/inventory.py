from typing import Any
from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storekeeper.app.api.deps import get_session
from storekeeper.app.api.tooling import ToolRegistry
from storekeeper.app.core.constants import INVENTORY_SERVER_NAME
from storekeeper.app.core.settings import get_settings
from storekeeper.app.schemas import (
    CreateItemInput,
    ItemIdInput,
    ListItemsInput,
    LowStockInput,
    SearchInput,
    StockUpdateInput,
    ToolListResponse,
    ToolResponse,
    UpdateItemInput,
)
from storekeeper.app.services.inventory import InventoryService

router = APIRouter()
tools = ToolRegistry(INVENTORY_SERVER_NAME, InventoryService)

ITEM_NOT_FOUND_TEXT = "Item not found"


@tools.tool(
    "listItems",
    ListItemsInput,
    'List items. category filters by substring ("all" for no filter); sortBy is price, name or created (newest first).',
)
async def list_items(service: InventoryService, data: ListItemsInput):
    return await service.list_items(category=data.category, sort_by=data.sort_by, limit=data.limit)


@tools.tool("getItem", ItemIdInput, "Get one item by id.", none_text=ITEM_NOT_FOUND_TEXT)
async def get_item(service: InventoryService, data: ItemIdInput):
    return await service.get_item(data.id)


@tools.tool("createItem", CreateItemInput, "Create an item with a new, unique id. Stock defaults to 0.")
async def create_item(service: InventoryService, data: CreateItemInput):
    return await service.create_item(data.model_dump())


@tools.tool("updateItem", UpdateItemInput, "Change some fields of an item; fields not sent are kept.")
async def update_item(service: InventoryService, data: UpdateItemInput):
    return await service.update_item(data.id, data.changes())


@tools.tool("deleteItem", ItemIdInput, "Delete an item by id.")
async def delete_item(service: InventoryService, data: ItemIdInput):
    return await service.delete_item(data.id)


@tools.tool("updateStock", StockUpdateInput, "Set the stock level of an item. Negative values are rejected.")
async def update_stock(service: InventoryService, data: StockUpdateInput):
    return await service.update_stock(data.id, data.stock)


@tools.tool(
    "getLowStockItems",
    LowStockInput,
    "Items with stock at or below the threshold (default 10), lowest stock first.",
)
async def get_low_stock_items(service: InventoryService, data: LowStockInput):
    threshold = data.threshold if data.threshold is not None else get_settings().LOW_STOCK_THRESHOLD
    return await service.get_low_stock_items(threshold)


@tools.tool("searchItems", SearchInput, "Find items whose name contains the query, sorted by name.")
async def search_items(service: InventoryService, data: SearchInput):
    return await service.search_items(data.query)


@router.get("", response_model=ToolListResponse)
async def list_inventory_tools():
    """Tool names, descriptions and input schemas of the inventory server."""
    return tools.describe()


@router.post("/{tool_name}", response_model=ToolResponse)
async def call_inventory_tool(
    tool_name: str,
    payload: Any = Body(default=None),
    session: AsyncSession = Depends(get_session),
):
    return await tools.call(tool_name, payload, session)
