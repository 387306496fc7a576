from typing import Any
from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storekeeper.app.api.deps import get_session, get_user_id
from storekeeper.app.api.tooling import ToolRegistry
from storekeeper.app.core.constants import CART_SERVER_NAME
from storekeeper.app.schemas import (
    BulkCartInput,
    CartItemInput,
    CartQueryInput,
    CartUpdateInput,
    ToolListResponse,
    ToolResponse,
)
from storekeeper.app.services.cart import CartService

router = APIRouter()
tools = ToolRegistry(CART_SERVER_NAME, CartService)


@tools.tool("addToCart", CartItemInput, "Add an item to the cart; adds to the quantity if it is already there.")
async def add_to_cart(service: CartService, data: CartItemInput, user_id: str):
    return await service.add_item(user_id, data.item_id, data.quantity)


@tools.tool("removeFromCart", CartItemInput, "Remove a quantity of an item; the line is dropped when nothing is left.")
async def remove_from_cart(service: CartService, data: CartItemInput, user_id: str):
    return await service.remove_item(user_id, data.item_id, data.quantity)


@tools.tool("updateCartItem", CartUpdateInput, "Set the quantity of an item already in the cart (0 removes it).")
async def update_cart_item(service: CartService, data: CartUpdateInput, user_id: str):
    return await service.update_item(user_id, data.item_id, data.quantity)


@tools.tool("viewCart", CartQueryInput, "List the cart, most recently changed items first.")
async def view_cart(service: CartService, data: CartQueryInput, user_id: str):
    return await service.view_cart(user_id)


@tools.tool("clearCart", CartQueryInput, "Remove every item from the cart.")
async def clear_cart(service: CartService, data: CartQueryInput, user_id: str):
    return await service.clear_cart(user_id)


@tools.tool("getCartItemCount", CartQueryInput, "Total quantity and number of distinct items in the cart.")
async def get_cart_item_count(service: CartService, data: CartQueryInput, user_id: str):
    return await service.get_item_count(user_id)


@tools.tool(
    "addMultipleToCart",
    BulkCartInput,
    "Add several items in order. Each item is saved on its own; earlier items stay if a later one fails.",
)
async def add_multiple_to_cart(service: CartService, data: BulkCartInput, user_id: str):
    return await service.add_multiple(user_id, [(i.item_id, i.quantity) for i in data.items])


@tools.tool(
    "removeMultipleFromCart",
    BulkCartInput,
    "Remove several items in order. Each item is saved on its own; earlier items stay removed if a later one fails.",
)
async def remove_multiple_from_cart(service: CartService, data: BulkCartInput, user_id: str):
    return await service.remove_multiple(user_id, [(i.item_id, i.quantity) for i in data.items])


@router.get("", response_model=ToolListResponse)
async def list_cart_tools():
    """Tool names, descriptions and input schemas of the cart server."""
    return tools.describe()


@router.post("/{tool_name}", response_model=ToolResponse)
async def call_cart_tool(
    tool_name: str,
    payload: Any = Body(default=None),
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Run a cart tool on behalf of the user named in the X-User-Id header."""
    return await tools.call(tool_name, payload, session, user_id=user_id)
