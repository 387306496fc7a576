"""
API tests for the cart and inventory tool servers.

Tests cover:
- Tool listing endpoints
- Text envelope for results, soft failures and errors
- X-User-Id handling on the cart server
- Validation errors rendered as tool errors
- Health and metrics endpoints
"""
import json

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from storekeeper.app.models.inventory import InventoryItem
from storekeeper.app.services.cart import CartService
from storekeeper.app.services.inventory import InventoryService
from storekeeper.tests.conftest import OTHER_USER_ID


def _text(response) -> str:
    body = response.json()
    assert len(body["content"]) == 1
    assert body["content"][0]["type"] == "text"
    return body["content"][0]["text"]


def _payload(response):
    assert response.json()["isError"] is False
    return json.loads(_text(response))


# ============================================
# LISTING
# ============================================

@pytest.mark.asyncio
async def test_list_cart_tools(client: AsyncClient):
    response = await client.get("/tools/cart")
    assert response.status_code == 200
    data = response.json()
    assert data["server"] == "Cart Management MCP"
    assert data["version"] == "1.0.0"
    names = [tool["name"] for tool in data["tools"]]
    assert names == [
        "addToCart",
        "removeFromCart",
        "updateCartItem",
        "viewCart",
        "clearCart",
        "getCartItemCount",
        "addMultipleToCart",
        "removeMultipleFromCart",
    ]
    add_schema = data["tools"][0]["inputSchema"]
    assert set(add_schema["properties"]) == {"itemId", "quantity"}


@pytest.mark.asyncio
async def test_list_inventory_tools(client: AsyncClient):
    response = await client.get("/tools/inventory")
    assert response.status_code == 200
    data = response.json()
    assert data["server"] == "Inventory Management MCP"
    assert {tool["name"] for tool in data["tools"]} == {
        "listItems",
        "getItem",
        "createItem",
        "updateItem",
        "deleteItem",
        "updateStock",
        "getLowStockItems",
        "searchItems",
    }


# ============================================
# CART TOOLS
# ============================================

@pytest.mark.asyncio
async def test_cart_requires_user_header(client: AsyncClient):
    response = await client.post("/tools/cart/viewCart", json={})
    assert response.status_code == 401

    response = await client.post("/tools/cart/viewCart", json={}, headers={"X-User-Id": "  "})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_cart_unknown_tool(client: AsyncClient, user_headers: dict):
    response = await client.post("/tools/cart/checkout", json={}, headers=user_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cart_add_view_remove_flow(client: AsyncClient, user_headers: dict):
    response = await client.post("/tools/cart/viewCart", json={}, headers=user_headers)
    assert _payload(response) == []

    response = await client.post(
        "/tools/cart/addToCart", json={"itemId": "sku1", "quantity": 3}, headers=user_headers
    )
    assert _payload(response) == {"success": True, "message": "Item added to cart"}

    await client.post("/tools/cart/addToCart", json={"itemId": "sku1", "quantity": 2}, headers=user_headers)
    cart = _payload(await client.post("/tools/cart/viewCart", json={}, headers=user_headers))
    assert [(line["itemId"], line["quantity"]) for line in cart] == [("sku1", 5)]

    count = _payload(await client.post("/tools/cart/getCartItemCount", headers=user_headers))
    assert count == {"totalItems": 5, "uniqueItems": 1}

    response = await client.post(
        "/tools/cart/removeFromCart", json={"itemId": "sku1", "quantity": 10}, headers=user_headers
    )
    assert _payload(response)["message"] == "Item removed from cart"
    assert _payload(await client.post("/tools/cart/viewCart", json={}, headers=user_headers)) == []


@pytest.mark.asyncio
async def test_cart_soft_failure_is_not_an_error(client: AsyncClient, user_headers: dict):
    response = await client.post(
        "/tools/cart/removeFromCart", json={"itemId": "ghost", "quantity": 1}, headers=user_headers
    )
    assert response.status_code == 200
    assert _payload(response) == {"success": False, "message": "Item not in cart"}


@pytest.mark.asyncio
async def test_cart_is_scoped_by_header(client: AsyncClient, user_headers: dict):
    await client.post("/tools/cart/addToCart", json={"itemId": "sku1", "quantity": 1}, headers=user_headers)

    other = {"X-User-Id": OTHER_USER_ID}
    assert _payload(await client.post("/tools/cart/viewCart", json={}, headers=other)) == []


@pytest.mark.asyncio
async def test_cart_rejects_user_id_in_payload(client: AsyncClient, user_headers: dict):
    response = await client.post(
        "/tools/cart/addToCart",
        json={"userId": "someone-else", "itemId": "sku1", "quantity": 1},
        headers=user_headers,
    )
    assert response.status_code == 200
    assert response.json()["isError"] is True
    text = _text(response)
    assert text.startswith("Error: Invalid input")
    assert "userId" in text


@pytest.mark.asyncio
async def test_cart_validation_error(client: AsyncClient, user_headers: dict):
    response = await client.post(
        "/tools/cart/addToCart", json={"itemId": "sku1", "quantity": 0}, headers=user_headers
    )
    assert response.json()["isError"] is True
    assert "quantity" in _text(response)

    # updateCartItem accepts 0 (removal) but not negatives
    response = await client.post(
        "/tools/cart/updateCartItem", json={"itemId": "sku1", "quantity": -1}, headers=user_headers
    )
    assert response.json()["isError"] is True


@pytest.mark.asyncio
async def test_cart_bulk_tools(client: AsyncClient, user_headers: dict):
    response = await client.post(
        "/tools/cart/addMultipleToCart",
        json={"items": [{"itemId": "a", "quantity": 1}, {"itemId": "b", "quantity": 2}]},
        headers=user_headers,
    )
    data = _payload(response)
    assert data["message"] == "Multiple items added to cart"
    assert len(data["results"]) == 2

    response = await client.post(
        "/tools/cart/removeMultipleFromCart",
        json={"items": [{"itemId": "a", "quantity": 1}, {"itemId": "zzz", "quantity": 1}]},
        headers=user_headers,
    )
    data = _payload(response)
    assert [r["success"] for r in data["results"]] == [True, False]

    cart = _payload(await client.post("/tools/cart/viewCart", json={}, headers=user_headers))
    assert [(line["itemId"], line["quantity"]) for line in cart] == [("b", 2)]


# ============================================
# INVENTORY TOOLS
# ============================================

@pytest.mark.asyncio
async def test_inventory_get_item_not_found_text(client: AsyncClient):
    response = await client.post("/tools/inventory/getItem", json={"id": "nope"})
    assert response.status_code == 200
    assert response.json()["isError"] is False
    assert _text(response) == "Item not found"


@pytest.mark.asyncio
async def test_inventory_scenario(client: AsyncClient):
    response = await client.post(
        "/tools/inventory/createItem", json={"id": "i1", "name": "Widget", "price": 5}
    )
    assert _payload(response) == {"success": True, "message": "Item created successfully"}

    response = await client.post("/tools/inventory/updateStock", json={"id": "i1", "stock": -1})
    assert response.json()["isError"] is True
    assert _text(response) == "Error: Stock cannot be negative"

    response = await client.post("/tools/inventory/updateStock", json={"id": "i1", "stock": 0})
    assert _payload(response)["message"] == "Stock updated successfully"

    low = _payload(await client.post("/tools/inventory/getLowStockItems", json={}))
    assert [item["id"] for item in low] == ["i1"]
    assert low[0]["stock"] == 0
    assert low[0]["price"] == 5.0


@pytest.mark.asyncio
async def test_inventory_duplicate_create_is_error(client: AsyncClient, test_item: InventoryItem):
    response = await client.post(
        "/tools/inventory/createItem", json={"id": "sku-1", "name": "Other", "price": 1}
    )
    assert response.json()["isError"] is True
    assert _text(response) == "Error: Item with this ID already exists"

    item = _payload(await client.post("/tools/inventory/getItem", json={"id": "sku-1"}))
    assert item["name"] == "Widget"


@pytest.mark.asyncio
async def test_inventory_update_item_partial(client: AsyncClient, test_item: InventoryItem):
    response = await client.post("/tools/inventory/updateItem", json={"id": "sku-1", "price": 6.5})
    assert _payload(response)["message"] == "Item updated successfully"

    item = _payload(await client.post("/tools/inventory/getItem", json={"id": "sku-1"}))
    assert item["price"] == 6.5
    assert item["name"] == "Widget"


@pytest.mark.asyncio
async def test_inventory_update_item_rejects_null_name(client: AsyncClient, test_item: InventoryItem):
    response = await client.post("/tools/inventory/updateItem", json={"id": "sku-1", "name": None})
    assert response.json()["isError"] is True


@pytest.mark.asyncio
async def test_inventory_missing_item_errors(client: AsyncClient):
    for tool, payload in [
        ("updateItem", {"id": "nope", "name": "X"}),
        ("deleteItem", {"id": "nope"}),
        ("updateStock", {"id": "nope", "stock": -1}),
    ]:
        response = await client.post(f"/tools/inventory/{tool}", json=payload)
        assert response.json()["isError"] is True
        assert _text(response) == "Error: Item not found"


@pytest.mark.asyncio
async def test_inventory_list_and_search(client: AsyncClient, test_catalog: list):
    items = _payload(await client.post(
        "/tools/inventory/listItems", json={"category": "Tools", "sortBy": "price"}
    ))
    assert [item["id"] for item in items] == ["sku-a", "sku-b"]

    response = await client.post("/tools/inventory/listItems", json={"sortBy": "rating"})
    assert response.json()["isError"] is True

    found = _payload(await client.post("/tools/inventory/searchItems", json={"query": "HAM"}))
    assert [item["name"] for item in found] == ["Hammer"]


@pytest.mark.asyncio
async def test_inventory_search_keeps_leading_space(client: AsyncClient):
    for item_id, name in [("i-big", "Big Hammer"), ("i-sledge", "Sledgehammer")]:
        await client.post("/tools/inventory/createItem", json={"id": item_id, "name": name, "price": 10})

    found = _payload(await client.post("/tools/inventory/searchItems", json={"query": " hammer"}))
    assert [item["name"] for item in found] == ["Big Hammer"]


@pytest.mark.asyncio
async def test_cart_item_ids_are_not_trimmed(client: AsyncClient, user_headers: dict):
    await client.post("/tools/cart/addToCart", json={"itemId": "a", "quantity": 1}, headers=user_headers)
    await client.post("/tools/cart/addToCart", json={"itemId": " a", "quantity": 2}, headers=user_headers)

    cart = _payload(await client.post("/tools/cart/viewCart", json={}, headers=user_headers))
    assert sorted((line["itemId"], line["quantity"]) for line in cart) == [(" a", 2), ("a", 1)]


@pytest.mark.asyncio
async def test_store_error_text_is_generic(client: AsyncClient, monkeypatch):
    async def failing_search(self, query):
        raise OperationalError("SELECT * FROM inventory_items WHERE name = ?", ("secret",), Exception("disk I/O error"))

    monkeypatch.setattr(InventoryService, "search_items", failing_search)

    response = await client.post("/tools/inventory/searchItems", json={"query": "x"})
    assert response.status_code == 200
    assert response.json()["isError"] is True
    assert _text(response) == "Error: Internal store error"


@pytest.mark.asyncio
async def test_unexpected_error_text_is_generic(client: AsyncClient, user_headers: dict, monkeypatch):
    async def failing_view(self, user_id):
        raise RuntimeError("connection string postgresql://user:pw@db/store")

    monkeypatch.setattr(CartService, "view_cart", failing_view)

    response = await client.post("/tools/cart/viewCart", json={}, headers=user_headers)
    assert response.json()["isError"] is True
    assert _text(response) == "Error: Internal error"


@pytest.mark.asyncio
async def test_inventory_low_stock_custom_threshold(client: AsyncClient, test_catalog: list):
    low = _payload(await client.post("/tools/inventory/getLowStockItems", json={"threshold": 4}))
    assert [item["id"] for item in low] == ["sku-c", "sku-a"]


# ============================================
# SERVICE ENDPOINTS
# ============================================

@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"]["database"] == "ok"


@pytest.mark.asyncio
async def test_metrics_count_tool_calls(client: AsyncClient, user_headers: dict):
    await client.post("/tools/cart/viewCart", json={}, headers=user_headers)
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "tool_calls_total" in response.text
