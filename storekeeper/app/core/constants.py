"""
Shared constants for the tool servers.
"""

# ---------------------------------------------------------------------------
# Tool servers
# ---------------------------------------------------------------------------
CART_SERVER_NAME = "Cart Management MCP"
INVENTORY_SERVER_NAME = "Inventory Management MCP"
SERVER_VERSION = "1.0.0"

# Header carrying the caller identity, resolved once per request
USER_ID_HEADER = "X-User-Id"

# ---------------------------------------------------------------------------
# Inventory listing
# ---------------------------------------------------------------------------
CATEGORY_ALL = "all"  # listItems sentinel: no category filter
SORT_BY_PRICE = "price"
SORT_BY_NAME = "name"
DEFAULT_LOW_STOCK_THRESHOLD = 10
