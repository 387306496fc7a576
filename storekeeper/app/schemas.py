from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Literal
from decimal import Decimal


class ToolInput(BaseModel):
    """
    Tool payloads use camelCase keys; unknown keys (e.g. userId) are rejected.
    Strings reach the engines exactly as sent: ids and search text are not trimmed.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# --- Cart ---
class CartItemInput(ToolInput):
    item_id: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., gt=0)


class CartUpdateInput(ToolInput):
    item_id: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=0)  # 0 = remove


class BulkCartInput(ToolInput):
    items: List[CartItemInput]


class CartQueryInput(ToolInput):
    pass


# --- Inventory ---
class ListItemsInput(ToolInput):
    category: Optional[str] = None
    sort_by: Optional[Literal["price", "name", "created"]] = None
    limit: Optional[int] = Field(default=None, gt=0)


class ItemIdInput(ToolInput):
    id: str = Field(..., min_length=1, max_length=255)


class CreateItemInput(ToolInput):
    id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    category: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None


class UpdateItemInput(ToolInput):
    """Partial patch: only the keys present in the payload are applied."""
    id: str = Field(..., min_length=1, max_length=255)
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None

    @field_validator("name", "price", "stock")
    @classmethod
    def required_columns_not_null(cls, v):
        # Reached only when the key is present; category/description may be cleared with null
        if v is None:
            raise ValueError("field cannot be null")
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"id"})


class StockUpdateInput(ToolInput):
    id: str = Field(..., min_length=1, max_length=255)
    stock: int  # sign is checked by the service


class LowStockInput(ToolInput):
    threshold: Optional[int] = None


class SearchInput(ToolInput):
    query: str


# --- Tool envelope ---
class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    content: List[TextContent]
    isError: bool = False


class ToolDescription(BaseModel):
    name: str
    description: str
    inputSchema: dict


class ToolListResponse(BaseModel):
    server: str
    version: str
    tools: List[ToolDescription]
