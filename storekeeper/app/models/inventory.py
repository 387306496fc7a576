from sqlalchemy import String, DECIMAL, Text, Integer, DateTime, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from storekeeper.app.core.base import Base
from storekeeper.app.core.clock import utcnow


class InventoryItem(Base):
    __tablename__ = 'inventory_items'
    id: Mapped[str] = mapped_column(String(255), primary_key=True)  # assigned by the caller
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    category: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint('stock >= 0', name='stock_non_negative'),
        CheckConstraint('price >= 0', name='price_non_negative'),
        Index('ix_inventory_items_name', 'name'),
        Index('ix_inventory_items_stock', 'stock'),
        Index('ix_inventory_items_created_at', 'created_at'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.price) if self.price is not None else None,
            "stock": self.stock,
            "category": self.category,
            "description": self.description,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
