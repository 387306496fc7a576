"""Cart line model: one (user, item) quantity record."""
from sqlalchemy import Integer, String, DateTime, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Any, Dict
from storekeeper.app.core.base import Base
from storekeeper.app.core.clock import utcnow


class CartLine(Base):
    """One item in a user's cart. Deleted instead of being kept at quantity <= 0."""
    __tablename__ = 'cart_lines'
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    item_id: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    added_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'item_id', name='uq_cart_lines_user_item'),
        CheckConstraint('quantity > 0', name='quantity_positive'),
        Index('ix_cart_lines_user_updated', 'user_id', 'updated_at'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemId": self.item_id,
            "quantity": self.quantity,
            "addedAt": self.added_at.isoformat() if self.added_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
