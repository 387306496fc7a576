# storekeeper/app/services/cart.py
"""
Cart service - per-user cart lines.

Every mutation is a single guarded statement (upsert, conditional UPDATE or
DELETE), so concurrent calls on the same (user, item) never interleave between
a read and a write. Each public mutation commits its own unit of work.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update, and_, func
from typing import List, Dict, Any, Iterable, Tuple

from storekeeper.app.core.clock import utcnow
from storekeeper.app.core.database import insert_for
from storekeeper.app.models.cart import CartLine

NOT_IN_CART = "Item not in cart"
REMOVE_ATTEMPTS = 2


def _ok(message: str) -> Dict[str, Any]:
    return {"success": True, "message": message}


def _not_found() -> Dict[str, Any]:
    return {"success": False, "message": NOT_IN_CART}


class CartService:
    """Cart mutations scoped to one user id, supplied by the caller on every call."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _line(user_id: str, item_id: str):
        return and_(CartLine.user_id == user_id, CartLine.item_id == item_id)

    async def add_item(self, user_id: str, item_id: str, quantity: int) -> Dict[str, Any]:
        """Insert the line or add `quantity` to the existing one."""
        now = utcnow()
        stmt = insert_for(self.session, CartLine).values(
            user_id=user_id,
            item_id=item_id,
            quantity=quantity,
            added_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[CartLine.user_id, CartLine.item_id],
            set_={
                "quantity": CartLine.quantity + stmt.excluded.quantity,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.session.execute(stmt)
        await self.session.commit()
        return _ok("Item added to cart")

    async def remove_item(self, user_id: str, item_id: str, quantity: int) -> Dict[str, Any]:
        """
        Decrease the line by `quantity`; drop it when nothing would be left.

        Returns a soft failure (success=False) when the line does not exist.

        Each statement is guarded on the current quantity. A concurrent add or
        remove landing between the two can make both miss, so the pair is tried
        once more before the line is reported missing.
        """
        line = self._line(user_id, item_id)
        for _ in range(REMOVE_ATTEMPTS):
            removed = await self.session.execute(
                delete(CartLine).where(and_(line, CartLine.quantity <= quantity))
            )
            if removed.rowcount:
                await self.session.commit()
                return _ok("Item removed from cart")

            decreased = await self.session.execute(
                update(CartLine)
                .where(and_(line, CartLine.quantity > quantity))
                .values(quantity=CartLine.quantity - quantity, updated_at=utcnow())
            )
            if decreased.rowcount:
                await self.session.commit()
                return _ok("Item quantity decreased in cart")

        await self.session.commit()
        return _not_found()

    async def update_item(self, user_id: str, item_id: str, quantity: int) -> Dict[str, Any]:
        """Set item quantity. 0 = remove."""
        if quantity == 0:
            result = await self.session.execute(
                delete(CartLine).where(self._line(user_id, item_id))
            )
            message = "Item removed from cart"
        else:
            result = await self.session.execute(
                update(CartLine)
                .where(self._line(user_id, item_id))
                .values(quantity=quantity, updated_at=utcnow())
            )
            message = "Cart item updated"
        await self.session.commit()
        if not result.rowcount:
            return _not_found()
        return _ok(message)

    async def view_cart(self, user_id: str) -> List[Dict[str, Any]]:
        """Cart lines, most recently touched first."""
        result = await self.session.execute(
            select(CartLine)
            .where(CartLine.user_id == user_id)
            .order_by(CartLine.updated_at.desc(), CartLine.id.desc())
            .execution_options(populate_existing=True)
        )
        return [line.to_dict() for line in result.scalars().all()]

    async def clear_cart(self, user_id: str) -> Dict[str, Any]:
        await self.session.execute(delete(CartLine).where(CartLine.user_id == user_id))
        await self.session.commit()
        return _ok("Cart cleared")

    async def get_item_count(self, user_id: str) -> Dict[str, int]:
        """Total quantity across lines and the number of distinct lines."""
        result = await self.session.execute(
            select(
                func.coalesce(func.sum(CartLine.quantity), 0),
                func.count(CartLine.id),
            ).where(CartLine.user_id == user_id)
        )
        total, unique = result.one()
        return {"totalItems": int(total), "uniqueItems": int(unique)}

    async def add_multiple(self, user_id: str, items: Iterable[Tuple[str, int]]) -> Dict[str, Any]:
        """
        Add each (item_id, quantity) in order.

        Entries are committed one by one: if a later entry fails, earlier
        entries stay in the cart.
        """
        results = [await self.add_item(user_id, item_id, quantity) for item_id, quantity in items]
        return {**_ok("Multiple items added to cart"), "results": results}

    async def remove_multiple(self, user_id: str, items: Iterable[Tuple[str, int]]) -> Dict[str, Any]:
        """
        Remove each (item_id, quantity) in order, with the same partial-application
        behavior as add_multiple. Entries missing from the cart are reported in
        `results` and do not fail the call.
        """
        results = [await self.remove_item(user_id, item_id, quantity) for item_id, quantity in items]
        return {**_ok("Multiple items removed from cart"), "results": results}
