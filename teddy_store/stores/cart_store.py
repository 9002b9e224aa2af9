import logging
import uuid
from typing import List, Optional
from sqlalchemy import select, update, delete, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError

from ..exceptions import RemoteFailure
from ..models.cart import Cart
from ..schemas.cart import CartLine, CartRecord, compute_total

logger = logging.getLogger(__name__)

# Диалекты с поддержкой INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def parse_lines(raw) -> List[CartLine]:
    """Разбирает колонку items; мусор в JSON дает пустую корзину"""
    if not isinstance(raw, list):
        return []
    try:
        return [CartLine.model_validate(row) for row in raw]
    except ValidationError as e:
        logger.warning(f"Malformed cart items, treating cart as empty: {e}")
        return []


class SqlCartStore:
    """Корзины в таблице carts, ключ - user_id"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def fetch_one(self, owner: str) -> Optional[CartRecord]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(Cart).where(Cart.user_id == owner))
                cart = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            raise RemoteFailure("fetch cart", owner, e) from e

        if cart is None:
            return None

        lines = parse_lines(cart.items)
        return CartRecord(owner=owner, lines=lines, total=compute_total(lines))

    async def upsert(self, owner: str, record: CartRecord) -> None:
        rows = [line.to_row() for line in record.lines]

        async with self.session_factory() as session:
            try:
                dialect = session.get_bind().dialect.name
                insert = _UPSERT_INSERTS.get(dialect)

                if insert is not None:
                    stmt = insert(Cart).values(
                        id=str(uuid.uuid4()),
                        user_id=owner,
                        items=rows,
                        total=record.total
                    )
                    stmt = stmt.on_conflict_do_update(
                        index_elements=[Cart.user_id],
                        set_={
                            "items": stmt.excluded["items"],
                            "total": stmt.excluded["total"],
                            "updated_at": func.now(),
                        }
                    )
                    await session.execute(stmt)
                else:
                    # Без ON CONFLICT: уникальный индекс по user_id всё равно не даст дубль
                    result = await session.execute(select(Cart).where(Cart.user_id == owner))
                    cart = result.scalar_one_or_none()
                    if cart is None:
                        session.add(Cart(user_id=owner, items=rows, total=record.total))
                    else:
                        cart.items = rows
                        cart.total = record.total

                await session.commit()
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                raise RemoteFailure("upsert cart", owner, e) from e

    async def update(self, owner: str, record: CartRecord) -> bool:
        """Обновляет существующую запись; False, если записи нет"""
        rows = [line.to_row() for line in record.lines]

        async with self.session_factory() as session:
            try:
                result = await session.execute(
                    update(Cart)
                    .where(Cart.user_id == owner)
                    .values(items=rows, total=record.total, updated_at=func.now())
                )
                await session.commit()
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                raise RemoteFailure("update cart", owner, e) from e

        return result.rowcount > 0

    async def delete(self, owner: str) -> None:
        async with self.session_factory() as session:
            try:
                await session.execute(delete(Cart).where(Cart.user_id == owner))
                await session.commit()
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                raise RemoteFailure("delete cart", owner, e) from e
