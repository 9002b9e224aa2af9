from typing import List, Optional
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..exceptions import RemoteFailure
from ..models.product import Product
from ..models.wishlist import WishlistEntry
from ..schemas.wishlist import WishlistEntry as WishlistEntrySchema, WishlistProduct
from .base import InsertOutcome, InsertResult


def to_schema(row: WishlistEntry, product: Optional[Product] = None) -> WishlistEntrySchema:
    return WishlistEntrySchema(
        id=row.id,
        owner=row.user_id,
        product_id=row.product_id,
        created_at=row.created_at,
        product=WishlistProduct(
            id=product.id,
            name=product.name,
            price=product.price,
            images=product.images or [],
            description=product.description
        ) if product is not None else None
    )


class SqlWishlistStore:
    """Избранное в таблице wishlist, одна строка на (user_id, product_id)"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def fetch_all(self, owner: str) -> List[WishlistEntrySchema]:
        """Записи владельца вместе с карточками товаров"""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(WishlistEntry, Product)
                    .outerjoin(Product, Product.id == WishlistEntry.product_id)
                    .where(WishlistEntry.user_id == owner)
                    .order_by(WishlistEntry.created_at, WishlistEntry.id)
                )
                rows = result.all()
        except (SQLAlchemyError, OSError) as e:
            raise RemoteFailure("fetch wishlist", owner, e) from e

        return [to_schema(row, product) for row, product in rows]

    async def insert(self, owner: str, product_id: str) -> InsertResult:
        """Добавляет товар; нарушение уникальности возвращается как DUPLICATE"""
        async with self.session_factory() as session:
            row = WishlistEntry(user_id=owner, product_id=product_id)
            session.add(row)
            try:
                await session.commit()
                await session.refresh(row)
                product = await session.get(Product, product_id)
            except IntegrityError:
                await session.rollback()
                return InsertResult(outcome=InsertOutcome.DUPLICATE)
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                raise RemoteFailure("insert wishlist entry", owner, e) from e

            return InsertResult(outcome=InsertOutcome.CREATED, entry=to_schema(row, product))

    async def delete(self, owner: str, entry_id: str) -> bool:
        async with self.session_factory() as session:
            try:
                # Владелец в условии: чужие записи не трогаем
                result = await session.execute(
                    delete(WishlistEntry).where(
                        WishlistEntry.id == entry_id,
                        WishlistEntry.user_id == owner
                    )
                )
                await session.commit()
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                raise RemoteFailure("delete wishlist entry", owner, e) from e

        return result.rowcount > 0
