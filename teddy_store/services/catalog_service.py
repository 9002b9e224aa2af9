import logging
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFound
from ..models.product import Product
from ..schemas.product import ProductSort

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    ProductSort.NAME_ASC: Product.name.asc(),
    ProductSort.NAME_DESC: Product.name.desc(),
    ProductSort.PRICE_ASC: Product.price.asc(),
    ProductSort.PRICE_DESC: Product.price.desc(),
}


class CatalogService:
    """Сервис каталога игрушек"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_products(
            self,
            search: Optional[str] = None,
            category: Optional[str] = None,
            min_price: Optional[Decimal] = None,
            max_price: Optional[Decimal] = None,
            sort: Optional[ProductSort] = None
    ) -> List[Product]:
        """Список товаров с фильтрами; по умолчанию сначала новые"""
        query = select(Product)

        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.description).like(pattern)
            ))

        # "all" - все категории, как в фильтре витрины
        if category and category != "all":
            query = query.where(Product.category == category)

        if min_price is not None:
            query = query.where(Product.price >= min_price)
        if max_price is not None:
            query = query.where(Product.price <= max_price)

        if sort is not None:
            query = query.order_by(_SORT_COLUMNS[sort], Product.id)
        else:
            query = query.order_by(Product.created_at.desc(), Product.id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_categories(self) -> List[str]:
        """Категории для фильтра, первой идет "all" """
        result = await self.db.execute(
            select(Product.category)
            .where(Product.category.isnot(None))
            .distinct()
            .order_by(Product.category)
        )
        return ["all", *result.scalars().all()]

    async def get_product(self, product_id: str) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            logger.warning(f"Product {product_id} not found")
            raise NotFound("Product", product_id)
        return product
