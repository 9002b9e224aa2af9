import logging
from decimal import Decimal
from typing import List
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import RemoteFailure
from ..models.order import Order, OrderStatus, PaymentStatus
from ..schemas.cart import CartLine
from ..schemas.order import ShippingInfo

logger = logging.getLogger(__name__)


class OrderService:
    """Сервис для работы с заказами"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_order(
            self,
            owner: str,
            lines: List[CartLine],
            total: Decimal,
            shipping: ShippingInfo
    ) -> Order:
        """Создает заказ из снимка корзины"""
        try:
            order = Order(
                user_id=owner,
                items=[line.to_row() for line in lines],
                shipping_info=shipping.model_dump(by_alias=True, mode="json"),
                total=total,
                order_status=OrderStatus.PROCESSING.value,
                payment_status=PaymentStatus.PAID.value
            )

            self.db.add(order)
            await self.db.commit()
            await self.db.refresh(order)

            logger.info(f"✅ Order {order.id} created for {owner}")
            return order

        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"❌ Error creating order for {owner}: {e}")
            raise RemoteFailure("create order", owner, e) from e

    async def list_orders(self, owner: str) -> List[Order]:
        """Заказы пользователя, сначала новые"""
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == owner)
            .order_by(Order.created_at.desc(), Order.id)
        )
        return list(result.scalars().all())
