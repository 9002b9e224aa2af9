import logging

from ..exceptions import CheckoutError, RemoteFailure, Unauthenticated
from ..models.order import Order
from ..notifications import NotificationSink
from ..schemas.notice import NoticeKind
from ..schemas.order import CheckoutRequest
from .cart_reconciler import CartReconciler
from .order_service import OrderService
from .reconciler import MutationOutcome

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Оформление заказа: снимок корзины пишется в orders, затем корзина очищается.

    Платежные данные проверяются схемой запроса и никуда не сохраняются.
    Если заказ не записан, корзина остается нетронутой.
    """

    def __init__(self, orders: OrderService, cart: CartReconciler, notifier: NotificationSink, events=None):
        self.orders = orders
        self.cart = cart
        self.notifier = notifier
        self.events = events

    async def place_order(self, request: CheckoutRequest) -> Order:
        if self.cart.owner is None:
            raise Unauthenticated("checkout")

        # Пока заказ пишется, корзину никто не меняет
        async with self.cart.checkout() as snapshot:
            owner = snapshot.owner
            if owner is None:
                raise Unauthenticated("checkout")
            if not snapshot.synced:
                raise RemoteFailure("load cart", owner)

            lines = snapshot.lines
            if not lines:
                raise CheckoutError("Cart is empty")

            total = snapshot.total

            try:
                order = await self.orders.create_order(owner, lines, total, request.shipping)
            except RemoteFailure:
                self.notifier.notify(NoticeKind.ERROR, "Failed to place order")
                raise

            if await snapshot.clear() != MutationOutcome.APPLIED:
                # Заказ уже записан; корзину пользователь очистит сам
                logger.warning(f"Order {order.id} placed but cart of {owner} was not cleared")

        self.notifier.notify(NoticeKind.SUCCESS, "Order placed successfully! 🎉")

        if self.events is not None:
            await self.events.publish_event(
                topic="order.placed",
                event_type="order_placed",
                payload={
                    "owner": owner,
                    "order_id": order.id,
                    "total": float(total),
                    "total_items": sum(line.quantity for line in lines),
                    "items": order.items
                },
                key=owner
            )

        logger.info(f"🛒 Order {order.id} placed by {owner}, total {total}")
        return order
