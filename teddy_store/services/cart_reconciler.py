import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import List, Optional

from ..exceptions import RemoteFailure
from ..notifications import NotificationSink
from ..schemas.cart import CartLine, CartLineCreate, CartRecord, CartSummary, compute_total
from ..schemas.notice import NoticeKind
from ..session import SessionProvider
from ..stores.base import CartStore
from .reconciler import BaseReconciler, MutationOutcome

logger = logging.getLogger(__name__)


class CartReconciler(BaseReconciler):
    """
    Корзина текущего пользователя.

    В хранилище ровно одна запись на владельца: список позиций + сумма.
    Зеркало меняется только после подтвержденной записи в хранилище.
    Пустая корзина не хранится: удаление последней позиции удаляет запись.
    """

    resource = "cart"

    def __init__(
            self,
            session: SessionProvider,
            store: CartStore,
            notifier: NotificationSink,
            events=None
    ):
        self.store = store
        self._lines: List[CartLine] = []
        super().__init__(session, notifier, events)

    # Чтение зеркала

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    @property
    def total(self) -> Decimal:
        """Сумма всегда считается по текущему зеркалу"""
        return compute_total(self._lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def find_line(self, line_id: str) -> Optional[CartLine]:
        return next((line for line in self._lines if line.line_id == line_id), None)

    def summary(self) -> CartSummary:
        return CartSummary(
            state=self.state.value,
            owner=self.owner,
            items=self.lines,
            total_items=self.item_count,
            total=self.total
        )

    # Загрузка

    async def _fetch(self, owner: str) -> Optional[CartRecord]:
        return await self.store.fetch_one(owner)

    def _apply_loaded(self, record: Optional[CartRecord]):
        # Нет записи - пустая корзина, не ошибка
        self._lines = list(record.lines) if record else []

    def _clear_mirror(self):
        self._lines = []

    # Мутации

    async def add(self, item: CartLineCreate) -> MutationOutcome:
        """Добавить товар или увеличить количество уже лежащего в корзине"""
        if self.owner is None:
            logger.info(f"Rejected add of product {item.product_id}: no user signed in")
            self._notify(NoticeKind.ERROR, "Please log in to add items to cart")
            return MutationOutcome.UNAUTHENTICATED

        if not await self._ensure_synced():
            return MutationOutcome.FAILED

        async with self._lock:
            owner, generation = self.owner, self.generation
            if owner is None:
                self._notify(NoticeKind.ERROR, "Please log in to add items to cart")
                return MutationOutcome.UNAUTHENTICATED

            updated, line, action = self._merge(item)
            record = CartRecord.from_lines(owner, updated)

            try:
                await self.store.upsert(owner, record)
            except RemoteFailure as e:
                return self._failed("add", owner, e, "Failed to add to cart")

            if not self._is_current(owner, generation):
                return self._stale("add", owner)

            self._lines = updated
            logger.info(f"Added product {item.product_id} x{item.quantity} to cart of {owner} ({action})")
            self._notify(NoticeKind.SUCCESS, "Added to cart! 🧸")

            # 🚀 Публикуем событие
            await self._publish("cart.item.added", "item_added_to_cart", owner, {
                "item": line.to_row(),
                "requested_quantity": item.quantity,
                "total": float(record.total),
                "action": action  # "added" или "updated"
            })
            return MutationOutcome.APPLIED

    async def remove(self, line_id: str) -> MutationOutcome:
        """Удалить позицию; последняя позиция удаляет запись целиком"""
        if self.owner is None:
            return MutationOutcome.SKIPPED

        if not await self._ensure_synced():
            return MutationOutcome.FAILED

        async with self._lock:
            owner, generation = self.owner, self.generation
            if owner is None:
                return MutationOutcome.SKIPPED

            removed = self.find_line(line_id)
            if removed is None:
                logger.warning(f"Line {line_id} not found in cart of {owner}")
                return MutationOutcome.SKIPPED

            remaining = [line for line in self._lines if line.line_id != line_id]

            try:
                if remaining:
                    await self._persist(owner, remaining)
                else:
                    await self.store.delete(owner)
            except RemoteFailure as e:
                return self._failed("remove", owner, e, "Failed to remove item")

            if not self._is_current(owner, generation):
                return self._stale("remove", owner)

            self._lines = remaining
            logger.info(f"Removed line {line_id} from cart of {owner}")
            self._notify(NoticeKind.SUCCESS, "Item removed from cart")

            await self._publish("cart.item.removed", "item_removed_from_cart", owner, {
                "product_id": removed.product_id,
                "line_id": line_id,
                "cart_deleted": not remaining,
                "action": "removed"
            })
            return MutationOutcome.APPLIED

    async def update_quantity(self, line_id: str, new_quantity: int) -> MutationOutcome:
        """Изменить количество; меньше 1 - no-op, для обнуления есть remove()"""
        if self.owner is None or new_quantity < 1:
            return MutationOutcome.SKIPPED

        if not await self._ensure_synced():
            return MutationOutcome.FAILED

        async with self._lock:
            owner, generation = self.owner, self.generation
            if owner is None:
                return MutationOutcome.SKIPPED

            current = self.find_line(line_id)
            if current is None:
                logger.warning(f"Line {line_id} not found in cart of {owner}")
                return MutationOutcome.SKIPPED

            updated = [
                line.model_copy(update={"quantity": new_quantity}) if line.line_id == line_id else line
                for line in self._lines
            ]

            try:
                await self._persist(owner, updated)
            except RemoteFailure as e:
                return self._failed("update quantity", owner, e, "Failed to update quantity")

            if not self._is_current(owner, generation):
                return self._stale("update quantity", owner)

            self._lines = updated
            logger.info(f"Line {line_id} quantity {current.quantity} -> {new_quantity} in cart of {owner}")

            await self._publish("cart.item.updated", "item_updated_in_cart", owner, {
                "product_id": current.product_id,
                "line_id": line_id,
                "change": {
                    "from": current.quantity,
                    "to": new_quantity,
                    "difference": new_quantity - current.quantity
                },
                "total": float(compute_total(updated)),
                "action": "updated"
            })
            return MutationOutcome.APPLIED

    async def clear(self) -> MutationOutcome:
        """Очистить корзину"""
        if self.owner is None:
            return MutationOutcome.SKIPPED

        async with self._lock:
            owner, generation = self.owner, self.generation
            if owner is None:
                return MutationOutcome.SKIPPED
            return await self._clear_record(owner, generation)

    @asynccontextmanager
    async def checkout(self):
        """
        Корзина заблокирована от снимка до очистки: add/remove/update ждут,
        пока заказ не записан и корзина не очищена.
        """
        await self._ensure_synced()
        async with self._lock:
            yield CartCheckout(self, self.owner, self.generation, self.lines, self._synced)

    # Внутреннее

    async def _clear_record(self, owner: str, generation: int) -> MutationOutcome:
        """Удаляет запись владельца; вызывается под self._lock"""
        items_count = len(self._lines)

        try:
            await self.store.delete(owner)
        except RemoteFailure as e:
            return self._failed("clear", owner, e, "Failed to clear cart")

        if not self._is_current(owner, generation):
            return self._stale("clear", owner)

        self._lines = []
        # Запись удалена - это и есть подтвержденное состояние
        self._synced = True
        logger.info(f"🧹 Cart cleared for {owner}: {items_count} lines removed")

        await self._publish("cart.cleared", "cart_cleared", owner, {
            "items_removed": items_count,
            "action": "cleared"
        })
        return MutationOutcome.APPLIED

    def _merge(self, item: CartLineCreate):
        """Новый список позиций с учетом добавления; зеркало не меняется"""
        for index, line in enumerate(self._lines):
            if line.product_id == item.product_id:
                merged = line.model_copy(update={"quantity": line.quantity + item.quantity})
                updated = list(self._lines)
                updated[index] = merged
                return updated, merged, "updated"

        new_line = CartLine(**item.model_dump())
        return [*self._lines, new_line], new_line, "added"

    async def _persist(self, owner: str, lines: List[CartLine]):
        record = CartRecord.from_lines(owner, lines)
        if not await self.store.update(owner, record):
            # Запись пропала на стороне хранилища - создаем заново
            logger.warning(f"Cart record of {owner} missing on update, re-creating")
            await self.store.upsert(owner, record)


class CartCheckout:
    """Снимок корзины, взятый под блокировкой для оформления заказа"""

    def __init__(self, cart: CartReconciler, owner: Optional[str], generation: int, lines: List[CartLine], synced: bool):
        self._cart = cart
        self._generation = generation
        self.owner = owner
        self.lines = lines
        self.synced = synced

    @property
    def total(self) -> Decimal:
        return compute_total(self.lines)

    async def clear(self) -> MutationOutcome:
        """Очищает корзину, не отпуская блокировку снимка"""
        if self.owner is None:
            return MutationOutcome.SKIPPED
        return await self._cart._clear_record(self.owner, self._generation)
