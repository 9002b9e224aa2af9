import logging
from typing import List, Optional

from ..exceptions import RemoteFailure
from ..notifications import NotificationSink
from ..schemas.notice import NoticeKind
from ..schemas.wishlist import WishlistEntry, WishlistSummary
from ..session import SessionProvider
from ..stores.base import InsertOutcome, WishlistStore
from .reconciler import BaseReconciler, MutationOutcome

logger = logging.getLogger(__name__)


class WishlistReconciler(BaseReconciler):
    """Избранное текущего пользователя: по одной записи на товар, без количества"""

    resource = "wishlist"

    def __init__(
            self,
            session: SessionProvider,
            store: WishlistStore,
            notifier: NotificationSink,
            events=None
    ):
        self.store = store
        self._entries: List[WishlistEntry] = []
        super().__init__(session, notifier, events)

    @property
    def entries(self) -> List[WishlistEntry]:
        return list(self._entries)

    def is_present(self, product_id: str) -> bool:
        return any(entry.product_id == product_id for entry in self._entries)

    def id_for(self, product_id: str) -> Optional[str]:
        return next((entry.id for entry in self._entries if entry.product_id == product_id), None)

    def summary(self) -> WishlistSummary:
        return WishlistSummary(state=self.state.value, owner=self.owner, items=self.entries)

    async def _fetch(self, owner: str) -> List[WishlistEntry]:
        return await self.store.fetch_all(owner)

    def _apply_loaded(self, entries: List[WishlistEntry]):
        self._entries = list(entries)

    def _clear_mirror(self):
        self._entries = []

    async def add(self, product_id: str) -> MutationOutcome:
        """Добавить товар; повтор - ожидаемый исход DUPLICATE, а не ошибка"""
        if self.owner is None:
            logger.info(f"Rejected wishlist add of product {product_id}: no user signed in")
            self._notify(NoticeKind.ERROR, "Please login to add items to your wishlist")
            return MutationOutcome.UNAUTHENTICATED

        if not await self._ensure_synced():
            return MutationOutcome.FAILED

        async with self._lock:
            owner, generation = self.owner, self.generation
            if owner is None:
                self._notify(NoticeKind.ERROR, "Please login to add items to your wishlist")
                return MutationOutcome.UNAUTHENTICATED

            try:
                result = await self.store.insert(owner, product_id)
            except RemoteFailure as e:
                return self._failed("add", owner, e, "Failed to add item to wishlist")

            if result.outcome == InsertOutcome.DUPLICATE:
                logger.info(f"Product {product_id} already in wishlist of {owner}")
                self._notify(NoticeKind.INFO, "This item is already in your wishlist")
                return MutationOutcome.DUPLICATE

            if not self._is_current(owner, generation):
                return self._stale("add", owner)

            self._entries = [*self._entries, result.entry]
            logger.info(f"Added product {product_id} to wishlist of {owner}")
            self._notify(NoticeKind.SUCCESS, "Item successfully added to your wishlist")

            await self._publish("wishlist.item.added", "item_added_to_wishlist", owner, {
                "entry_id": result.entry.id,
                "product_id": product_id
            })
            return MutationOutcome.APPLIED

    async def remove(self, entry_id: str) -> MutationOutcome:
        """Удалить запись по ее id (не по товару)"""
        if self.owner is None:
            return MutationOutcome.SKIPPED

        if not await self._ensure_synced():
            return MutationOutcome.FAILED

        async with self._lock:
            owner, generation = self.owner, self.generation
            if owner is None:
                return MutationOutcome.SKIPPED

            try:
                deleted = await self.store.delete(owner, entry_id)
            except RemoteFailure as e:
                return self._failed("remove", owner, e, "Failed to remove item from wishlist")

            if not self._is_current(owner, generation):
                return self._stale("remove", owner)

            removed = next((entry for entry in self._entries if entry.id == entry_id), None)
            self._entries = [entry for entry in self._entries if entry.id != entry_id]

            if not deleted and removed is None:
                logger.warning(f"Wishlist entry {entry_id} not found for {owner}")
                return MutationOutcome.SKIPPED

            logger.info(f"Removed wishlist entry {entry_id} of {owner}")
            self._notify(NoticeKind.SUCCESS, "Item removed from your wishlist")

            await self._publish("wishlist.item.removed", "item_removed_from_wishlist", owner, {
                "entry_id": entry_id,
                "product_id": removed.product_id if removed else None
            })
            return MutationOutcome.APPLIED
