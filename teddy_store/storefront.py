import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from .config import settings
from .events.publisher import EventPublisher, KafkaNotifier
from .notifications import FanOutNotifier, NoticeBuffer
from .services.cart_reconciler import CartReconciler
from .services.wishlist_reconciler import WishlistReconciler
from .session import SessionProvider
from .stores.base import CartStore, WishlistStore

logger = logging.getLogger(__name__)


class StorefrontSession:
    """Состояние одной браузерной сессии: пользователь, корзина, избранное, уведомления"""

    def __init__(
            self,
            session_id: str,
            cart_store: CartStore,
            wishlist_store: WishlistStore,
            events: Optional[EventPublisher] = None
    ):
        self.session_id = session_id
        self.auth = SessionProvider()
        self.notices = NoticeBuffer()

        sinks = [self.notices]
        if events is not None:
            sinks.append(KafkaNotifier(events, owner_getter=lambda: self.auth.current_owner))
        self.notifier = FanOutNotifier(*sinks)

        self.cart = CartReconciler(self.auth, cart_store, self.notifier, events)
        self.wishlist = WishlistReconciler(self.auth, wishlist_store, self.notifier, events)

    @property
    def owner(self) -> Optional[str]:
        return self.auth.current_owner

    async def sign_in(self, owner: str):
        self.auth.sign_in(owner)
        await self.cart.wait_loaded()
        await self.wishlist.wait_loaded()

    def sign_out(self):
        self.auth.sign_out()

    def close(self):
        self.cart.close()
        self.wishlist.close()


class SessionRegistry:
    """
    Реестр сессий по идентификатору из заголовка запроса.

    Сессия без запросов дольше idle_timeout закрывается; при превышении
    max_sessions закрываются самые давние.
    """

    def __init__(
            self,
            cart_store: CartStore,
            wishlist_store: WishlistStore,
            events: Optional[EventPublisher] = None,
            idle_timeout: Optional[float] = None,
            max_sessions: Optional[int] = None,
            clock: Callable[[], float] = time.monotonic
    ):
        self.cart_store = cart_store
        self.wishlist_store = wishlist_store
        self.events = events
        self.idle_timeout = settings.session_idle_timeout if idle_timeout is None else idle_timeout
        self.max_sessions = settings.max_sessions if max_sessions is None else max_sessions
        self.clock = clock
        # session_id -> (сессия, время последнего запроса), от давних к свежим
        self._sessions: "OrderedDict[str, Tuple[StorefrontSession, float]]" = OrderedDict()

    def get(self, session_id: str) -> StorefrontSession:
        now = self.clock()
        self.expire(now)

        entry = self._sessions.pop(session_id, None)
        if entry is None:
            session = StorefrontSession(session_id, self.cart_store, self.wishlist_store, self.events)
            logger.info(f"Created storefront session {session_id}")
        else:
            session = entry[0]
        self._sessions[session_id] = (session, now)

        while len(self._sessions) > self.max_sessions:
            oldest_id = next(iter(self._sessions))
            logger.warning(f"Session limit {self.max_sessions} reached, closing {oldest_id}")
            self.drop(oldest_id)

        return session

    def expire(self, now: Optional[float] = None) -> int:
        """Закрывает сессии, простаивающие дольше idle_timeout"""
        now = self.clock() if now is None else now
        idle = [
            session_id for session_id, (_, last_seen) in self._sessions.items()
            if now - last_seen > self.idle_timeout
        ]
        for session_id in idle:
            self.drop(session_id)
        if idle:
            logger.info(f"Closed {len(idle)} idle storefront sessions")
        return len(idle)

    def drop(self, session_id: str):
        entry = self._sessions.pop(session_id, None)
        if entry is not None:
            entry[0].close()

    def close_all(self):
        for session, _ in self._sessions.values():
            session.close()
        self._sessions.clear()

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self):
        return len(self._sessions)
