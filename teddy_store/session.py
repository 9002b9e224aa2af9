import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnerChanged:
    """Событие смены пользователя (вход/выход)"""
    previous: Optional[str]
    current: Optional[str]
    generation: int


OwnerListener = Callable[[OwnerChanged], None]


class Subscription:
    """Подписка на смену пользователя; снимается через unsubscribe()"""

    def __init__(self, provider: "SessionProvider", token: int):
        self._provider = provider
        self._token = token
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._provider._listeners.pop(self._token, None)
            self.active = False


class SessionProvider:
    """
    Источник текущего пользователя для одной браузерной сессии.

    Каждый вход или выход увеличивает generation, слушатели получают
    OwnerChanged синхронно и в порядке подписки.
    """

    def __init__(self, owner: Optional[str] = None):
        self._owner = owner
        self._generation = 0
        self._listeners: Dict[int, OwnerListener] = {}
        self._next_token = 0

    @property
    def current_owner(self) -> Optional[str]:
        return self._owner

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, listener: OwnerListener) -> Subscription:
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener
        return Subscription(self, token)

    def sign_in(self, owner: str):
        """Вход пользователя"""
        if not owner:
            raise ValueError("owner must be a non-empty user id")
        self._change_owner(owner)

    def sign_out(self):
        """Выход пользователя"""
        self._change_owner(None)

    def _change_owner(self, owner: Optional[str]):
        previous = self._owner
        self._owner = owner
        self._generation += 1
        event = OwnerChanged(previous=previous, current=owner, generation=self._generation)

        logger.info(f"Session owner changed: {previous} -> {owner} (generation {self._generation})")

        for listener in list(self._listeners.values()):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"❌ Owner change listener failed: {e}")
