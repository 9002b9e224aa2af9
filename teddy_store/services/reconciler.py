import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Optional

from ..exceptions import RemoteFailure
from ..notifications import NotificationSink
from ..schemas.notice import NoticeKind
from ..session import OwnerChanged, SessionProvider

logger = logging.getLogger(__name__)


class ReconcilerState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    LOADING = "loading"
    READY = "ready"


class MutationOutcome(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"  # no-op: нет владельца, неверные аргументы или устаревший ответ
    UNAUTHENTICATED = "unauthenticated"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class BaseReconciler:
    """
    Общая часть корзины и избранного: зеркало записи текущего владельца.

    Мутации сериализуются через asyncio.Lock и всегда считаются от последнего
    подтвержденного зеркала. Каждая смена владельца увеличивает generation;
    ответ хранилища, пришедший после смены, отбрасывается.
    """

    resource = "record"

    def __init__(self, session: SessionProvider, notifier: NotificationSink, events=None):
        self.session = session
        self.notifier = notifier
        self.events = events

        self._owner: Optional[str] = None
        self._generation = 0
        self._state = ReconcilerState.UNAUTHENTICATED
        self._lock = asyncio.Lock()
        self._load_task: Optional[asyncio.Task] = None
        self._synced = False

        self._subscription = session.subscribe(self._on_owner_change)
        if session.current_owner is not None:
            self._on_owner_change(OwnerChanged(None, session.current_owner, session.generation))

    # Состояние

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    @property
    def state(self) -> ReconcilerState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def synced(self) -> bool:
        """Зеркало совпадает с последним подтвержденным состоянием хранилища"""
        return self._synced

    def _is_current(self, owner: str, generation: int) -> bool:
        return generation == self._generation and owner == self._owner

    # Подписка на сессию

    def _on_owner_change(self, event: OwnerChanged):
        """Вход/выход: зеркало очищается сразу, загрузка идет в фоне"""
        self._generation += 1
        self._owner = event.current
        self._reset_mirror()

        if event.current is None:
            self._state = ReconcilerState.UNAUTHENTICATED
            logger.info(f"{self.resource} mirror cleared after logout")
            return

        self._state = ReconcilerState.LOADING
        self._load_task = asyncio.get_running_loop().create_task(self.load(event.current))

    def _reset_mirror(self):
        self._clear_mirror()
        self._synced = False

    async def wait_loaded(self):
        """Дождаться фоновой загрузки после смены владельца"""
        task = self._load_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    def close(self):
        """Отписка от сессии и отмена фоновой загрузки"""
        self._subscription.unsubscribe()
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    # Загрузка

    async def load(self, owner: Optional[str]) -> MutationOutcome:
        """Загружает запись владельца и полностью заменяет зеркало"""
        generation = self._generation

        if owner is None:
            self._reset_mirror()
            self._state = ReconcilerState.UNAUTHENTICATED
            return MutationOutcome.SKIPPED

        async with self._lock:
            if not self._is_current(owner, generation):
                return MutationOutcome.SKIPPED

            self._state = ReconcilerState.LOADING
            try:
                data = await self._fetch(owner)
            except RemoteFailure as e:
                logger.error(f"❌ Error fetching {self.resource} for {owner}: {e}")
                if self._is_current(owner, generation):
                    self._reset_mirror()
                    self._state = ReconcilerState.READY
                    self._notify(NoticeKind.ERROR, f"Failed to load {self.resource}")
                return MutationOutcome.FAILED

            if not self._is_current(owner, generation):
                logger.info(f"Discarding stale {self.resource} load for {owner}")
                return MutationOutcome.SKIPPED

            self._apply_loaded(data)
            self._synced = True
            self._state = ReconcilerState.READY
            logger.info(f"Loaded {self.resource} for {owner}")
            return MutationOutcome.APPLIED

    # Вспомогательное для мутаций

    async def _ensure_synced(self) -> bool:
        """
        Перед мутацией зеркало должно быть загружено: иначе upsert
        перезапишет удаленную запись неполным списком.
        """
        await self.wait_loaded()
        owner = self._owner
        if owner is not None and not self._synced:
            await self.load(owner)
        return owner is None or self._synced

    def _notify(self, kind: NoticeKind, message: str):
        self.notifier.notify(kind, message)

    def _failed(self, operation: str, owner: str, error: RemoteFailure, message: str) -> MutationOutcome:
        logger.error(f"❌ Error during {operation} on {self.resource} for {owner}: {error}")
        self._notify(NoticeKind.ERROR, message)
        return MutationOutcome.FAILED

    def _stale(self, operation: str, owner: str) -> MutationOutcome:
        logger.warning(f"Owner changed during {operation} on {self.resource} for {owner}, result discarded")
        return MutationOutcome.SKIPPED

    async def _publish(self, topic: str, event_type: str, owner: str, payload: Dict[str, Any]):
        if self.events is None:
            return
        await self.events.publish_event(
            topic=topic,
            event_type=event_type,
            payload={"owner": owner, **payload},
            key=owner
        )

    # Переопределяется в наследниках

    async def _fetch(self, owner: str):
        raise NotImplementedError

    def _apply_loaded(self, data):
        raise NotImplementedError

    def _clear_mirror(self):
        raise NotImplementedError
