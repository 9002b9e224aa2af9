import logging
from typing import List, Protocol

from .schemas.notice import Notice, NoticeKind

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def notify(self, kind: NoticeKind, message: str) -> None:
        ...


class NoticeBuffer:
    """Копит уведомления сессии до следующего ответа API"""

    def __init__(self):
        self._notices: List[Notice] = []

    def notify(self, kind: NoticeKind, message: str) -> None:
        self._notices.append(Notice(kind=kind, message=message))

    def peek(self) -> List[Notice]:
        return list(self._notices)

    def drain(self) -> List[Notice]:
        notices, self._notices = self._notices, []
        return notices


class FanOutNotifier:
    """Рассылает уведомление во все sink'и; сбой одного не мешает остальным"""

    def __init__(self, *sinks: NotificationSink):
        self.sinks = list(sinks)

    def notify(self, kind: NoticeKind, message: str) -> None:
        for sink in self.sinks:
            try:
                sink.notify(kind, message)
            except Exception as e:
                logger.error(f"❌ Notification sink {type(sink).__name__} failed: {e}")
