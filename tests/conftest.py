import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import pytest

from notification_sync.schemas.notifications import Notification, NotificationPage, MutationResult
from notification_sync.services.interfaces import IRemoteNotificationService
from notification_sync.services.notification_cache import NotificationCache
from notification_sync.services.mutation_coordinator import MutationCoordinator


def build_notification(notification_id: str, is_read: bool = False, **overrides: Any) -> Notification:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    payload: Dict[str, Any] = {
        "id": notification_id,
        "userId": "user-1",
        "type": "message",
        "title": f"Title {notification_id}",
        "message": f"Body {notification_id}",
        "isRead": is_read,
        "delivered": True,
        "createdAt": now,
        "updatedAt": now,
    }
    payload.update(overrides)
    return Notification.model_validate(payload)


class FakeRemote(IRemoteNotificationService):
    """
    Имитация сервера: хранит авторитетный список и честно применяет мутации.
    `failures` позволяет заставить конкретный метод упасть,
    `gate` — придержать ответы get_notifications до ручного освобождения.
    """

    def __init__(self):
        self.records: List[Notification] = []
        self.total: Optional[int] = None
        self.failures: Dict[str, BaseException] = {}
        self.rejections: Dict[str, str] = {}
        self.calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None
        self.closed = False

    def _maybe_fail(self, method: str):
        error = self.failures.get(method)
        if error is not None:
            raise error

    async def get_notifications(self, page: int, page_size: int) -> NotificationPage:
        self.calls.append(("get_notifications", page, page_size))
        if self.gate is not None:
            await self.gate.wait()
        self._maybe_fail("get_notifications")
        start = (page - 1) * page_size
        window = [record.model_copy() for record in self.records[start:start + page_size]]
        total = self.total if self.total is not None else len(self.records)
        return NotificationPage(data=window, page=page, page_size=page_size, total=total)

    async def mark_as_read(self, notification_id: str) -> MutationResult:
        self.calls.append(("mark_as_read", notification_id))
        self._maybe_fail("mark_as_read")
        if "mark_as_read" in self.rejections:
            return MutationResult(error=True, message=self.rejections["mark_as_read"])
        self.records = [
            r.model_copy(update={"is_read": True}) if r.id == notification_id else r for r in self.records
        ]
        return MutationResult(error=False, message="Notification marked as read")

    async def mark_all_as_read(self) -> MutationResult:
        self.calls.append(("mark_all_as_read",))
        self._maybe_fail("mark_all_as_read")
        self.records = [r.model_copy(update={"is_read": True}) for r in self.records]
        return MutationResult(error=False, message="All notifications marked as read")

    async def delete_notification(self, notification_id: str) -> MutationResult:
        self.calls.append(("delete_notification", notification_id))
        self._maybe_fail("delete_notification")
        self.records = [r for r in self.records if r.id != notification_id]
        return MutationResult(error=False, message="Notification deleted")

    async def close(self):
        self.closed = True

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)


@pytest.fixture
def make_notification() -> Callable[..., Notification]:
    return build_notification


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def cache() -> NotificationCache:
    return NotificationCache(page_size=20)


@pytest.fixture
def coordinator(cache: NotificationCache, remote: FakeRemote) -> MutationCoordinator:
    return MutationCoordinator(cache, remote)


@pytest.fixture
def seeded(cache: NotificationCache, remote: FakeRemote):
    """Кеш и сервер с двумя непрочитанными уведомлениями `a` и `b`."""
    records = [build_notification("a"), build_notification("b")]
    remote.records = [r.model_copy() for r in records]
    cache.replace_page(records, page=1, page_size=20, total=2)
    return cache
