# notification_sync/services/notification_store.py
import asyncio
import structlog
from typing import Optional, Tuple

from notification_sync.core.config import Settings, settings as default_settings
from notification_sync.core.logging import configure_logging
from notification_sync.schemas.notifications import Notification
from notification_sync.services.interfaces import IRemoteNotificationService
from notification_sync.services.mutation_coordinator import MutationCoordinator
from notification_sync.services.notification_cache import NotificationCache, UnreadView
from notification_sync.services.notifications_api import NotificationsAPI
from notification_sync.services.sync_scheduler import SyncScheduler

log = structlog.get_logger(__name__)


class NotificationStore:
    """
    Фасад для остального приложения. Создается явно и передается по ссылке
    туда, где нужен; глобального экземпляра нет.
    """

    def __init__(
        self,
        remote: IRemoteNotificationService,
        page_size: Optional[int] = None,
        default_interval_ms: Optional[int] = None,
    ):
        self._remote = remote
        self.cache = NotificationCache(page_size=page_size)
        self.coordinator = MutationCoordinator(self.cache, remote)
        self.scheduler = SyncScheduler(self.coordinator, default_interval_ms=default_interval_ms)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    # --- состояние только для чтения ---

    @property
    def loading(self) -> bool:
        return self.coordinator.loading

    @property
    def error(self) -> Optional[str]:
        return self.coordinator.error

    @property
    def unread_count(self) -> int:
        return self.cache.unread_count

    @property
    def has_more(self) -> bool:
        return self.cache.has_more

    @property
    def notifications(self) -> Tuple[Notification, ...]:
        return self.cache.records

    @property
    def total(self) -> int:
        return self.cache.total

    @property
    def page(self) -> int:
        return self.cache.page

    # --- действия ---

    async def fetch_page(self, page: int = 1) -> bool:
        return await self.coordinator.fetch_page(page)

    async def refresh(self) -> bool:
        return await self.coordinator.refresh()

    def mark_read(self, notification_id: str) -> asyncio.Task:
        return self.coordinator.mark_read(notification_id)

    def mark_all_read(self) -> asyncio.Task:
        return self.coordinator.mark_all_read()

    def delete(self, notification_id: str) -> asyncio.Task:
        return self.coordinator.delete(notification_id)

    def unread_view(self) -> UnreadView:
        return self.cache.unread_view()

    def start_auto_refresh(self, interval_ms: Optional[int] = None):
        self.scheduler.start(interval_ms)

    def stop_auto_refresh(self):
        self.scheduler.stop()

    def reset(self):
        """Останавливает автообновление и возвращает состояние к начальному (например, при выходе)."""
        self.scheduler.stop()
        self.coordinator.reset()
        self.cache.reset()

    async def aclose(self):
        self.scheduler.stop()
        await self.scheduler.wait_in_flight()
        await self.coordinator.drain()
        close = getattr(self._remote, "close", None)
        if close is not None:
            await close()


def create_store(app_settings: Optional[Settings] = None, token_provider=None) -> NotificationStore:
    """Собирает хранилище, подключенное к HTTP API из настроек."""
    app_settings = app_settings or default_settings
    configure_logging(app_settings.LOG_LEVEL)

    if token_provider is None and app_settings.NOTIFICATIONS_API_TOKEN:
        static_token = app_settings.NOTIFICATIONS_API_TOKEN
        token_provider = lambda: static_token

    remote = NotificationsAPI(
        base_url=app_settings.NOTIFICATIONS_API_URL,
        token_provider=token_provider,
        timeout=app_settings.NOTIFICATIONS_REQUEST_TIMEOUT,
    )
    log.info("store.created", api_url=app_settings.NOTIFICATIONS_API_URL)
    return NotificationStore(remote)
