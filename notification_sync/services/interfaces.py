from abc import ABC, abstractmethod
from notification_sync.schemas.notifications import NotificationPage, MutationResult

class IRemoteNotificationService(ABC):
    """
    Контракт удаленного хранилища уведомлений. Любой вызов может упасть,
    и движок считает провалом исключение, отклоненный запрос или флаг ошибки в ответе.
    """
    @abstractmethod
    async def get_notifications(self, page: int, page_size: int) -> NotificationPage:
        ...

    @abstractmethod
    async def mark_as_read(self, notification_id: str) -> MutationResult:
        ...

    @abstractmethod
    async def mark_all_as_read(self) -> MutationResult:
        ...

    @abstractmethod
    async def delete_notification(self, notification_id: str) -> MutationResult:
        ...
