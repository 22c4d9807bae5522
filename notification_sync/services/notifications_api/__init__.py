import aiohttp
import asyncio
import inspect
import structlog
from pydantic import BaseModel, ValidationError
from typing import Optional, Dict, Any, Callable, Awaitable, Union, Type, TypeVar

from notification_sync.core.config import settings
from notification_sync.schemas.notifications import NotificationPage, MutationResult
from notification_sync.services.interfaces import IRemoteNotificationService

# Экспортируем исключения для удобного доступа
from .base import (
    NotificationsAPIError, NotificationsTransportError, NotificationsAuthError,
    NotificationsRateLimitError, NotificationsNotFoundError, STATUS_CODE_MAP,
    NO_RESPONSE_MESSAGE, DEFAULT_ERROR_MESSAGE,
)
from .notifications import NotificationsSection

log = structlog.get_logger(__name__)

TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]
ModelT = TypeVar("ModelT", bound=BaseModel)


class NotificationsAPI(IRemoteNotificationService):
    """
    HTTP-реализация удаленного сервиса уведомлений поверх aiohttp.
    Сырые эндпоинты доступны через раздел `notifications`,
    а методы контракта возвращают уже провалидированные модели.

    Класс управляет жизненным циклом одного aiohttp.ClientSession,
    поэтому после работы его нужно закрыть (`close()` или `async with`).
    """
    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.NOTIFICATIONS_API_URL).rstrip("/") + "/"
        self.timeout = timeout or settings.NOTIFICATIONS_REQUEST_TIMEOUT
        self._token_provider = token_provider
        self._session: aiohttp.ClientSession | None = None

        self.notifications = NotificationsSection(self._make_request)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Ленивая инициализация сессии aiohttp."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def _auth_headers(self) -> Dict[str, str]:
        if self._token_provider is None:
            return {}
        token = self._token_provider()
        if inspect.isawaitable(token):
            token = await token
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _make_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        headers = await self._auth_headers()
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        try:
            for attempt in range(3):
                async with session.request(method, url, params=params, json=json, headers=headers) as response:
                    if response.status == 429:
                        wait_time = 1.5 + attempt * 2
                        log.warning("notifications_api.rate_limited", path=path, retry_in_sec=wait_time)
                        await asyncio.sleep(wait_time)
                        continue

                    if response.status == 204:
                        return None

                    data = await response.json() if response.content_type == 'application/json' else None

                    if response.status >= 400:
                        message = (data.get("message") if isinstance(data, dict) else None) \
                            or response.reason or DEFAULT_ERROR_MESSAGE
                        ExceptionClass = STATUS_CODE_MAP.get(response.status, NotificationsAPIError)
                        raise ExceptionClass(message, response.status)

                    if data is None:
                        raw_text = await response.text()
                        raise NotificationsAPIError(
                            f"Server returned a non-JSON response. Status: {response.status}. Body: {raw_text[:200]}",
                            response.status,
                        )
                    return data

            raise NotificationsRateLimitError("Too many requests, retries exhausted.", 429)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("notifications_api.no_response", method=method, path=path, error=f"{type(e).__name__}: {e}")
            raise NotificationsTransportError(NO_RESPONSE_MESSAGE, 0) from e

    @staticmethod
    def _parse(model: Type[ModelT], raw: Any) -> ModelT:
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            raise NotificationsAPIError(f"Unexpected response format for {model.__name__}: {e.error_count()} errors") from e

    async def get_notifications(self, page: int = 1, page_size: int = 20) -> NotificationPage:
        raw = await self.notifications.get(page=page, page_size=page_size)
        if raw is None:
            raise NotificationsAPIError("Empty response for notifications page")
        return self._parse(NotificationPage, raw)

    async def mark_as_read(self, notification_id: str) -> MutationResult:
        raw = await self.notifications.markRead(notification_id)
        return self._parse(MutationResult, raw or {})

    async def mark_all_as_read(self) -> MutationResult:
        raw = await self.notifications.markAllRead()
        return self._parse(MutationResult, raw or {})

    async def delete_notification(self, notification_id: str) -> MutationResult:
        raw = await self.notifications.delete(notification_id)
        return self._parse(MutationResult, raw or {})
