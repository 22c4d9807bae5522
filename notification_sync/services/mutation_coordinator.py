# notification_sync/services/mutation_coordinator.py
import asyncio
import structlog
from typing import Awaitable, Callable, Optional, Set

from notification_sync.core.enums import MutationAction
from notification_sync.core.exceptions import (
    RecoveredMutationFailure, RemoteRejectedError, StaleResponseDiscarded,
)
from notification_sync.schemas.notifications import MutationResult
from notification_sync.services.interfaces import IRemoteNotificationService
from notification_sync.services.notification_cache import NotificationCache

log = structlog.get_logger(__name__)

FETCH_FAILURE_MESSAGE = "Failed to fetch notifications"


class MutationCoordinator:
    """
    Двухфазный протокол для каждого изменяющего действия:

    1. Оптимистичное применение: кеш меняется синхронно, результат виден сразу.
    2. Подтверждение на сервере в отдельной задаче. При провале локальное
       изменение перетирается принудительным тихим обновлением текущей страницы,
       а текст ошибки сохраняется в `error`.

    Каждый запрос страницы получает номер при выдаче. Ответ применяется
    только если его номер самый большой из выданных, иначе он отбрасывается,
    чтобы медленный старый ответ не затер более свежее состояние.
    """

    def __init__(self, cache: NotificationCache, remote: IRemoteNotificationService):
        self.cache = cache
        self._remote = remote
        self.loading = False
        self.error: Optional[str] = None
        self._sequence = 0
        self._latest_loud_sequence = 0
        self._pending: Set[asyncio.Task] = set()
        # Подтверждения, выданные до reset(), сверяются с поколением и ничего не меняют
        self._generation = 0

    @property
    def latest_sequence(self) -> int:
        return self._sequence

    # --- обновление ---

    def _issue_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    async def _fetch(self, page: int, sequence: int):
        response = await self._remote.get_notifications(page, self.cache.page_size)
        if response.error:
            raise RemoteRejectedError(FETCH_FAILURE_MESSAGE)
        if sequence != self._sequence:
            raise StaleResponseDiscarded(sequence, self._sequence)
        self.cache.replace_page(response.data, response.page, response.page_size, response.total)

    async def fetch_page(self, page: int = 1) -> bool:
        """Громкое обновление: переключает `loading` и сообщает об ошибке через `error`."""
        if page < 1:
            raise ValueError("page must be >= 1")

        sequence = self._issue_sequence()
        self._latest_loud_sequence = sequence
        self.loading = True
        self.error = None
        try:
            await self._fetch(page, sequence)
            return True
        except StaleResponseDiscarded as e:
            log.debug("refresh.stale_discarded", sequence=e.sequence, latest=e.latest_sequence, loud=True)
            return False
        except Exception as e:
            log.error("refresh.loud_failed", page=page, sequence=sequence, error=str(e))
            # Данные не очищаем: остается то, что было загружено раньше
            if sequence == self._latest_loud_sequence:
                self.error = str(e) or FETCH_FAILURE_MESSAGE
            return False
        finally:
            if sequence == self._latest_loud_sequence:
                self.loading = False

    async def refresh(self) -> bool:
        """
        Тихое обновление текущей страницы. Не трогает `loading` и `error`,
        любые ошибки только логируются.
        """
        sequence = self._issue_sequence()
        page = self.cache.page
        try:
            await self._fetch(page, sequence)
            return True
        except StaleResponseDiscarded as e:
            log.debug("refresh.stale_discarded", sequence=e.sequence, latest=e.latest_sequence, loud=False)
        except Exception:
            log.exception("refresh.silent_failed", page=page, sequence=sequence)
        return False

    def reset(self):
        """
        Забывает все, что было выдано до сих пор: ответы уже отправленных
        запросов станут устаревшими, а незавершенные подтверждения не будут
        ни обновлять страницу, ни выставлять `error`.
        """
        self._issue_sequence()
        self._latest_loud_sequence = self._sequence
        self._generation += 1
        self.loading = False
        self.error = None
        log.info("coordinator.reset", sequence=self._sequence, pending=len(self._pending))

    # --- мутации ---

    def mark_read(self, notification_id: str) -> asyncio.Task:
        self.cache.set_read_locally(notification_id)
        return self._confirm(
            MutationAction.MARK_READ, notification_id,
            lambda: self._remote.mark_as_read(notification_id),
        )

    def mark_all_read(self) -> asyncio.Task:
        self.cache.set_all_read_locally()
        # На сервере "все" означает все на текущий момент, включая то, чего нет в кеше
        return self._confirm(
            MutationAction.MARK_ALL_READ, None,
            self._remote.mark_all_as_read,
            refresh_on_success=True,
        )

    def delete(self, notification_id: str) -> asyncio.Task:
        self.cache.remove_locally(notification_id)
        return self._confirm(
            MutationAction.DELETE, notification_id,
            lambda: self._remote.delete_notification(notification_id),
        )

    def _confirm(
        self,
        action: MutationAction,
        notification_id: Optional[str],
        remote_call: Callable[[], Awaitable[Optional[MutationResult]]],
        refresh_on_success: bool = False,
    ) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(
            self._run_confirmation(action, notification_id, remote_call, refresh_on_success, self._generation)
        )
        # Держим ссылку, чтобы задачу не собрал GC до завершения
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run_confirmation(
        self,
        action: MutationAction,
        notification_id: Optional[str],
        remote_call: Callable[[], Awaitable[Optional[MutationResult]]],
        refresh_on_success: bool,
        generation: int,
    ) -> bool:
        try:
            result = await remote_call()
            if result is not None and not result.ok:
                raise RemoteRejectedError(result.message or "")
        except Exception as e:
            failure = RecoveredMutationFailure(action, notification_id, e)
            if generation != self._generation:
                log.info("mutation.voided_by_reset", action=action.value, notification_id=notification_id)
                return False
            log.warning(
                "mutation.remote_failed",
                action=action.value, notification_id=notification_id, error=failure.message,
            )
            await self.refresh()
            self.error = failure.message
            return False

        log.debug("mutation.confirmed", action=action.value, notification_id=notification_id)
        if refresh_on_success and generation == self._generation:
            await self.refresh()
        return True

    async def drain(self):
        """Дожидается всех незавершенных подтверждений (удобно при закрытии и в тестах)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
