# notification_sync/services/notification_cache.py
import structlog
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from notification_sync.core.config_loader import SYNC_CONFIG
from notification_sync.schemas.notifications import Notification

log = structlog.get_logger(__name__)


class UnreadView:
    """
    Ленивое представление непрочитанных уведомлений кеша.
    Ничего не копирует: каждый проход заново фильтрует текущие записи,
    поэтому два прохода без мутаций между ними дают одну и ту же последовательность.
    """
    __slots__ = ("_cache",)

    def __init__(self, cache: "NotificationCache"):
        self._cache = cache

    def __iter__(self) -> Iterator[Notification]:
        return (record for record in self._cache._records if not record.is_read)

    def __len__(self) -> int:
        return self._cache.unread_count

    def __getitem__(self, index):
        # Индекс считается по непрочитанным, как их видит текущий проход
        return list(self)[index]

    def __bool__(self) -> bool:
        return self._cache.unread_count > 0

    def __repr__(self) -> str:
        return f"UnreadView(count={len(self)})"


class NotificationCache:
    """
    Зеркало одной страницы уведомлений в памяти. Единственное место, где хранится состояние.

    Счетчик непрочитанных никогда не меняется инкрементом/декрементом:
    после каждой мутации он пересчитывается по самим записям.
    Кеш не делает I/O, все методы синхронные.
    """

    def __init__(self, page_size: Optional[int] = None):
        self._default_page_size = page_size or SYNC_CONFIG.pagination.page_size
        self.reset()

    def reset(self):
        """Возвращает кеш в начальное состояние (до первой загрузки)."""
        self._records: List[Notification] = []
        self._positions: Dict[str, int] = {}
        self._page = 1
        self._page_size = self._default_page_size
        self._total = 0
        self._loaded = False
        self._unread_count = 0

    # --- чтение ---

    @property
    def records(self) -> Tuple[Notification, ...]:
        return tuple(self._records)

    @property
    def page(self) -> int:
        return self._page

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def total(self) -> int:
        return self._total

    @property
    def has_more(self) -> bool:
        # До первой загрузки считаем, что данные есть
        if not self._loaded:
            return True
        return self._page * self._page_size < self._total

    @property
    def unread_count(self) -> int:
        return self._unread_count

    def get(self, notification_id: str) -> Optional[Notification]:
        position = self._positions.get(notification_id)
        return self._records[position] if position is not None else None

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._positions

    def unread_view(self) -> UnreadView:
        return UnreadView(self)

    # --- мутации ---

    def replace_page(self, records: Iterable[Notification], page: int, page_size: int, total: int):
        """
        Полностью заменяет записи и метаданные пагинации ответом одного запроса.
        Это единственный способ изменить page/page_size.
        """
        unique: List[Notification] = []
        positions: Dict[str, int] = {}
        for record in records:
            if record.id in positions:
                log.warning("cache.duplicate_id_dropped", notification_id=record.id, page=page)
                continue
            positions[record.id] = len(unique)
            unique.append(record)

        self._records = unique
        self._positions = positions
        self._page = page
        self._page_size = page_size
        self._total = total
        self._loaded = True
        self._recount()

    def set_read_locally(self, notification_id: str) -> bool:
        position = self._positions.get(notification_id)
        changed = position is not None and not self._records[position].is_read
        if changed:
            # Заменяем запись на той же позиции, порядок не меняется
            self._records[position] = self._records[position].model_copy(update={"is_read": True})
        self._recount()
        return changed

    def set_all_read_locally(self) -> int:
        changed = 0
        for position, record in enumerate(self._records):
            if not record.is_read:
                self._records[position] = record.model_copy(update={"is_read": True})
                changed += 1
        self._recount()
        return changed

    def remove_locally(self, notification_id: str) -> bool:
        position = self._positions.get(notification_id)
        if position is None:
            self._recount()
            return False

        del self._records[position]
        self._positions = {record.id: index for index, record in enumerate(self._records)}
        self._total = max(self._total - 1, 0)
        self._recount()
        return True

    def _recount(self):
        self._unread_count = sum(1 for record in self._records if not record.is_read)
