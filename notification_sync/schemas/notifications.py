# notification_sync/schemas/notifications.py
import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional, Dict, Any

from notification_sync.core.enums import NotificationType

log = structlog.get_logger(__name__)

KNOWN_TYPES = {item.value for item in NotificationType}

class WireModel(BaseModel):
    """Сервер отдает camelCase (`isRead`, `pageSize`), внутри используем snake_case."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

class NotificationPoster(WireModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    profile_pic_link: Optional[str] = None
    role: str = ""

class Notification(WireModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    profile_pic: Optional[str] = None
    is_read: bool = False
    delivered: bool = False
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None
    user: Optional[NotificationPoster] = None

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, value):
        # Сервер присылает типы в верхнем регистре ("MESSAGE")
        return value.lower() if isinstance(value, str) else value

    @field_validator("data", mode="before")
    @classmethod
    def _empty_data(cls, value):
        return value if value is not None else {}

class NotificationPage(WireModel):
    error: bool = False
    data: List[Notification] = Field(default_factory=list)
    page: int = Field(1, ge=1)
    page_size: int = Field(20, gt=0)
    total: int = Field(0, ge=0)

    @field_validator("data", mode="before")
    @classmethod
    def _skip_unknown_types(cls, value):
        # Новый тип на сервере не должен ломать всю ленту: такие записи пропускаем
        if not isinstance(value, list):
            return value
        known = []
        for item in value:
            raw_type = item.get("type") if isinstance(item, dict) else None
            if isinstance(raw_type, str) and raw_type.lower() not in KNOWN_TYPES:
                log.warning("page.unknown_type_skipped", notification_id=item.get("id"), type=raw_type)
                continue
            known.append(item)
        return known

class MutationResult(WireModel):
    error: bool = False
    message: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_ok_flag(cls, values):
        # Часть эндпоинтов отвечает {"ok": true} вместо {"error": false}
        if isinstance(values, dict) and "ok" in values and "error" not in values:
            values = {**values, "error": not values["ok"]}
        return values

    @property
    def ok(self) -> bool:
        return not self.error


class NotificationTypeMeta(BaseModel):
    prefix: str
    is_system: bool

NOTIFICATION_TYPE_META: Dict[NotificationType, NotificationTypeMeta] = {
    NotificationType.MESSAGE: NotificationTypeMeta(prefix="New message from", is_system=False),
    NotificationType.SYSTEM: NotificationTypeMeta(prefix="Course reminder from", is_system=True),
    NotificationType.ANNOUNCEMENT: NotificationTypeMeta(prefix="Announcement from", is_system=True),
    NotificationType.PAYMENT: NotificationTypeMeta(prefix="Payment reminder from", is_system=True),
    NotificationType.ENROLLMENT: NotificationTypeMeta(prefix="Enrollment update from", is_system=True),
}

def describe_sender(notification: Notification) -> str:
    """
    Строка вида "New message from Ivan Petrov".
    Имя берется из вложенного автора, иначе из `data.posterFirstName/posterLastName`.
    """
    meta = NOTIFICATION_TYPE_META[notification.type]
    if notification.user:
        first, last = notification.user.first_name, notification.user.last_name
    else:
        first = notification.data.get("posterFirstName", "")
        last = notification.data.get("posterLastName", "")
    name = " ".join(part for part in (first, last) if part)
    return f"{meta.prefix} {name}" if name else meta.prefix
