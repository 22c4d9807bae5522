# notification_sync/core/exceptions.py
from notification_sync.core.enums import MutationAction

class NotificationSyncError(Exception):
    """Базовое исключение движка синхронизации уведомлений."""
    pass

class RemoteRejectedError(NotificationSyncError):
    """Сервер ответил 2xx, но с флагом ошибки в теле (`error: true` / `ok: false`)."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

class StaleResponseDiscarded(NotificationSyncError):
    """
    Внутреннее условие: ответ на обновление пришел после того, как был выдан
    более новый запрос. Такой ответ отбрасывается и никогда не показывается пользователю.
    """
    def __init__(self, sequence: int, latest_sequence: int):
        self.sequence = sequence
        self.latest_sequence = latest_sequence
        super().__init__(f"Refresh #{sequence} discarded, latest issued is #{latest_sequence}")

# Сообщения по умолчанию, если у исходной ошибки нет текста
MUTATION_FAILURE_MESSAGES = {
    MutationAction.MARK_READ: "Failed to mark notification as read",
    MutationAction.MARK_ALL_READ: "Failed to mark all as read",
    MutationAction.DELETE: "Failed to delete notification",
}

class RecoveredMutationFailure(NotificationSyncError):
    """
    Вторая фаза мутации (подтверждение на сервере) провалилась.
    Локальное состояние уже восстановлено принудительным тихим обновлением,
    а текст ошибки сохраняется в поле `error` координатора.
    """
    def __init__(self, action: MutationAction, notification_id: str | None, cause: BaseException):
        self.action = action
        self.notification_id = notification_id
        self.cause = cause
        self.message = str(cause) or MUTATION_FAILURE_MESSAGES.get(action, "Notification update failed")
        super().__init__(self.message)
