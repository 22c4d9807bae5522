from notification_sync.core.exceptions import NotificationSyncError

# --- ИСКЛЮЧЕНИЯ ---
class NotificationsAPIError(NotificationSyncError):
    def __init__(self, message: str, status_code: int = 0):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

class NotificationsTransportError(NotificationsAPIError): pass
class NotificationsAuthError(NotificationsAPIError): pass
class NotificationsRateLimitError(NotificationsAPIError): pass
class NotificationsNotFoundError(NotificationsAPIError): pass

STATUS_CODE_MAP = {
    401: NotificationsAuthError, 403: NotificationsAuthError,
    404: NotificationsNotFoundError, 429: NotificationsRateLimitError,
}

NO_RESPONSE_MESSAGE = "No response from server. Please check your connection."
DEFAULT_ERROR_MESSAGE = "An error occurred"

# --- БАЗОВЫЙ КЛАСС ДЛЯ РАЗДЕЛОВ ---
class BaseAPISection:
    def __init__(self, request_method: callable):
        self._make_request = request_method
