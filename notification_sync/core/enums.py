# notification_sync/core/enums.py
import enum

class NotificationType(str, enum.Enum):
    MESSAGE = "message"
    SYSTEM = "system"
    ANNOUNCEMENT = "announcement"
    PAYMENT = "payment"
    ENROLLMENT = "enrollment"

class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"

class MutationAction(str, enum.Enum):
    MARK_READ = "mark_read"
    MARK_ALL_READ = "mark_all_read"
    DELETE = "delete"
