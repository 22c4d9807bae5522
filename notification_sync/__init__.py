# notification_sync/__init__.py

from notification_sync.services.notification_store import NotificationStore, create_store
from notification_sync.services.notification_cache import NotificationCache, UnreadView
from notification_sync.services.mutation_coordinator import MutationCoordinator
from notification_sync.services.sync_scheduler import SyncScheduler
from notification_sync.schemas.notifications import Notification, NotificationPage, MutationResult

__version__ = "0.1.0"
