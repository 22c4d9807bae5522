# notification_sync/services/sync_scheduler.py
import asyncio
import structlog
from typing import Optional

from notification_sync.core.config_loader import SYNC_CONFIG
from notification_sync.core.enums import SchedulerState
from notification_sync.services.mutation_coordinator import MutationCoordinator

log = structlog.get_logger(__name__)

TIMER_TASK_NAME = "notification-sync-timer"


class SyncScheduler:
    """
    Периодическое тихое обновление. Два состояния: IDLE и RUNNING.
    Одновременно существует не больше одного таймера, а тик, пришедший
    пока предыдущее обновление еще не завершилось, пропускается.
    """

    def __init__(self, coordinator: MutationCoordinator, default_interval_ms: Optional[int] = None):
        self._coordinator = coordinator
        self.default_interval_ms = default_interval_ms or SYNC_CONFIG.auto_refresh.interval_ms
        self.state = SchedulerState.IDLE
        self.interval_ms: Optional[int] = None
        self.ticks = 0
        self.skipped_ticks = 0
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None
        # Точка подмены в тестах
        self._sleep = asyncio.sleep

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    def start(self, interval_ms: Optional[int] = None):
        if interval_ms is None:
            interval_ms = self.default_interval_ms
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        if self.state is SchedulerState.RUNNING:
            self._cancel_timer()

        self.interval_ms = interval_ms
        self._timer = asyncio.get_running_loop().create_task(
            self._run(interval_ms / 1000), name=TIMER_TASK_NAME
        )
        self.state = SchedulerState.RUNNING
        log.info("scheduler.started", interval_ms=interval_ms)

    def stop(self):
        if self.state is SchedulerState.IDLE:
            return
        self._cancel_timer()
        self.state = SchedulerState.IDLE
        log.info("scheduler.stopped", ticks=self.ticks, skipped_ticks=self.skipped_ticks)

    def _cancel_timer(self):
        # Уже идущее обновление не прерывается, просто не будет новых тиков
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _run(self, interval_seconds: float):
        while True:
            await self._sleep(interval_seconds)
            self.tick()

    def tick(self) -> bool:
        """Запускает тихое обновление, если предыдущее от планировщика уже завершилось."""
        if self._in_flight is not None and not self._in_flight.done():
            self.skipped_ticks += 1
            log.debug("scheduler.tick_skipped", skipped_ticks=self.skipped_ticks)
            return False

        self.ticks += 1
        # Отдельная задача: отмена таймера не должна обрывать запрос на лету
        self._in_flight = asyncio.get_running_loop().create_task(self._coordinator.refresh())
        return True

    async def wait_in_flight(self):
        if self._in_flight is not None and not self._in_flight.done():
            await self._in_flight
