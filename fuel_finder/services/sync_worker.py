"""
Boucle de synchronisation en arrière-plan / Background synchronisation loop.
Une seule tentative en vol par processus ; l'attente est interrompue à l'arrêt.
One attempt in flight per process; the wait is interrupted on shutdown.
"""

import asyncio
import logging

from fuel_finder.services.clock import utc_now
from fuel_finder.services.fuel_api_client import FuelApiError
from fuel_finder.services.sync_scheduler import SchedulerState, SyncDecision, SyncScheduler
from fuel_finder.services.sync_service import SyncResult, SyncService

log = logging.getLogger(__name__)


class SyncWorker:
    def __init__(self, service: SyncService, scheduler: SyncScheduler, now_fn=utc_now):
        self.service = service
        self.scheduler = scheduler
        self._now_fn = now_fn
        self._stop = asyncio.Event()

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    async def tick(self) -> tuple[SyncDecision, SyncResult | None]:
        """Un tick : décision puis synchro éventuelle / One tick: decide, then maybe sync."""
        now = self._now_fn()
        last_sync = await self.service.last_sync_checkpoint()
        decision = self.scheduler.decide(now, last_sync)
        self.scheduler.log_checkpoint(now, decision)

        if self.scheduler.on_tick(now, decision) != SchedulerState.DUE:
            if self.scheduler.state == SchedulerState.COOLING_DOWN:
                log.info("Sync cooling down until %s", self.scheduler.cooldown_until)
            return decision, None

        self.scheduler.on_started()
        try:
            result = await self.service.synchronize()
        except FuelApiError as exc:
            # Échec amont : rien n'a été écrit, on reprend au calendrier normal /
            # Upstream failure: nothing written, resume the normal schedule
            log.error("Fuel data synchronisation aborted by upstream error: %s", exc)
            self.scheduler.on_finished(self._now_fn(), succeeded=True)
            return decision, None
        except asyncio.CancelledError:
            self.scheduler.on_finished(self._now_fn(), succeeded=False)
            raise
        except Exception:
            log.exception(
                "Fuel data synchronisation failed (%s); backing off for %s.",
                decision.reason.value,
                self.scheduler.config.failure_backoff,
            )
            self.scheduler.on_finished(self._now_fn(), succeeded=False)
            return decision, None

        self.scheduler.on_finished(self._now_fn(), succeeded=True)
        return decision, result

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def run(self) -> None:
        log.info("Fuel data sync worker starting.")
        while not self.stopping:
            try:
                decision, _ = await self.tick()
                delay = self.scheduler.next_sleep(decision)
            except asyncio.CancelledError:
                raise
            except Exception:
                # Lecture du checkpoint impossible, etc. / Checkpoint unreadable, etc.
                log.exception("Fuel data sync tick failed")
                delay = self.scheduler.config.failure_backoff
            await self._sleep(delay.total_seconds())
        log.info("Fuel data sync worker stopping.")
