"""
Planificateur de synchronisation / Synchronisation scheduler.

Décide à chaque tick si un rafraîchissement complet doit partir :
fenêtres horaires locales fixes, anti-rebond et rattrapage des fenêtres manquées.
Decides on each tick whether a full refresh should run: fixed local-time
windows, debounce, and missed-window catch-up.

La politique est pure (aucune I/O) ; le checkpoint est lu par l'appelant.
The policy is pure (no I/O); the checkpoint is read by the caller.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from fuel_finder.config import Settings
from fuel_finder.services.clock import RegionalClock

log = logging.getLogger(__name__)


class SyncReason(str, enum.Enum):
    FIRST_RUN = "FIRST_RUN"
    CATCH_UP = "CATCH_UP"
    SCHEDULED_WINDOW = "SCHEDULED_WINDOW"
    DEBOUNCED = "DEBOUNCED"
    OUTSIDE_WINDOW = "OUTSIDE_WINDOW"


class SchedulerState(str, enum.Enum):
    IDLE = "IDLE"
    DUE = "DUE"
    RUNNING = "RUNNING"
    COOLING_DOWN = "COOLING_DOWN"


@dataclass(frozen=True)
class ScheduleConfig:
    """Paramètres de planification immuables / Immutable schedule parameters."""
    timezone: str = "Australia/Sydney"
    hours: tuple[int, ...] = (2, 6, 8, 10, 12, 14, 16, 18, 20, 22)
    window: timedelta = timedelta(minutes=15)
    grace: timedelta = timedelta(minutes=10)
    min_interval: timedelta = timedelta(minutes=45)
    poll_interval: timedelta = timedelta(minutes=5)
    failure_backoff: timedelta = timedelta(seconds=60)

    def __post_init__(self):
        if not self.hours:
            raise ValueError("At least one scheduled hour is required")
        if any(h < 0 or h > 23 for h in self.hours):
            raise ValueError(f"Scheduled hours must be within 0-23: {self.hours}")
        object.__setattr__(self, "hours", tuple(sorted(set(self.hours))))

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScheduleConfig":
        return cls(
            timezone=settings.SYNC_TIMEZONE,
            hours=tuple(settings.SYNC_SCHEDULE_HOURS),
            window=timedelta(minutes=settings.SYNC_WINDOW_MINUTES),
            grace=timedelta(minutes=settings.SYNC_GRACE_MINUTES),
            min_interval=timedelta(minutes=settings.SYNC_MIN_INTERVAL_MINUTES),
            poll_interval=timedelta(seconds=settings.SYNC_POLL_INTERVAL_SECONDS),
            failure_backoff=timedelta(seconds=settings.SYNC_FAILURE_BACKOFF_SECONDS),
        )


@dataclass(frozen=True)
class SyncDecision:
    should_run: bool
    reason: SyncReason
    last_sync_utc: datetime | None
    expected_window_start: datetime | None = None
    next_run_utc: datetime | None = None
    delay_until_next_run: timedelta | None = None


class SyncScheduler:
    """Machine d'états Idle -> Due -> Running -> Idle | CoolingDown /
    State machine Idle -> Due -> Running -> Idle | CoolingDown."""

    def __init__(self, config: ScheduleConfig | None = None, clock: RegionalClock | None = None):
        self.config = config or ScheduleConfig()
        self.clock = clock or RegionalClock(self.config.timezone)
        self.state = SchedulerState.IDLE
        self.cooldown_until: datetime | None = None

    # --- Calendrier / Calendar ---

    def expected_window_start(self, now_utc: datetime) -> datetime:
        """Dernière heure planifiée <= now, en UTC / Most recent scheduled hour at or before now, in UTC."""
        local_now = self.clock.to_local(now_utc)
        today = local_now.date()
        for hour in reversed(self.config.hours):
            candidate = self.clock.local_to_utc(today, hour)
            if candidate <= now_utc:
                return candidate
        return self.clock.local_to_utc(today - timedelta(days=1), self.config.hours[-1])

    def next_scheduled_run(self, now_utc: datetime) -> datetime:
        """Prochaine heure planifiée > now, en UTC / Next scheduled hour strictly after now, in UTC."""
        local_now = self.clock.to_local(now_utc)
        today = local_now.date()
        for hour in self.config.hours:
            candidate = self.clock.local_to_utc(today, hour)
            if candidate > now_utc:
                return candidate
        return self.clock.local_to_utc(today + timedelta(days=1), self.config.hours[0])

    def delay_until_next_run(self, now_utc: datetime) -> timedelta:
        delay = self.next_scheduled_run(now_utc) - now_utc
        return delay if delay > timedelta(0) else self.config.poll_interval

    # --- Politique / Policy ---

    def decide(self, now_utc: datetime, last_sync_utc: datetime | None) -> SyncDecision:
        next_run = self.next_scheduled_run(now_utc)
        delay = self.delay_until_next_run(now_utc)

        def _decision(should_run: bool, reason: SyncReason, window_start: datetime | None = None) -> SyncDecision:
            return SyncDecision(
                should_run=should_run,
                reason=reason,
                last_sync_utc=last_sync_utc,
                expected_window_start=window_start,
                next_run_utc=next_run,
                delay_until_next_run=delay,
            )

        # Amorçage : aucune station en base / Bootstrap: no station stored yet
        if last_sync_utc is None:
            return _decision(True, SyncReason.FIRST_RUN)

        window_start = self.expected_window_start(now_utc)
        debounced = now_utc - last_sync_utc < self.config.min_interval

        # Fenêtre manquée (arrêt, tick perdu) / Missed window (downtime, lost tick)
        missed = (
            now_utc >= window_start + self.config.grace
            and last_sync_utc < window_start - self.config.grace
        )
        if missed:
            if debounced:
                return _decision(False, SyncReason.DEBOUNCED, window_start)
            return _decision(True, SyncReason.CATCH_UP, window_start)

        if now_utc - window_start >= self.config.window:
            return _decision(False, SyncReason.OUTSIDE_WINDOW, window_start)

        if debounced:
            return _decision(False, SyncReason.DEBOUNCED, window_start)
        return _decision(True, SyncReason.SCHEDULED_WINDOW, window_start)

    # --- Transitions ---

    def on_tick(self, now_utc: datetime, decision: SyncDecision) -> SchedulerState:
        if self.state == SchedulerState.COOLING_DOWN:
            if self.cooldown_until is not None and now_utc < self.cooldown_until:
                return self.state
            self.cooldown_until = None
        if self.state != SchedulerState.RUNNING:
            self.state = SchedulerState.DUE if decision.should_run else SchedulerState.IDLE
        return self.state

    def on_started(self) -> None:
        if self.state != SchedulerState.DUE:
            raise RuntimeError(f"Cannot start a sync from state {self.state.value}")
        self.state = SchedulerState.RUNNING

    def on_finished(self, now_utc: datetime, succeeded: bool) -> None:
        if succeeded:
            self.state = SchedulerState.IDLE
            self.cooldown_until = None
        else:
            self.state = SchedulerState.COOLING_DOWN
            self.cooldown_until = now_utc + self.config.failure_backoff

    def next_sleep(self, decision: SyncDecision) -> timedelta:
        """Attente avant le prochain tick / Wait before the next tick."""
        if self.state == SchedulerState.COOLING_DOWN:
            return self.config.failure_backoff
        delay = decision.delay_until_next_run or self.config.poll_interval
        return max(min(self.config.poll_interval, delay), timedelta(seconds=1))

    def log_checkpoint(self, now_utc: datetime, decision: SyncDecision) -> None:
        if decision.last_sync_utc is not None:
            utc_text = decision.last_sync_utc.strftime("%Y-%m-%d %H:%M:%S UTC")
            local_text = self.clock.to_local(decision.last_sync_utc).strftime("%Y-%m-%d %H:%M:%S %z")
        else:
            utc_text, local_text = "never", "N/A"
        log.info(
            "Fuel data sync checkpoint. Last API fetch (UTC): %s. Last API fetch (local): %s. "
            "Refresh required: %s (%s). Next scheduled run in %s.",
            utc_text,
            local_text,
            decision.should_run,
            decision.reason.value,
            decision.delay_until_next_run,
        )
