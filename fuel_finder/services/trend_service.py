"""
Service Tendances de prix / Price trend service.

Reconstitue une série par carburant sur [now - période, now] à partir de
l'historique, en reportant le dernier prix connu au bord de la fenêtre.
Rebuilds one series per fuel over [now - period, now] from history,
carrying the last known price forward to the window edge.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fuel_finder.models.price import FuelPrice
from fuel_finder.models.price_history import FuelPriceHistory
from fuel_finder.schemas.trend import FuelPriceTrend, FuelPriceTrendPoint
from fuel_finder.services.clock import utc_now

log = logging.getLogger(__name__)

DEFAULT_PERIOD_DAYS = 30
MIN_PERIOD_DAYS = 1
MAX_PERIOD_DAYS = 365
EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def clamp_period(period_days: int | None) -> int:
    if period_days is None:
        return DEFAULT_PERIOD_DAYS
    return max(MIN_PERIOD_DAYS, min(MAX_PERIOD_DAYS, period_days))


def _normalize_fuel(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip().upper()


class TrendService:
    def __init__(self, now_fn=utc_now):
        self._now_fn = now_fn

    async def get_trends(
        self,
        db: AsyncSession,
        station_code: str,
        fuel_type: str | None = None,
        period_days: int = DEFAULT_PERIOD_DAYS,
    ) -> list[FuelPriceTrend]:
        code = (station_code or "").strip()
        if not code:
            return []
        fuel = _normalize_fuel(fuel_type)
        now = self._now_fn()
        window_start = now - timedelta(days=period_days)

        # Historique dans la fenêtre / In-window history
        history_query = (
            select(FuelPriceHistory)
            .where(FuelPriceHistory.station_code == code)
            .where(FuelPriceHistory.recorded_at >= window_start)
            .where(FuelPriceHistory.recorded_at <= now)
        )
        if fuel:
            history_query = history_query.where(func.upper(FuelPriceHistory.fuel_type) == fuel)
        history = (await db.execute(history_query)).scalars().all()

        # Prix courants / Live prices
        price_query = select(FuelPrice).where(FuelPrice.station_code == code)
        if fuel:
            price_query = price_query.where(func.upper(FuelPrice.fuel_type) == fuel)
        current = (await db.execute(price_query)).scalars().all()

        series: dict[str, list[FuelPriceTrendPoint]] = {}
        for row in history:
            key = _normalize_fuel(row.fuel_type)
            if key:
                series.setdefault(key, []).append(FuelPriceTrendPoint(recorded_at=row.recorded_at, price=row.price))

        live: dict[str, FuelPrice] = {}
        for row in current:
            key = _normalize_fuel(row.fuel_type)
            if not key:
                continue
            existing = live.get(key)
            if existing is None or (row.last_updated or EPOCH) > (existing.last_updated or EPOCH):
                live[key] = row

        fuels = set(series) | set(live)
        if fuel:
            fuels.add(fuel)

        missing = sorted(f for f in fuels if f not in series)
        for key in missing:
            point = await self._backfill_point(db, code, key, window_start, now, live.get(key))
            if point is not None:
                series[key] = [point]

        trends = [
            FuelPriceTrend(fuel_type=key, points=sorted(points, key=lambda p: p.recorded_at))
            for key, points in series.items()
            if points
        ]
        trends.sort(key=lambda t: t.fuel_type)
        log.debug("Trends for %s: %d series over %d days", code, len(trends), period_days)
        return trends

    async def _backfill_point(
        self,
        db: AsyncSession,
        station_code: str,
        fuel: str,
        window_start: datetime,
        now: datetime,
        live_price: FuelPrice | None,
    ) -> FuelPriceTrendPoint | None:
        """Dernier prix avant la fenêtre, sinon prix courant / Last price before the window, else live price."""
        before = (await db.execute(
            select(FuelPriceHistory)
            .where(FuelPriceHistory.station_code == station_code)
            .where(func.upper(FuelPriceHistory.fuel_type) == fuel)
            .where(FuelPriceHistory.recorded_at < window_start)
            .order_by(FuelPriceHistory.recorded_at.desc(), FuelPriceHistory.id.desc())
            .limit(1)
        )).scalar_one_or_none()
        if before is not None:
            return FuelPriceTrendPoint(recorded_at=max(before.recorded_at, window_start), price=before.price)

        if live_price is not None:
            recorded_at = live_price.last_updated or now
            return FuelPriceTrendPoint(recorded_at=max(recorded_at, window_start), price=live_price.price)
        return None
