"""
Connexion a la base de donnees / Database connection.
Supporte SQLite (dev) et PostgreSQL (prod) via SQLAlchemy 2.0 async.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import DateTime, event, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from fuel_finder.config import settings

log = logging.getLogger(__name__)


def is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite")


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Construire le moteur async / Build the async engine for a database URL."""
    engine_kwargs: dict = {"echo": echo}

    # PostgreSQL : pool de connexions / PostgreSQL: connection pooling
    if not is_sqlite_url(url):
        engine_kwargs.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_timeout": 30,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
        })

    new_engine = create_async_engine(url, **engine_kwargs)

    # SQLite n'applique les FK (ON DELETE CASCADE) que sur demande /
    # SQLite only enforces foreign keys (ON DELETE CASCADE) when asked
    if is_sqlite_url(url):
        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_sqlite_fk(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

async_session = build_sessionmaker(engine)


class Base(DeclarativeBase):
    pass


class UTCDateTime(TypeDecorator):
    """Horodatage UTC / UTC timestamp.

    Stocke en UTC naif, restitue un datetime aware UTC (SQLite perd le fuseau).
    Stored as naive UTC, returned as aware UTC (SQLite drops the offset).
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


async def get_db() -> AsyncSession:
    """Dependance FastAPI pour obtenir une session DB / FastAPI dependency for DB session."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Creer les tables au demarrage / Create tables on startup."""
    # Enregistrer les modeles sur Base.metadata / Register models on Base.metadata
    import fuel_finder.models  # noqa: F401

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def log_history_count(sessionmaker: async_sessionmaker[AsyncSession] | None = None) -> int:
    """Compter l'historique disponible au demarrage / Count price history rows at startup."""
    from fuel_finder.models.price_history import FuelPriceHistory

    factory = sessionmaker or async_session
    async with factory() as session:
        count = (await session.execute(select(func.count(FuelPriceHistory.id)))).scalar() or 0
    log.info("Price history rows available at startup: %s", count)
    return count
