"""
Verrou de synchronisation inter-instances / Cross-instance sync lock.

PostgreSQL : pg_try_advisory_lock sur une connexion dédiée.
Autres bases : ligne de bail dans sync_leases (insertion ou reprise d'un bail expiré).
PostgreSQL: pg_try_advisory_lock on a dedicated connection.
Other stores: a lease row in sync_leases (insert, or take over an expired lease).
"""

import logging
import os
import socket
import uuid
from contextlib import asynccontextmanager
from datetime import timedelta

from sqlalchemy import delete, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from fuel_finder.database import build_sessionmaker
from fuel_finder.models.sync_lease import SyncLease
from fuel_finder.services.clock import utc_now

log = logging.getLogger(__name__)

DEFAULT_LOCK_NAME = "fuel-data-sync"


def default_holder() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


class SyncLock:
    """Mutex nommé, non bloquant, externe au processus / Named, non-blocking, process-external mutex."""

    def __init__(
        self,
        engine: AsyncEngine,
        key: int,
        name: str = DEFAULT_LOCK_NAME,
        lease_seconds: int = 900,
        holder: str | None = None,
        now_fn=utc_now,
    ):
        self.engine = engine
        self.key = key
        self.name = name
        self.lease = timedelta(seconds=lease_seconds)
        self.holder = holder or default_holder()
        self._now_fn = now_fn
        self._sessionmaker = build_sessionmaker(engine)
        self._conn: AsyncConnection | None = None
        self._held = False

    @property
    def uses_advisory_lock(self) -> bool:
        return self.engine.dialect.name == "postgresql"

    @property
    def held(self) -> bool:
        return self._held

    async def try_acquire(self) -> bool:
        if self._held:
            return True
        if self.uses_advisory_lock:
            self._held = await self._try_advisory_lock()
        else:
            self._held = await self._try_lease()
        return self._held

    async def release(self) -> None:
        if not self._held:
            return
        try:
            if self.uses_advisory_lock:
                await self._release_advisory_lock()
            else:
                await self._release_lease()
        finally:
            self._held = False

    @asynccontextmanager
    async def hold(self):
        """Acquiert sans attendre, libère toujours / Acquire without waiting, always release."""
        acquired = await self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                await self.release()

    # --- PostgreSQL advisory lock ---

    async def _try_advisory_lock(self) -> bool:
        conn = await self.engine.connect()
        try:
            result = await conn.execute(text("SELECT pg_try_advisory_lock(:key)"), {"key": self.key})
            acquired = bool(result.scalar())
            await conn.commit()
        except Exception:
            await conn.close()
            raise
        if not acquired:
            await conn.close()
            return False
        # Le verrou de session vit avec cette connexion / The session lock lives with this connection
        self._conn = conn
        return True

    async def _release_advisory_lock(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await conn.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": self.key})
            await conn.commit()
        except Exception:
            # Connexion inutilisable : la jeter libère le verrou côté serveur /
            # Unusable connection: discarding it releases the lock server-side
            log.exception("Failed to release advisory lock %s; invalidating connection", self.key)
            await conn.invalidate()
            raise
        finally:
            await conn.close()

    # --- Bail / Lease row ---

    async def _try_lease(self) -> bool:
        now = self._now_fn()
        async with self._sessionmaker() as session:
            try:
                await session.execute(
                    delete(SyncLease)
                    .where(SyncLease.name == self.name)
                    .where(SyncLease.expires_at <= now)
                )
                session.add(SyncLease(
                    name=self.name,
                    holder=self.holder,
                    acquired_at=now,
                    expires_at=now + self.lease,
                ))
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
        return True

    async def _release_lease(self) -> None:
        async with self._sessionmaker() as session:
            await session.execute(
                delete(SyncLease)
                .where(SyncLease.name == self.name)
                .where(SyncLease.holder == self.holder)
            )
            await session.commit()
