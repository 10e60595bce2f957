"""
Synchronisation manuelle / Manual synchronisation trigger.

Usage:
    python -m scripts.run_sync            # respecte le calendrier / honours the schedule
    python -m scripts.run_sync --force    # force une synchro / forces a sync

Ou via Docker:
    docker compose run --rm app python -m scripts.run_sync --force
"""

import argparse
import asyncio
import logging
import os
import sys

# Rendre le package importable / Make the package importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fuel_finder.config import settings
from fuel_finder.database import async_session, engine, init_db
from fuel_finder.services.clock import utc_now
from fuel_finder.services.fuel_api_client import FuelApiClient, FuelApiConfig, FuelApiError
from fuel_finder.services.sync_scheduler import ScheduleConfig, SyncScheduler
from fuel_finder.services.sync_service import SyncStatus, build_sync_service


async def run(force: bool) -> int:
    # Masquer le mot de passe dans les logs / Mask password in logs
    db_display = settings.DATABASE_URL.split("@")[-1]
    print(f"[sync] Base : {db_display}")

    await init_db()
    client = FuelApiClient(FuelApiConfig.from_settings(settings))
    try:
        service = build_sync_service(client, engine, async_session, settings)

        if not force:
            scheduler = SyncScheduler(ScheduleConfig.from_settings(settings))
            now = utc_now()
            decision = scheduler.decide(now, await service.last_sync_checkpoint())
            scheduler.log_checkpoint(now, decision)
            if not decision.should_run:
                print(f"[sync] Rien a faire ({decision.reason.value}); utiliser --force")
                return 0

        try:
            result = await service.synchronize()
        except FuelApiError as e:
            print(f"ERREUR: API carburant indisponible / fuel API unavailable: {e}")
            return 2

        if result.status == SyncStatus.SKIPPED_CONCURRENT:
            print("[sync] Une autre instance synchronise deja / another instance is syncing")
            return 0

        stats = result.stats
        print(
            f"[sync] OK : {stats.stations} stations, {stats.prices} prix, "
            f"{stats.history_rows} lignes d'historique ({stats.sync_timestamp.isoformat()})"
        )
        return 0
    finally:
        await client.aclose()
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Synchroniser les prix NSW / Synchronise NSW fuel prices")
    parser.add_argument("--force", action="store_true", help="ignorer le calendrier / ignore the schedule")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    sys.exit(asyncio.run(run(args.force)))


if __name__ == "__main__":
    main()
