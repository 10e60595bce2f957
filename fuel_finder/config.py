"""
Configuration de l'application / Application configuration.
Utilise pydantic-settings pour charger depuis .env ou variables d'environnement.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "NSW Fuel Finder"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True

    # Database - SQLite par défaut pour le développement
    # Database - SQLite by default for development
    DATABASE_URL: str = "sqlite+aiosqlite:///./fuel_finder.db"

    # CORS - origines autorisées / allowed origins
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "60/minute"

    # API carburant NSW / NSW Fuel API
    FUEL_API_BASE_URL: str = "https://api.onegov.nsw.gov.au"
    FUEL_API_NEARBY_PATH: str = "FuelPriceCheck/v1/fuel/prices/nearby"
    FUEL_API_ALL_PRICES_PATH: str = "FuelPriceCheck/v1/fuel/prices"
    FUEL_API_TOKEN_PATH: str = "oauth/client_credential/accesstoken"
    FUEL_API_GRANT_TYPE: str = "client_credentials"
    FUEL_API_KEY: str | None = None
    FUEL_API_SECRET: str | None = None
    # Valeur Authorization pré-calculée / Pre-computed Authorization header ("Bearer eyJ...")
    FUEL_API_AUTHORIZATION: str | None = None
    FUEL_API_TIMEOUT_SECONDS: float = 60.0

    # Carburants affichés / Displayed fuel types
    ALLOWED_FUEL_TYPES: list[str] = ["E10", "U91", "P95", "P98", "DL", "PDL"]

    # Synchronisation planifiée / Scheduled synchronisation
    SYNC_ENABLED: bool = True
    SYNC_TIMEZONE: str = "Australia/Sydney"
    SYNC_SCHEDULE_HOURS: list[int] = [2, 6, 8, 10, 12, 14, 16, 18, 20, 22]
    SYNC_WINDOW_MINUTES: int = 15
    SYNC_GRACE_MINUTES: int = 10
    SYNC_MIN_INTERVAL_MINUTES: int = 45
    SYNC_POLL_INTERVAL_SECONDS: int = 300
    SYNC_FAILURE_BACKOFF_SECONDS: int = 60
    # Clé du verrou inter-instances / Cross-instance lock key
    SYNC_LOCK_KEY: int = 815_320_041
    SYNC_LOCK_LEASE_SECONDS: int = 900

    # Résolution suburb/postcode / Suburb and postcode resolution
    COORDINATE_CACHE_TTL_MINUTES: int = 30

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
