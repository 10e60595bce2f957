"""
Client de l'API carburant NSW / NSW Fuel API client.

Jeton bearer court (client credentials) mis en cache jusqu'à expiration - 60 s,
rafraîchi paresseusement, un seul rafraîchissement en vol par processus.
Short-lived bearer token (client credentials) cached until expiry - 60 s,
refreshed lazily with a single in-flight refresh per process.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import httpx
from pydantic import ValidationError

from fuel_finder.config import Settings
from fuel_finder.schemas.feed import AccessTokenResponse, FuelFeedResponse, NearbyFuelRequest
from fuel_finder.services.clock import utc_now

log = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN_SECONDS = 300
TOKEN_EXPIRY_MARGIN = timedelta(seconds=60)


class FuelApiError(Exception):
    """Échec transitoire du flux amont / Transient upstream feed failure."""


class FuelApiConfigurationError(FuelApiError):
    """Clé ou secret manquant / Missing key or secret."""


class FuelApiResponseError(FuelApiError):
    """Statut non 2xx ou contenu illisible / Non-2xx status or unreadable payload."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class FuelApiConfig:
    base_url: str
    nearby_path: str
    all_prices_path: str
    token_path: str
    grant_type: str = "client_credentials"
    api_key: str | None = None
    api_secret: str | None = None
    authorization: str | None = None
    timeout_seconds: float = 60.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "FuelApiConfig":
        return cls(
            base_url=settings.FUEL_API_BASE_URL,
            nearby_path=settings.FUEL_API_NEARBY_PATH,
            all_prices_path=settings.FUEL_API_ALL_PRICES_PATH,
            token_path=settings.FUEL_API_TOKEN_PATH,
            grant_type=settings.FUEL_API_GRANT_TYPE,
            api_key=settings.FUEL_API_KEY,
            api_secret=settings.FUEL_API_SECRET,
            authorization=settings.FUEL_API_AUTHORIZATION,
            timeout_seconds=settings.FUEL_API_TIMEOUT_SECONDS,
        )


@dataclass(frozen=True)
class _CachedToken:
    token: str
    expires_at: datetime | None  # None = n'expire jamais / never expires

    def is_valid(self, now: datetime) -> bool:
        return self.expires_at is None or now < self.expires_at


def extract_bearer_token(authorization: str | None) -> str | None:
    """"Bearer xyz" -> "xyz", sinon la valeur telle quelle / otherwise the raw value."""
    if authorization is None or not authorization.strip():
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return authorization.strip()


def parse_expires_in(raw: str | None) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return DEFAULT_EXPIRES_IN_SECONDS
    return value if value > 0 else DEFAULT_EXPIRES_IN_SECONDS


def _build_http_client(config: FuelApiConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=config.base_url,
        timeout=httpx.Timeout(config.timeout_seconds),
    )


class FuelAuthService:
    """Acquisition et cache du jeton d'accès / Access token acquisition and caching."""

    def __init__(self, config: FuelApiConfig, http_client: httpx.AsyncClient | None = None, now_fn=utc_now):
        self.config = config
        self._http = http_client or _build_http_client(config)
        self._owns_client = http_client is None
        self._now_fn = now_fn
        self._token_lock = asyncio.Lock()
        self._cached: _CachedToken | None = None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def invalidate(self) -> None:
        self._cached = None

    def _cached_token(self) -> str | None:
        if self._cached is not None and self._cached.is_valid(self._now_fn()):
            return self._cached.token
        return None

    async def get_access_token(self) -> str:
        token = self._cached_token()
        if token:
            return token

        async with self._token_lock:
            token = self._cached_token()
            if token:
                return token

            preset = extract_bearer_token(self.config.authorization)
            if preset:
                self._cached = _CachedToken(preset, None)
                return preset

            if not self.config.api_key or not self.config.api_secret:
                raise FuelApiConfigurationError(
                    "FUEL_API_KEY and FUEL_API_SECRET must be configured when FUEL_API_AUTHORIZATION is not supplied."
                )

            try:
                response = await self._http.get(
                    self.config.token_path,
                    params={"grant_type": self.config.grant_type or "client_credentials"},
                    auth=(self.config.api_key, self.config.api_secret),
                    headers={"Accept": "application/json"},
                )
            except httpx.HTTPError as exc:
                raise FuelApiError(f"Token request failed: {exc}") from exc

            if response.is_error:
                log.error(
                    "Failed to acquire NSW Fuel API access token. StatusCode: %s. Body: %s",
                    response.status_code,
                    response.text,
                )
                raise FuelApiResponseError("Token endpoint returned an error", response.status_code)

            try:
                payload = AccessTokenResponse.model_validate(response.json())
            except (ValueError, ValidationError) as exc:
                log.error("Failed to parse NSW Fuel API access token response: %s", response.text)
                raise FuelApiResponseError("Invalid access token payload") from exc

            if not payload.access_token or not payload.access_token.strip():
                raise FuelApiResponseError("NSW Fuel API returned an empty access token response.")

            expires_in = parse_expires_in(payload.expires_in)
            expires_at = self._now_fn() + timedelta(seconds=expires_in) - TOKEN_EXPIRY_MARGIN
            self._cached = _CachedToken(payload.access_token, expires_at)
            log.info("Acquired NSW Fuel API access token (expires in %ss)", expires_in)
            return payload.access_token


class FuelApiClient:
    """Appels all-prices et nearby / All-prices and nearby calls."""

    def __init__(
        self,
        config: FuelApiConfig,
        auth: FuelAuthService | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self._http = http_client or _build_http_client(config)
        self._owns_client = http_client is None
        self.auth = auth or FuelAuthService(config, http_client=self._http)

    async def aclose(self) -> None:
        await self.auth.aclose()
        if self._owns_client:
            await self._http.aclose()

    async def _headers(self) -> dict[str, str]:
        if not self.config.api_key:
            raise FuelApiConfigurationError("FUEL_API_KEY must be configured.")
        headers = {
            "apikey": self.config.api_key,
            "transactionid": str(uuid.uuid4()),
            "requesttimestamp": datetime.now(timezone.utc).strftime("%d/%m/%Y %I:%M:%S %p"),
            "Accept": "application/json",
        }
        token = await self.auth.get_access_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _send(self, method: str, path: str, **kwargs) -> FuelFeedResponse:
        headers = await self._headers()
        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise FuelApiError(f"NSW Fuel API request to {path} failed: {exc}") from exc

        if response.is_error:
            log.error(
                "NSW Fuel API returned %s for %s. Body: %s",
                response.status_code,
                response.request.url,
                response.text,
            )
            if response.status_code == 401:
                self.auth.invalidate()
            raise FuelApiResponseError(f"NSW Fuel API returned {response.status_code}", response.status_code)

        if not response.content:
            return FuelFeedResponse()
        try:
            return FuelFeedResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise FuelApiResponseError(f"Invalid payload from {path}") from exc

    async def get_all_prices(self) -> FuelFeedResponse:
        """Jeu complet stations + prix / Full stations + prices dataset."""
        return await self._send("GET", self.config.all_prices_path)

    async def get_nearby_stations(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        fuel_type: str | None = None,
    ) -> FuelFeedResponse:
        """Sous-ensemble à proximité (requêtes en direct) / Nearby subset (live queries)."""
        body = NearbyFuelRequest(
            fueltype=fuel_type.strip() if fuel_type and fuel_type.strip() else None,
            latitude=str(latitude),
            longitude=str(longitude),
            radius=str(radius_km) if radius_km > 0 else None,
        )
        return await self._send(
            "POST",
            self.config.nearby_path,
            json=body.model_dump(exclude_none=True),
        )
