"""Limitation de débit des routes de consultation / Rate limiting for query routes.

Limite par IP cliente via slowapi ; désactivable pour les tests.
Per client IP via slowapi; can be switched off for tests.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from fuel_finder.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
