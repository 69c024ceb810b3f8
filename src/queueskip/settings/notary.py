"""External ledger notarization settings.

Notarization is advisory: when NOTARY_URL is empty every request is marked as skipped.
"""

from decouple import config

NOTARY_URL: str = config("NOTARY_URL", default="")
NOTARY_API_KEY: str = config("NOTARY_API_KEY", default="")
NOTARY_TIMEOUT_SECONDS: float = config("NOTARY_TIMEOUT_SECONDS", default=5.0, cast=float)
NOTARY_MAX_ATTEMPTS: int = config("NOTARY_MAX_ATTEMPTS", default=5, cast=int)
NOTARY_RETRY_BACKOFF_SECONDS: int = config("NOTARY_RETRY_BACKOFF_SECONDS", default=10, cast=int)
NOTARY_RETRY_BACKOFF_MAX_SECONDS: int = config("NOTARY_RETRY_BACKOFF_MAX_SECONDS", default=600, cast=int)
# Pending requests older than this are picked up again by the periodic sweep.
NOTARY_STALE_AFTER_MINUTES: int = config("NOTARY_STALE_AFTER_MINUTES", default=30, cast=int)
