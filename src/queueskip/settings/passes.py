"""Dynamic pass credential settings."""

from decouple import config

from .base import SECRET_KEY

# Secret used to sign rotating credentials. Falls back to SECRET_KEY.
CREDENTIAL_SECRET: str = config("CREDENTIAL_SECRET", default=SECRET_KEY)
CREDENTIAL_ALGORITHM: str = config("CREDENTIAL_ALGORITHM", default="HS256")
CREDENTIAL_ROTATION_INTERVAL_SECONDS: int = config("CREDENTIAL_ROTATION_INTERVAL_SECONDS", default=30, cast=int)
# Allowed clock skew when comparing expiries. 0 means strict.
CREDENTIAL_CLOCK_SKEW_SECONDS: int = config("CREDENTIAL_CLOCK_SKEW_SECONDS", default=0, cast=int)

# Display barcode
CREDENTIAL_QR_BOX_SIZE: int = config("CREDENTIAL_QR_BOX_SIZE", default=8, cast=int)
CREDENTIAL_QR_BORDER: int = config("CREDENTIAL_QR_BORDER", default=1, cast=int)

# Display cache
CREDENTIAL_CACHE_TTL_SECONDS: int = config("CREDENTIAL_CACHE_TTL_SECONDS", default=60, cast=int)

# Live channel
LIVE_SUBSCRIBER_QUEUE_SIZE: int = config("LIVE_SUBSCRIBER_QUEUE_SIZE", default=100, cast=int)
