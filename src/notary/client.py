"""HTTP notarizer backed by an external ledger gateway."""

import typing as t

import httpx
import structlog
from django.conf import settings

from .protocols import NotarizationFailed

logger = structlog.get_logger(__name__)


class HttpNotarizer:
    """POSTs events to `{base_url}/records` and reads `receipt_id` from the JSON response."""

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 5.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def notarize(self, event: dict[str, t.Any]) -> str:
        headers = {"Idempotency-Key": str(event.get("idempotency_key", ""))}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            response = httpx.post(f"{self.base_url}/records", json=event, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
            receipt_id = body.get("receipt_id") if isinstance(body, dict) else None
        except (httpx.HTTPError, ValueError) as e:
            raise NotarizationFailed(str(e)) from e
        if not receipt_id:
            raise NotarizationFailed("Ledger response did not contain a receipt id.")
        return str(receipt_id)


def get_notarizer() -> HttpNotarizer | None:
    """Return the configured notarizer, or None when notarization is disabled."""
    if not settings.NOTARY_URL:
        return None
    return HttpNotarizer(settings.NOTARY_URL, settings.NOTARY_API_KEY, settings.NOTARY_TIMEOUT_SECONDS)
