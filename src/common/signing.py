"""Keyed HMAC signatures with domain-separated keys.

Signing keys are derived from a caller-supplied secret (usually a setting) and a domain
string, so that one secret can back several signature schemes without the signatures
being interchangeable between them:

    key = sha256("<domain>:<secret>")
    signature = hex(hmac_sha256(key, message))

Verification always uses hmac.compare_digest().
"""

import hashlib
import hmac
from functools import lru_cache

__all__ = [
    "derive_key",
    "generate_signature",
    "verify_signature",
]


@lru_cache(maxsize=32)
def derive_key(domain: str, secret: str) -> bytes:
    """Derive a signing key for a domain from a secret.

    Args:
        domain: A versioned domain separator, e.g. "queueskip:credential:v1".
        secret: The shared server secret.

    Returns:
        Bytes suitable for HMAC-SHA256 signing.
    """
    return hashlib.sha256(f"{domain}:{secret}".encode()).digest()


def generate_signature(message: str, *, domain: str, secret: str) -> str:
    """Generate a hex-encoded HMAC-SHA256 signature of a message."""
    return hmac.new(derive_key(domain, secret), message.encode(), hashlib.sha256).hexdigest()


def verify_signature(message: str, signature: str, *, domain: str, secret: str) -> bool:
    """Verify a signature produced by generate_signature.

    Returns False (never raises) for malformed input.
    """
    if not isinstance(signature, str) or not signature:
        return False
    expected = generate_signature(message, domain=domain, secret=secret)
    return hmac.compare_digest(signature, expected)
