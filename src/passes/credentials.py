"""Rotating pass credentials.

A credential is an HS256 JWT with the payload

    {"passId": ..., "venueId": ..., "tokenHash": ..., "expiresAt": ..., "issuedAt": ..., "iat": ...}

where tokenHash is the SHA-256 of a fresh random value drawn for every issue. The token is
additionally covered by an HMAC-SHA256 signature computed with a key derived from the same
secret (see common.signing); the signature is stored next to the token server side.

Nothing in this module touches the database. Deciding whether a verified credential is
still the current one for its pass is done by the rotation store.
"""

import hashlib
import secrets
import typing as t
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import cached_property
from uuid import UUID

import jwt
from django.conf import settings
from django.utils import timezone
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from common.signing import generate_signature, verify_signature as verify_hmac_signature

from .rendering import render_qr_data_uri

SIGNATURE_DOMAIN = "queueskip:credential:v1"
NONCE_BYTES = 32


class CredentialVerificationError(Exception):
    """Raised when a token is malformed, badly signed or expired."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class CredentialPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    pass_id: UUID = Field(alias="passId")
    venue_id: UUID = Field(alias="venueId")
    token_hash: str = Field(alias="tokenHash", pattern=r"^[0-9a-f]{64}$")
    expires_at: datetime = Field(alias="expiresAt")
    issued_at: datetime = Field(alias="issuedAt")
    iat: int


@dataclass(frozen=True)
class Credential:
    """An issued credential, as handed to the rotation store and to the holder's display."""

    pass_id: UUID
    venue_id: UUID
    token: str
    signature: str
    token_hash: str
    issued_at: datetime
    expires_at: datetime

    @cached_property
    def image(self) -> str:
        return render_qr_data_uri(self.token)


def _secret(secret: str | None) -> str:
    return secret if secret is not None else settings.CREDENTIAL_SECRET


def rotation_interval() -> timedelta:
    return timedelta(seconds=settings.CREDENTIAL_ROTATION_INTERVAL_SECONDS)


def hash_token(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()


def sign_token(token: str, secret: str | None = None) -> str:
    return generate_signature(token, domain=SIGNATURE_DOMAIN, secret=_secret(secret))


def verify_signature(token: str, signature: str, secret: str | None = None) -> bool:
    """Check the independent keyed signature of a token in constant time."""
    return verify_hmac_signature(token, signature, domain=SIGNATURE_DOMAIN, secret=_secret(secret))


def issue(
    pass_id: UUID,
    venue_id: UUID,
    secret: str | None = None,
    *,
    now: datetime | None = None,
    interval: timedelta | None = None,
) -> Credential:
    """Issue a fresh credential for a pass.

    Args:
        pass_id: The pass the credential admits.
        venue_id: The pass's venue.
        secret: Signing secret. Defaults to settings.CREDENTIAL_SECRET.
        now: Issue time. Defaults to the current time.
        interval: Lifetime of the credential. Defaults to the rotation interval.

    Returns:
        The signed credential.
    """
    secret = _secret(secret)
    now = now or timezone.now()
    expires_at = now + (interval or rotation_interval())
    token_hash = hash_token(secrets.token_urlsafe(NONCE_BYTES))
    payload = CredentialPayload(
        pass_id=pass_id,
        venue_id=venue_id,
        token_hash=token_hash,
        expires_at=expires_at,
        issued_at=now,
        iat=int(now.timestamp()),
    )
    token = jwt.encode(payload.model_dump(mode="json", by_alias=True), secret, algorithm=settings.CREDENTIAL_ALGORITHM)
    return Credential(
        pass_id=pass_id,
        venue_id=venue_id,
        token=token,
        signature=sign_token(token, secret),
        token_hash=token_hash,
        issued_at=now,
        expires_at=expires_at,
    )


def verify(
    token: str,
    secret: str | None = None,
    *,
    now: datetime | None = None,
    leeway: timedelta | None = None,
) -> CredentialPayload:
    """Decode and check a credential.

    Only the token itself is checked: encoding, signature and expiry. Whether the credential
    has been superseded by a newer rotation is not.

    Raises:
        CredentialVerificationError: If the token is malformed, badly signed or expired.
    """
    if not isinstance(token, str) or not token:
        raise CredentialVerificationError("malformed")
    try:
        claims: dict[str, t.Any] = jwt.decode(
            token,
            _secret(secret),
            algorithms=[settings.CREDENTIAL_ALGORITHM],
            options={"require": ["iat"], "verify_iat": False},
        )
        payload = CredentialPayload.model_validate(claims)
    except jwt.InvalidSignatureError as e:
        raise CredentialVerificationError("bad_signature") from e
    except (jwt.InvalidTokenError, PydanticValidationError) as e:
        raise CredentialVerificationError("malformed") from e

    if leeway is None:
        leeway = timedelta(seconds=settings.CREDENTIAL_CLOCK_SKEW_SECONDS)
    if (now or timezone.now()) >= payload.expires_at + leeway:
        raise CredentialVerificationError("expired")
    return payload
