import typing as t
from datetime import datetime
from uuid import UUID

from django.conf import settings
from ninja import ModelSchema, Schema
from pydantic import AwareDatetime, Field

from passes.credentials import Credential
from passes.models import Pass
from venues.models import PassType


class PassTypeSchema(ModelSchema):
    class Meta:
        model = PassType
        fields = ["id", "name", "description", "validity_hours", "transferable"]


class PassSchema(ModelSchema):
    venue_id: UUID
    owner_id: UUID
    pass_type: PassTypeSchema
    status: str
    restrictions: list[dict[str, t.Any]]

    class Meta:
        model = Pass
        fields = ["id", "valid_from", "valid_until", "receipt_id", "created_at"]

    @staticmethod
    def resolve_status(obj: Pass) -> str:
        """Report passes past their validity window as expired."""
        return str(obj.effective_status())


class CredentialSchema(Schema):
    """The code a holder displays. `image` is a PNG data URI of the QR code."""

    pass_id: UUID
    token: str
    image: str
    issued_at: datetime
    expires_at: datetime
    refresh_interval: int

    @classmethod
    def from_credential(cls, credential: Credential) -> "CredentialSchema":
        return cls(
            pass_id=credential.pass_id,
            token=credential.token,
            image=credential.image,
            issued_at=credential.issued_at,
            expires_at=credential.expires_at,
            refresh_interval=settings.CREDENTIAL_ROTATION_INTERVAL_SECONDS,
        )


class AllocateSchema(Schema):
    venue_id: UUID


class TransferSchema(Schema):
    to_user_id: UUID


class TransferResponseSchema(Schema):
    source_pass_id: UUID
    new_pass: PassSchema


class ValidateSchema(Schema):
    token: str = Field(..., min_length=1)


class ValidationResultSchema(Schema):
    pass_id: UUID
    user_id: UUID
    venue_id: UUID


class RedemptionSchema(Schema):
    pass_id: UUID
    redeemed_at: AwareDatetime
    staff_id: UUID | None
