"""Schema for accounts module."""

import typing as t
from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import EmailStr, Field, StringConstraints

from venues.models import UserGroup, VenueRole

from .models import QueueSkipUser

Identifier = t.Annotated[str, StringConstraints(min_length=1, max_length=255, strip_whitespace=True)]


class _Presentation(Schema):
    venue_id: UUID | None = None
    user_group: UserGroup | None = None


class EmailPresentation(_Presentation):
    method: t.Literal["email"]
    email: EmailStr

    @property
    def identifier(self) -> str:
        return str(self.email)


class GovernmentIdPresentation(_Presentation):
    method: t.Literal["government_id"]
    government_id: Identifier

    @property
    def identifier(self) -> str:
        return self.government_id


class SsoPresentation(_Presentation):
    method: t.Literal["sso"]
    sso_token: Identifier
    provider: str | None = None

    @property
    def identifier(self) -> str:
        return self.sso_token


class Web3WalletPresentation(_Presentation):
    method: t.Literal["web3_wallet"]
    web3_address: Identifier

    @property
    def identifier(self) -> str:
        return self.web3_address


CredentialPresentation = t.Annotated[
    EmailPresentation | GovernmentIdPresentation | SsoPresentation | Web3WalletPresentation,
    Field(discriminator="method"),
]


class LoginSchema(Schema):
    presentation: CredentialPresentation


class QueueSkipUserSchema(ModelSchema):
    class Meta:
        model = QueueSkipUser
        fields = ["id", "email", "first_name", "last_name"]


class VenueMembershipSchema(Schema):
    venue_id: UUID
    user_group: UserGroup
    role: VenueRole


class LoginResponseSchema(Schema):
    user: QueueSkipUserSchema
    membership: VenueMembershipSchema | None = None
    is_new_user: bool
    access: str
    refresh: str
