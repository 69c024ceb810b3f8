"""Events published to live pass viewers and venue scanners."""

import typing as t
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from django.utils import timezone
from pydantic import BaseModel, ConfigDict, Field


class EventKind(StrEnum):
    ROTATED = "rotated"
    TRANSFERRED = "transferred"
    REDEEMED = "redeemed"
    ROTATION_STOPPED = "rotation_stopped"


def pass_topic(pass_id: t.Any) -> str:
    return f"pass-{pass_id}"


def venue_topic(venue_id: t.Any) -> str:
    return f"venue-{venue_id}"


class NewCode(BaseModel):
    token: str
    image: str
    expires_at: datetime
    refresh_interval: int


class LiveEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EventKind
    pass_id: UUID
    venue_id: UUID
    occurred_at: datetime = Field(default_factory=timezone.now)


class Rotated(LiveEvent):
    kind: t.Literal[EventKind.ROTATED] = EventKind.ROTATED
    new_code: NewCode


class Transferred(LiveEvent):
    kind: t.Literal[EventKind.TRANSFERRED] = EventKind.TRANSFERRED
    new_pass_id: UUID


class Redeemed(LiveEvent):
    kind: t.Literal[EventKind.REDEEMED] = EventKind.REDEEMED


class RotationStopped(LiveEvent):
    kind: t.Literal[EventKind.ROTATION_STOPPED] = EventKind.ROTATION_STOPPED
    reason: str
