"""Publish pass lifecycle events on the pass and venue topics."""

from datetime import datetime
from uuid import UUID

import structlog
from django.conf import settings

from .channel import get_channel
from .events import LiveEvent, NewCode, Redeemed, Rotated, RotationStopped, Transferred, pass_topic, venue_topic

logger = structlog.get_logger(__name__)


def _publish(event: LiveEvent, *, to_venue: bool = True) -> None:
    channel = get_channel()
    delivered = channel.publish(pass_topic(event.pass_id), event)
    if to_venue:
        delivered += channel.publish(venue_topic(event.venue_id), event)
    logger.debug("live_event_published", kind=event.kind, pass_id=str(event.pass_id), delivered=delivered)


def publish_rotated(pass_id: UUID, venue_id: UUID, *, token: str, image: str, expires_at: datetime) -> None:
    # Codes only go to the holder's topic, never to the whole venue.
    event = Rotated(
        pass_id=pass_id,
        venue_id=venue_id,
        new_code=NewCode(
            token=token,
            image=image,
            expires_at=expires_at,
            refresh_interval=settings.CREDENTIAL_ROTATION_INTERVAL_SECONDS,
        ),
    )
    _publish(event, to_venue=False)


def publish_transferred(pass_id: UUID, venue_id: UUID, new_pass_id: UUID) -> None:
    _publish(Transferred(pass_id=pass_id, venue_id=venue_id, new_pass_id=new_pass_id))


def publish_redeemed(pass_id: UUID, venue_id: UUID) -> None:
    _publish(Redeemed(pass_id=pass_id, venue_id=venue_id))


def publish_rotation_stopped(pass_id: UUID, venue_id: UUID, reason: str) -> None:
    _publish(RotationStopped(pass_id=pass_id, venue_id=venue_id, reason=reason), to_venue=False)
