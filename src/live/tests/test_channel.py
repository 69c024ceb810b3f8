import typing as t
import uuid

import pytest
from django.utils import timezone

from live.channel import LiveChannel, get_channel
from live.events import EventKind, Redeemed, Rotated, pass_topic, venue_topic
from live.service import publish_redeemed, publish_rotated, publish_rotation_stopped, publish_transferred


@pytest.fixture
def channel() -> LiveChannel:
    return LiveChannel()


def redeemed() -> Redeemed:
    return Redeemed(pass_id=uuid.uuid4(), venue_id=uuid.uuid4())


def test_callback_subscribers_receive_events(channel: LiveChannel) -> None:
    received: list[t.Any] = []
    channel.subscribe("topic", callback=received.append)
    event = redeemed()

    assert channel.publish("topic", event) == 1
    assert received == [event]


def test_queue_subscribers_buffer_events(channel: LiveChannel) -> None:
    subscription = channel.subscribe("topic")
    event = redeemed()

    channel.publish("topic", event)

    assert subscription.get(timeout=0.1) == event
    assert subscription.get(timeout=0.01) is None


def test_events_are_not_replayed_to_late_subscribers(channel: LiveChannel) -> None:
    channel.publish("topic", redeemed())

    subscription = channel.subscribe("topic")

    assert subscription.get(timeout=0.01) is None


def test_topics_are_isolated(channel: LiveChannel) -> None:
    subscription = channel.subscribe("a")

    assert channel.publish("b", redeemed()) == 0
    assert subscription.get(timeout=0.01) is None


def test_failing_subscriber_does_not_affect_others(channel: LiveChannel) -> None:
    def explode(event: t.Any) -> None:
        raise RuntimeError("boom")

    received: list[t.Any] = []
    channel.subscribe("topic", callback=explode)
    channel.subscribe("topic", callback=received.append)

    assert channel.publish("topic", redeemed()) == 1
    assert len(received) == 1


def test_full_queue_drops_the_event(channel: LiveChannel) -> None:
    subscription = channel.subscribe("topic", maxsize=1)
    first, second = redeemed(), redeemed()

    assert channel.publish("topic", first) == 1
    assert channel.publish("topic", second) == 0
    assert subscription.get(timeout=0.01) == first
    assert subscription.get(timeout=0.01) is None


def test_closing_a_subscription_unsubscribes(channel: LiveChannel) -> None:
    with channel.subscribe("topic"):
        assert channel.subscriber_count("topic") == 1

    assert channel.subscriber_count("topic") == 0
    assert channel.publish("topic", redeemed()) == 0


def test_callback_subscription_cannot_be_polled(channel: LiveChannel) -> None:
    subscription = channel.subscribe("topic", callback=lambda event: None)

    with pytest.raises(TypeError):
        subscription.get(timeout=0.01)


class TestPublishers:
    def test_rotated_goes_to_the_holder_only(self) -> None:
        pass_id, venue_id = uuid.uuid4(), uuid.uuid4()
        holder = get_channel().subscribe(pass_topic(pass_id))
        scanners = get_channel().subscribe(venue_topic(venue_id))

        publish_rotated(pass_id, venue_id, token="tok", image="data:image/png;base64,", expires_at=timezone.now())

        event = holder.get(timeout=0.1)
        assert isinstance(event, Rotated)
        assert event.new_code.token == "tok"
        assert event.new_code.refresh_interval == 30
        assert scanners.get(timeout=0.01) is None

    def test_redeemed_goes_to_holder_and_venue(self) -> None:
        pass_id, venue_id = uuid.uuid4(), uuid.uuid4()
        holder = get_channel().subscribe(pass_topic(pass_id))
        scanners = get_channel().subscribe(venue_topic(venue_id))

        publish_redeemed(pass_id, venue_id)

        assert holder.get(timeout=0.1).kind == EventKind.REDEEMED  # type: ignore[union-attr]
        assert scanners.get(timeout=0.1).kind == EventKind.REDEEMED  # type: ignore[union-attr]

    def test_transferred_carries_the_new_pass(self) -> None:
        pass_id, venue_id, new_pass_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        scanners = get_channel().subscribe(venue_topic(venue_id))

        publish_transferred(pass_id, venue_id, new_pass_id)

        event = scanners.get(timeout=0.1)
        assert event is not None
        assert event.model_dump()["new_pass_id"] == new_pass_id

    def test_rotation_stopped_goes_to_the_holder_only(self) -> None:
        pass_id, venue_id = uuid.uuid4(), uuid.uuid4()
        holder = get_channel().subscribe(pass_topic(pass_id))
        scanners = get_channel().subscribe(venue_topic(venue_id))

        publish_rotation_stopped(pass_id, venue_id, "expired")

        assert holder.get(timeout=0.1).model_dump()["reason"] == "expired"  # type: ignore[union-attr]
        assert scanners.get(timeout=0.01) is None
