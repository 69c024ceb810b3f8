"""Tests for the best-effort notarization queue."""

import typing as t
from datetime import timedelta
from unittest.mock import MagicMock, patch

import httpx
import pytest
from celery.exceptions import Retry
from django.test import override_settings

from notary import service
from notary.client import HttpNotarizer, get_notarizer
from notary.models import NotarizationRequest
from notary.protocols import NotarizationFailed
from notary.tasks import process_notarization, retry_stale_notarizations
from passes.models import Pass, RedemptionRecord
from queueskip.celery import app as celery_app

pytestmark = pytest.mark.django_db


class FakeNotarizer:
    def __init__(self, failures: int = 0, receipt_id: str = "receipt-1") -> None:
        self.failures = failures
        self.receipt_id = receipt_id
        self.events: list[dict[str, t.Any]] = []

    def notarize(self, event: dict[str, t.Any]) -> str:
        self.events.append(event)
        if len(self.events) <= self.failures:
            raise NotarizationFailed("ledger down")
        return self.receipt_id


def make_request(pass_obj: Pass, kind: str = NotarizationRequest.Kind.MINT, **kwargs: t.Any) -> NotarizationRequest:
    return NotarizationRequest.objects.create(
        kind=kind, pass_obj=pass_obj, payload={"kind": kind, "pass_id": str(pass_obj.pk)}, **kwargs
    )


class TestAttempt:
    def test_skipped_when_not_configured(self, active_pass: Pass) -> None:
        request = make_request(active_pass)

        result = service.attempt_notarization(request.pk)

        assert result.status == NotarizationRequest.Status.SKIPPED
        assert result.attempts == 0
        assert result.completed_at is not None

    def test_success_backfills_the_pass_receipt(self, active_pass: Pass) -> None:
        request = make_request(active_pass)
        notarizer = FakeNotarizer()

        result = service.attempt_notarization(request.pk, notarizer)

        assert result.status == NotarizationRequest.Status.SUCCEEDED
        assert result.receipt_id == "receipt-1"
        assert notarizer.events[0]["idempotency_key"] == str(request.pk)
        active_pass.refresh_from_db()
        assert active_pass.receipt_id == "receipt-1"

    def test_success_backfills_the_redemption_receipt(self, active_pass: Pass) -> None:
        record = RedemptionRecord.objects.create(pass_obj=active_pass, venue_id=active_pass.venue_id)
        request = make_request(active_pass, NotarizationRequest.Kind.REDEEM, record_id=record.pk)

        service.attempt_notarization(request.pk, FakeNotarizer(receipt_id="r-redeem"))

        record.refresh_from_db()
        assert record.receipt_id == "r-redeem"
        active_pass.refresh_from_db()
        assert active_pass.receipt_id == ""

    def test_failure_stays_pending(self, active_pass: Pass) -> None:
        request = make_request(active_pass)

        result = service.attempt_notarization(request.pk, FakeNotarizer(failures=1))

        assert result.status == NotarizationRequest.Status.PENDING
        assert result.attempts == 1
        assert result.last_error == "ledger down"

    @override_settings(NOTARY_MAX_ATTEMPTS=2)
    def test_gives_up_after_max_attempts(self, active_pass: Pass) -> None:
        request = make_request(active_pass, attempts=1)

        result = service.attempt_notarization(request.pk, FakeNotarizer(failures=5))

        assert result.status == NotarizationRequest.Status.FAILED
        assert result.attempts == 2
        assert result.completed_at is not None

    def test_finished_requests_are_left_alone(self, active_pass: Pass) -> None:
        request = make_request(active_pass, status=NotarizationRequest.Status.SUCCEEDED, receipt_id="done")
        notarizer = FakeNotarizer()

        result = service.attempt_notarization(request.pk, notarizer)

        assert result.receipt_id == "done"
        assert notarizer.events == []


@pytest.mark.parametrize(
    "attempts,expected",
    [(1, 10), (2, 20), (3, 40), (7, 600), (20, 600)],
)
def test_backoff_doubles_up_to_the_cap(attempts: int, expected: int) -> None:
    assert service.backoff_seconds(attempts) == expected


class TestEnqueue:
    def test_records_the_payload_and_runs_the_task(self, active_pass: Pass) -> None:
        request = service.enqueue_notarization(NotarizationRequest.Kind.MINT, active_pass)

        assert request is not None
        request.refresh_from_db()
        assert request.payload["pass_id"] == str(active_pass.pk)
        assert request.payload["venue_id"] == str(active_pass.venue_id)
        assert request.status == NotarizationRequest.Status.SKIPPED

    @patch("notary.tasks.process_notarization.delay", side_effect=RuntimeError("broker down"))
    def test_dispatch_failure_leaves_the_request_pending(self, mock_delay: MagicMock, active_pass: Pass) -> None:
        request = service.enqueue_notarization(NotarizationRequest.Kind.MINT, active_pass)

        assert request is not None
        request.refresh_from_db()
        assert request.status == NotarizationRequest.Status.PENDING

    @patch("notary.service.NotarizationRequest.objects.create", side_effect=RuntimeError("db down"))
    def test_never_raises_into_the_caller(self, mock_create: MagicMock, active_pass: Pass) -> None:
        assert service.enqueue_notarization(NotarizationRequest.Kind.MINT, active_pass) is None


@pytest.fixture
def replay_retries() -> t.Iterator[None]:
    """Let eager tasks replay their own retries instead of raising them."""
    celery_app.conf.task_eager_propagates = False
    yield
    celery_app.conf.task_eager_propagates = True


class TestTasks:
    def test_pending_attempt_asks_celery_to_retry_with_backoff(self, active_pass: Pass) -> None:
        request = make_request(active_pass)

        with patch("notary.service.get_notarizer", return_value=FakeNotarizer(failures=1)):
            with pytest.raises(Retry) as exc_info:
                process_notarization.delay(str(request.pk))

        assert exc_info.value.when == service.backoff_seconds(1)
        request.refresh_from_db()
        assert request.status == NotarizationRequest.Status.PENDING
        assert request.attempts == 1

    @override_settings(NOTARY_MAX_ATTEMPTS=3)
    def test_task_retries_until_success(self, active_pass: Pass, replay_retries: None) -> None:
        request = make_request(active_pass)
        notarizer = FakeNotarizer(failures=2)

        with patch("notary.service.get_notarizer", return_value=notarizer):
            process_notarization.delay(str(request.pk))

        request.refresh_from_db()
        assert request.status == NotarizationRequest.Status.SUCCEEDED
        assert request.attempts == 3

    @override_settings(NOTARY_MAX_ATTEMPTS=2)
    def test_task_stops_after_max_attempts(self, active_pass: Pass, replay_retries: None) -> None:
        request = make_request(active_pass)
        notarizer = FakeNotarizer(failures=10)

        with patch("notary.service.get_notarizer", return_value=notarizer):
            process_notarization.delay(str(request.pk))

        request.refresh_from_db()
        assert request.status == NotarizationRequest.Status.FAILED
        assert len(notarizer.events) == 2

    @override_settings(NOTARY_MAX_ATTEMPTS=3)
    def test_exhausted_celery_retries_leave_the_request_pending(self, active_pass: Pass) -> None:
        request = make_request(active_pass)

        with patch("notary.service.get_notarizer", return_value=FakeNotarizer(failures=1)):
            result = process_notarization.apply(args=[str(request.pk)], retries=3)

        assert result.get() == "pending"
        request.refresh_from_db()
        assert request.status == NotarizationRequest.Status.PENDING
        assert request.attempts == 1

    def test_stale_requests_are_redispatched(self, active_pass: Pass) -> None:
        stale = make_request(active_pass)
        NotarizationRequest.objects.filter(pk=stale.pk).update(
            updated_at=stale.updated_at - timedelta(hours=2)
        )
        make_request(active_pass)

        result = retry_stale_notarizations.delay().get()

        assert result == {"redispatched": 1}
        stale.refresh_from_db()
        assert stale.status == NotarizationRequest.Status.SKIPPED


class TestHttpNotarizer:
    def test_get_notarizer_is_none_without_url(self) -> None:
        assert get_notarizer() is None

    @override_settings(NOTARY_URL="https://ledger.example.com/", NOTARY_API_KEY="key")
    def test_get_notarizer_uses_settings(self) -> None:
        notarizer = get_notarizer()

        assert isinstance(notarizer, HttpNotarizer)
        assert notarizer.base_url == "https://ledger.example.com"

    @patch("notary.client.httpx.post")
    def test_posts_the_event(self, mock_post: MagicMock) -> None:
        mock_post.return_value = httpx.Response(
            201, json={"receipt_id": "abc"}, request=httpx.Request("POST", "https://ledger.example.com/records")
        )

        receipt = HttpNotarizer("https://ledger.example.com", api_key="key").notarize({"idempotency_key": "k1"})

        assert receipt == "abc"
        _, kwargs = mock_post.call_args
        assert kwargs["headers"] == {"Idempotency-Key": "k1", "Authorization": "Bearer key"}

    @patch("notary.client.httpx.post")
    def test_http_errors_become_notarization_failures(self, mock_post: MagicMock) -> None:
        mock_post.return_value = httpx.Response(
            503, json={}, request=httpx.Request("POST", "https://ledger.example.com/records")
        )

        with pytest.raises(NotarizationFailed):
            HttpNotarizer("https://ledger.example.com").notarize({})

    @patch("notary.client.httpx.post", side_effect=httpx.ConnectError("refused"))
    def test_connection_errors_become_notarization_failures(self, mock_post: MagicMock) -> None:
        with pytest.raises(NotarizationFailed):
            HttpNotarizer("https://ledger.example.com").notarize({})

    @patch("notary.client.httpx.post")
    def test_missing_receipt_is_a_failure(self, mock_post: MagicMock) -> None:
        mock_post.return_value = httpx.Response(
            200, json={"ok": True}, request=httpx.Request("POST", "https://ledger.example.com/records")
        )

        with pytest.raises(NotarizationFailed):
            HttpNotarizer("https://ledger.example.com").notarize({})
