"""Tests for the pass and scanner endpoints."""

import typing as t
import uuid
from unittest.mock import MagicMock, patch

import orjson
import pytest
from django.shortcuts import reverse  # type: ignore[attr-defined]
from django.test.client import Client

from accounts.models import QueueSkipUser
from passes.models import Pass, RedemptionRecord
from passes.service import rotation
from venues.models import PassAllocationRule, UserVenueAssociation, Venue

pytestmark = pytest.mark.django_db


def post_json(client: Client, url: str, data: dict[str, object] | None = None) -> t.Any:
    return client.post(url, data=orjson.dumps(data or {}), content_type="application/json")


class TestListPasses:
    def test_lists_own_passes(self, user_client: Client, active_pass: Pass) -> None:
        response = user_client.get(reverse("api:list_passes"))

        assert response.status_code == 200
        data = response.json()
        assert [p["id"] for p in data] == [str(active_pass.pk)]
        assert data[0]["status"] == "active"
        assert data[0]["pass_type"]["name"] == "Skip the line"

    def test_other_users_see_nothing(self, other_client: Client, active_pass: Pass) -> None:
        response = other_client.get(reverse("api:list_passes"))

        assert response.status_code == 200
        assert response.json() == []

    def test_requires_authentication(self) -> None:
        response = Client().get(reverse("api:list_passes"))

        assert response.status_code == 401


class TestAllocate:
    def test_allocates_up_to_quota(
        self, user_client: Client, venue: Venue, association: UserVenueAssociation, allocation_rule: PassAllocationRule
    ) -> None:
        response = post_json(user_client, reverse("api:allocate_passes"), {"venue_id": str(venue.pk)})

        assert response.status_code == 200
        assert len(response.json()) == 2

        again = post_json(user_client, reverse("api:allocate_passes"), {"venue_id": str(venue.pk)})
        assert again.json() == []

    def test_venue_without_membership(self, user_client: Client) -> None:
        response = post_json(user_client, reverse("api:allocate_passes"), {"venue_id": str(uuid.uuid4())})

        assert response.status_code == 403
        assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"


class TestGetPass:
    def test_owner_can_read(self, user_client: Client, active_pass: Pass) -> None:
        response = user_client.get(reverse("api:get_pass", kwargs={"pass_id": active_pass.pk}))

        assert response.status_code == 200
        assert response.json()["id"] == str(active_pass.pk)

    def test_venue_staff_can_read(self, staff_client: Client, active_pass: Pass) -> None:
        response = staff_client.get(reverse("api:get_pass", kwargs={"pass_id": active_pass.pk}))

        assert response.status_code == 200

    def test_stranger_gets_not_found(self, other_client: Client, active_pass: Pass) -> None:
        response = other_client.get(reverse("api:get_pass", kwargs={"pass_id": active_pass.pk}))

        assert response.status_code == 404
        assert response.json() == {
            "code": "PASS_NOT_FOUND",
            "message": "Pass not found or not owned by user.",
            "retryable": False,
        }

    def test_unknown_pass(self, user_client: Client) -> None:
        response = user_client.get(reverse("api:get_pass", kwargs={"pass_id": uuid.uuid4()}))

        assert response.status_code == 404
        assert response.json()["code"] == "PASS_NOT_FOUND"


class TestTransfer:
    def test_transfer(
        self,
        user_client: Client,
        active_pass: Pass,
        other_user: QueueSkipUser,
        other_association: UserVenueAssociation,
    ) -> None:
        url = reverse("api:transfer_pass", kwargs={"pass_id": active_pass.pk})

        response = post_json(user_client, url, {"to_user_id": str(other_user.pk)})

        assert response.status_code == 200
        data = response.json()
        assert data["source_pass_id"] == str(active_pass.pk)
        assert data["new_pass"]["owner_id"] == str(other_user.pk)
        assert data["new_pass"]["status"] == "active"

        again = post_json(user_client, url, {"to_user_id": str(other_user.pk)})
        assert again.status_code == 409
        assert again.json()["code"] == "PASS_ALREADY_TRANSFERRED"

    def test_recipient_outside_venue(self, user_client: Client, active_pass: Pass, other_user: QueueSkipUser) -> None:
        response = post_json(
            user_client,
            reverse("api:transfer_pass", kwargs={"pass_id": active_pass.pk}),
            {"to_user_id": str(other_user.pk)},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "RECIPIENT_NOT_ELIGIBLE"

    def test_transfers_disabled(
        self,
        user_client: Client,
        active_pass: Pass,
        venue: Venue,
        other_user: QueueSkipUser,
        other_association: UserVenueAssociation,
    ) -> None:
        Venue.objects.filter(pk=venue.pk).update(pass_transfer_enabled=False)

        response = post_json(
            user_client,
            reverse("api:transfer_pass", kwargs={"pass_id": active_pass.pk}),
            {"to_user_id": str(other_user.pk)},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "TRANSFER_DISABLED"


class TestCredential:
    @patch("passes.controllers.passes.get_scheduler")
    def test_get_credential_starts_rotation(
        self, mock_get_scheduler: MagicMock, user_client: Client, active_pass: Pass
    ) -> None:
        response = user_client.get(reverse("api:get_credential", kwargs={"pass_id": active_pass.pk}))

        assert response.status_code == 200
        data = response.json()
        assert data["pass_id"] == str(active_pass.pk)
        assert data["image"].startswith("data:image/png;base64,")
        assert data["refresh_interval"] == 30
        mock_get_scheduler.return_value.start.assert_called_once_with(active_pass.pk, active_pass.venue_id)

    @patch("passes.controllers.passes.get_scheduler")
    def test_get_credential_is_stable_between_rotations(
        self, mock_get_scheduler: MagicMock, user_client: Client, active_pass: Pass
    ) -> None:
        url = reverse("api:get_credential", kwargs={"pass_id": active_pass.pk})

        first = user_client.get(url).json()
        second = user_client.get(url).json()

        assert first["token"] == second["token"]

    @patch("passes.controllers.passes.get_scheduler")
    def test_get_credential_of_someone_elses_pass(
        self, mock_get_scheduler: MagicMock, other_client: Client, active_pass: Pass
    ) -> None:
        response = other_client.get(reverse("api:get_credential", kwargs={"pass_id": active_pass.pk}))

        assert response.status_code == 404
        mock_get_scheduler.return_value.start.assert_not_called()

    def test_refresh_issues_a_new_code(self, user_client: Client, active_pass: Pass) -> None:
        before = rotation.rotate_credential(active_pass.pk)

        response = post_json(user_client, reverse("api:refresh_credential", kwargs={"pass_id": active_pass.pk}))

        assert response.status_code == 200
        assert response.json()["token"] != before.token

    def test_refresh_of_redeemed_pass(self, user_client: Client, active_pass: Pass) -> None:
        Pass.objects.filter(pk=active_pass.pk).update(status=Pass.Status.USED)

        response = post_json(user_client, reverse("api:refresh_credential", kwargs={"pass_id": active_pass.pk}))

        assert response.status_code == 409
        assert response.json() == {
            "code": "PASS_ALREADY_REDEEMED",
            "message": "Pass has already been redeemed.",
            "retryable": False,
        }

    @patch("passes.controllers.passes.get_scheduler")
    def test_stop_credential(self, mock_get_scheduler: MagicMock, user_client: Client, active_pass: Pass) -> None:
        response = user_client.delete(reverse("api:stop_credential", kwargs={"pass_id": active_pass.pk}))

        assert response.status_code == 200
        mock_get_scheduler.return_value.stop.assert_called_once_with(active_pass.pk)


class TestScanner:
    def test_validate_current_code(self, staff_client: Client, active_pass: Pass, user: QueueSkipUser) -> None:
        credential = rotation.rotate_credential(active_pass.pk)

        response = post_json(staff_client, reverse("api:validate_credential"), {"token": credential.token})

        assert response.status_code == 200
        assert response.json() == {
            "pass_id": str(active_pass.pk),
            "user_id": str(user.pk),
            "venue_id": str(active_pass.venue_id),
        }

    def test_validate_superseded_code(self, staff_client: Client, active_pass: Pass) -> None:
        old = rotation.rotate_credential(active_pass.pk)
        rotation.rotate_credential(active_pass.pk)

        response = post_json(staff_client, reverse("api:validate_credential"), {"token": old.token})

        assert response.status_code == 409
        assert response.json()["code"] == "STALE_CREDENTIAL"

    def test_validate_garbage(self, staff_client: Client) -> None:
        response = post_json(staff_client, reverse("api:validate_credential"), {"token": "not-a-code"})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_CREDENTIAL"

    def test_validate_empty_token_fails_schema_validation(self, staff_client: Client) -> None:
        response = post_json(staff_client, reverse("api:validate_credential"), {"token": ""})

        assert response.status_code == 422

    def test_holder_cannot_validate(self, user_client: Client, active_pass: Pass) -> None:
        credential = rotation.rotate_credential(active_pass.pk)

        response = post_json(user_client, reverse("api:validate_credential"), {"token": credential.token})

        assert response.status_code == 403
        assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"

    def test_redeem(self, staff_client: Client, staff_user: QueueSkipUser, active_pass: Pass) -> None:
        url = reverse("api:redeem_pass", kwargs={"pass_id": active_pass.pk})

        response = post_json(staff_client, url)

        assert response.status_code == 200
        assert response.json()["staff_id"] == str(staff_user.pk)
        assert RedemptionRecord.objects.filter(pass_obj=active_pass).count() == 1

        again = post_json(staff_client, url)
        assert again.status_code == 409
        assert again.json()["code"] == "PASS_ALREADY_REDEEMED"

    def test_holder_cannot_redeem(self, user_client: Client, active_pass: Pass) -> None:
        response = post_json(user_client, reverse("api:redeem_pass", kwargs={"pass_id": active_pass.pk}))

        assert response.status_code == 403
        active_pass.refresh_from_db()
        assert active_pass.status == Pass.Status.ACTIVE
