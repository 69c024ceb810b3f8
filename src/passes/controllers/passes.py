from uuid import UUID

from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from common.controllers import UserAwareController
from common.schema import ResponseOk
from common.throttling import WriteThrottle
from passes import schema
from passes.models import Pass
from passes.service import allocation, ledger, rotation
from passes.service.rotation_scheduler import get_scheduler


@api_controller("/passes", auth=JWTAuth(), tags=["Passes"])
class PassController(UserAwareController):
    @route.get("", response=list[schema.PassSchema], url_name="list_passes")
    def list_passes(self, venue_id: UUID | None = None) -> list[Pass]:
        """List the caller's active and transferred passes, newest first.

        Pass `venue_id` to restrict the list to one venue.
        """
        return list(ledger.list_user_passes(self.user().pk, venue_id))

    @route.post("/allocate", response=list[schema.PassSchema], url_name="allocate_passes", throttle=WriteThrottle())
    def allocate(self, payload: schema.AllocateSchema) -> list[Pass]:
        """Top the caller up to the pass quota of their user group at a venue.

        Returns only the passes issued by this call. An empty list means the quota is already met.
        """
        return allocation.allocate(self.user().pk, payload.venue_id)

    @route.get("/{pass_id}", response=schema.PassSchema, url_name="get_pass")
    def get_pass(self, pass_id: UUID) -> Pass:
        """Get a pass. Visible to its owner and to staff of its venue."""
        return ledger.get_pass(pass_id, self.user())

    @route.post(
        "/{pass_id}/transfer",
        response=schema.TransferResponseSchema,
        url_name="transfer_pass",
        throttle=WriteThrottle(),
    )
    def transfer(self, pass_id: UUID, payload: schema.TransferSchema) -> schema.TransferResponseSchema:
        """Transfer a pass to another member of the same venue.

        The caller's pass is terminated and the recipient receives a new pass with the same
        validity window and restrictions.
        """
        result = ledger.transfer(pass_id, self.user().pk, payload.to_user_id)
        return schema.TransferResponseSchema(
            source_pass_id=result.source.pk,
            new_pass=schema.PassSchema.from_orm(result.new_pass),
        )

    @route.get("/{pass_id}/credential", response=schema.CredentialSchema, url_name="get_credential")
    def get_credential(self, pass_id: UUID) -> schema.CredentialSchema:
        """Get the pass's current code and keep it rotating while it is displayed.

        The code changes every `refresh_interval` seconds. New codes are pushed on the pass's
        live topic. Call DELETE on this resource when the code is no longer displayed.
        """
        credential = ledger.current_credential(pass_id, self.user().pk)
        get_scheduler().start(credential.pass_id, credential.venue_id)
        return schema.CredentialSchema.from_credential(credential)

    @route.post("/{pass_id}/credential/refresh", response=schema.CredentialSchema, url_name="refresh_credential")
    def refresh_credential(self, pass_id: UUID) -> schema.CredentialSchema:
        """Issue a new code right away. The previous code stops validating."""
        ledger.get_owned_pass(pass_id, self.user().pk)
        return schema.CredentialSchema.from_credential(rotation.rotate_credential(pass_id))

    @route.delete("/{pass_id}/credential", response=ResponseOk, url_name="stop_credential")
    def stop_credential(self, pass_id: UUID) -> ResponseOk:
        """Stop rotating the pass's code."""
        ledger.get_owned_pass(pass_id, self.user().pk)
        get_scheduler().stop(pass_id)
        return ResponseOk()
