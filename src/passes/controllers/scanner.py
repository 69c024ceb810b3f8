from uuid import UUID

from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from common.controllers import UserAwareController
from common.throttling import ScannerThrottle
from passes import schema
from passes.service import ledger, validation


@api_controller("/scanner", auth=JWTAuth(), tags=["Scanner"], throttle=ScannerThrottle())
class ScannerController(UserAwareController):
    @route.post("/validate", response=schema.ValidationResultSchema, url_name="validate_credential")
    def validate(self, payload: schema.ValidateSchema) -> schema.ValidationResultSchema:
        """Check a scanned code. Staff of the pass's venue only.

        Succeeds only for the live code of a usable pass. Validating does not consume the pass.
        """
        result = validation.validate(payload.token, self.user().pk)
        return schema.ValidationResultSchema(pass_id=result.pass_id, user_id=result.user_id, venue_id=result.venue_id)

    @route.post("/passes/{pass_id}/redeem", response=schema.RedemptionSchema, url_name="redeem_pass")
    def redeem(self, pass_id: UUID) -> schema.RedemptionSchema:
        """Consume a pass. Staff of the pass's venue only. A pass can be redeemed once."""
        ledger.get_pass_for_staff(pass_id, self.user().pk)
        record = ledger.redeem(pass_id, self.user().pk)
        return schema.RedemptionSchema(pass_id=pass_id, redeemed_at=record.created_at, staff_id=record.staff_id)
