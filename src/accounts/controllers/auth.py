"""This module contains the controllers for the authentication app."""

from ninja_extra import ControllerBase, api_controller, route

from accounts import schema
from accounts.service import auth as auth_service
from common.schema import ErrorResponse
from common.throttling import AuthThrottle


@api_controller("/auth", tags=["Auth"], throttle=AuthThrottle())
class AuthController(ControllerBase):
    @route.post(
        "/login",
        response={200: schema.LoginResponseSchema, 401: ErrorResponse, 403: ErrorResponse},
        url_name="login",
    )
    def login(self, payload: schema.LoginSchema) -> schema.LoginResponseSchema:
        """Sign in by presenting an identity: email, government ID, SSO token or web3 wallet.

        With a `venue_id`, the venue's accepted methods apply, and unknown identities are
        registered and joined to the venue when it allows auto-registration.
        """
        result = auth_service.login(payload.presentation)
        tokens = auth_service.get_token_pair_for_user(result.user, result.association)
        membership = None
        if result.association is not None:
            membership = schema.VenueMembershipSchema(
                venue_id=result.association.venue_id,
                user_group=result.association.user_group,
                role=result.association.role,
            )
        return schema.LoginResponseSchema(
            user=schema.QueueSkipUserSchema.from_orm(result.user),
            membership=membership,
            is_new_user=result.is_new_user,
            **tokens,
        )
