"""Authentication service layer."""

import typing as t
from dataclasses import dataclass

import structlog
from django.db import IntegrityError, transaction
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken

from accounts import schema
from accounts.exceptions import AuthMethodNotAllowed, InvalidCredentials
from accounts.models import AuthMethod, QueueSkipUser
from venues.models import UserGroup, UserVenueAssociation, Venue, VenueRole
from venues.service import get_active_association, get_venue

logger = structlog.get_logger(__name__)

_IDENTITY_FIELDS: dict[AuthMethod, str] = {
    AuthMethod.EMAIL: "email",
    AuthMethod.GOVERNMENT_ID: "government_id",
    AuthMethod.SSO: "sso_id",
    AuthMethod.WEB3_WALLET: "web3_address",
}


@dataclass(frozen=True)
class LoginResult:
    user: QueueSkipUser
    association: UserVenueAssociation | None
    is_new_user: bool


def _register(method: AuthMethod, identifier: str) -> QueueSkipUser:
    field = _IDENTITY_FIELDS[method]
    username = f"{method.value}:{identifier}"[:150]
    try:
        with transaction.atomic():
            user = QueueSkipUser.objects.create_user(username=username, **{field: identifier})
    except IntegrityError:
        # Registered concurrently with the same identifier.
        existing = QueueSkipUser.objects.by_identifier(method, identifier).first()
        if existing is None:
            raise
        return existing
    logger.info("user_auto_registered", user_id=str(user.id), method=method.value)
    return user


@transaction.atomic
def login(presentation: schema.CredentialPresentation) -> LoginResult:
    """Resolve a presented identity to a user and, optionally, their venue association.

    When a venue is given, its accepted methods are enforced. Unknown identities are
    registered only if the venue allows auto-registration, in which case they also join the
    venue with the requested user group. Superusers may sign in to any venue.

    Raises:
        VenueNotFound: If the venue does not exist.
        AuthMethodNotAllowed: If the venue does not accept the method.
        InvalidCredentials: If no user matches and auto-registration is not possible.
        NotAssociatedWithVenue: If the user has no association with the venue.
        AssociationSuspended: If the user's association is not active.
    """
    method = AuthMethod(presentation.method)
    venue: Venue | None = get_venue(presentation.venue_id) if presentation.venue_id else None
    if venue is not None and method.value not in venue.auth_methods:
        logger.info("login_method_not_allowed", venue_id=str(venue.pk), method=method.value)
        raise AuthMethodNotAllowed()

    user = QueueSkipUser.objects.by_identifier(method, presentation.identifier).first()
    is_new_user = False
    if user is None:
        if venue is None or not venue.allow_auto_registration:
            logger.info("login_unknown_identity", method=method.value)
            raise InvalidCredentials()
        user = _register(method, presentation.identifier)
        is_new_user = True

    association: UserVenueAssociation | None = None
    if venue is not None:
        if is_new_user:
            association, _ = UserVenueAssociation.objects.get_or_create(
                user=user,
                venue=venue,
                defaults={"user_group": presentation.user_group or UserGroup.PUBLIC, "role": VenueRole.USER},
            )
        if user.is_superuser:
            association = UserVenueAssociation.objects.filter(user=user, venue=venue).first()
        else:
            association = get_active_association(user.pk, venue.pk)

    user.last_login = timezone.now()
    user.save(update_fields=["last_login"])
    logger.info("user_logged_in", user_id=str(user.pk), method=method.value, is_new_user=is_new_user)
    return LoginResult(user=user, association=association, is_new_user=is_new_user)


def get_token_pair_for_user(user: QueueSkipUser, association: UserVenueAssociation | None = None) -> dict[str, t.Any]:
    """Get a JWT token pair for the user, carrying their venue membership claims."""
    token = RefreshToken.for_user(user)
    token.payload.update({"sub": str(user.id), "is_superuser": user.is_superuser})
    if association is not None:
        token.payload.update(
            {
                "venue_id": str(association.venue_id),
                "user_group": association.user_group,
                "venue_role": association.role,
            }
        )
    return {
        "access": str(token.access_token),  # type: ignore[attr-defined]
        "refresh": str(token),
    }
