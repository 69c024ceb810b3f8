"""Venue configuration and venue membership lookups.

These are the read-only inputs the pass core consumes: a caller's venue association
(user group and role) and the venue's configuration (feature flags and allocation rules).
"""

from uuid import UUID

from django.db.models import QuerySet

from venues.exceptions import AssociationSuspended, NotAssociatedWithVenue, NotVenueStaff, VenueNotFound
from venues.models import PassAllocationRule, UserVenueAssociation, Venue


def get_venue(venue_id: UUID) -> Venue:
    try:
        return Venue.objects.get(pk=venue_id)
    except Venue.DoesNotExist as e:
        raise VenueNotFound() from e


def get_active_association(user_id: UUID, venue_id: UUID, *, for_update: bool = False) -> UserVenueAssociation:
    """Return the user's active association with the venue.

    Args:
        user_id: The user.
        venue_id: The venue.
        for_update: Lock the association row. Must be called inside a transaction.

    Raises:
        NotAssociatedWithVenue: If there is no association.
        AssociationSuspended: If the association is not active.
    """
    qs = UserVenueAssociation.objects.select_related("venue")
    if for_update:
        qs = qs.select_for_update(of=("self",))
    association = qs.filter(user_id=user_id, venue_id=venue_id).first()
    if association is None:
        raise NotAssociatedWithVenue()
    if association.status != UserVenueAssociation.Status.ACTIVE:
        raise AssociationSuspended(f"Your access to this venue is {association.status}.")
    return association


def has_active_association(user_id: UUID, venue_id: UUID) -> bool:
    return UserVenueAssociation.objects.active().filter(user_id=user_id, venue_id=venue_id).exists()


def require_venue_staff(user_id: UUID, venue_id: UUID) -> UserVenueAssociation:
    """Return the caller's staff association with the venue or raise NotVenueStaff."""
    association = UserVenueAssociation.objects.filter(user_id=user_id, venue_id=venue_id).first()
    if association is None or not association.is_staff:
        raise NotVenueStaff()
    return association


def get_allocation_rules(venue_id: UUID, user_group: str) -> QuerySet[PassAllocationRule]:
    return (
        PassAllocationRule.objects.select_related("pass_type", "venue")
        .filter(venue_id=venue_id, user_group=user_group)
        .order_by("created_at")
    )
