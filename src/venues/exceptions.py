from common.exceptions import DomainError, ErrorCategory


class VenueNotFound(DomainError):
    """Raised when a venue does not exist."""

    code = "VENUE_NOT_FOUND"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Venue not found."
    status_code = 404


class NotAssociatedWithVenue(DomainError):
    """Raised when a user has no active association with a venue."""

    code = "INSUFFICIENT_PERMISSIONS"
    category = ErrorCategory.AUTHORIZATION
    default_message = "User is not associated with this venue."


class AssociationSuspended(DomainError):
    """Raised when a user's association with a venue is not active."""

    code = "ACCESS_DENIED"
    category = ErrorCategory.AUTHORIZATION
    default_message = "Your access to this venue is suspended."


class NotVenueStaff(DomainError):
    """Raised when a non-staff user attempts a staff-only operation."""

    code = "INSUFFICIENT_PERMISSIONS"
    category = ErrorCategory.AUTHORIZATION
    default_message = "Only venue staff can perform this operation."
