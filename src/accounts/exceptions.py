from common.exceptions import DomainError, ErrorCategory


class InvalidCredentials(DomainError):
    """Raised when no user matches the presented identity."""

    code = "INVALID_CREDENTIALS"
    category = ErrorCategory.AUTHORIZATION
    default_message = "User not found. Auto-registration is disabled for this venue."
    status_code = 401


class AuthMethodNotAllowed(DomainError):
    """Raised when a venue does not accept the presented identity method."""

    code = "AUTH_METHOD_NOT_ALLOWED"
    category = ErrorCategory.CONFIGURATION_DISABLED
    default_message = "This venue does not accept this sign-in method."
