"""Errors raised by the pass ledger, credential validation and allocation.

Every error carries a stable code. Only StoreUnavailable is retryable.
"""

from common.exceptions import DomainError, ErrorCategory


class PassError(DomainError):
    """Base class for pass errors."""


class PassNotFound(PassError):
    code = "PASS_NOT_FOUND"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Pass not found."
    status_code = 404


class NotPassOwner(PassError):
    # The pass exists but belongs to someone else. Answered like a missing pass.
    code = "PASS_NOT_FOUND"
    category = ErrorCategory.AUTHORIZATION
    default_message = "Pass not found or not owned by user."
    status_code = 404


class PassAlreadyRedeemed(PassError):
    code = "PASS_ALREADY_REDEEMED"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Pass has already been redeemed."


class PassAlreadyTransferred(PassError):
    code = "PASS_ALREADY_TRANSFERRED"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Pass has already been transferred."


class PassExpired(PassError):
    code = "PASS_EXPIRED"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Pass has expired."


class TransferDisabled(PassError):
    code = "TRANSFER_DISABLED"
    category = ErrorCategory.CONFIGURATION_DISABLED
    default_message = "Pass transfers are disabled for this venue."


class PassNotTransferable(PassError):
    code = "PASS_NOT_TRANSFERABLE"
    category = ErrorCategory.VALIDATION
    default_message = "This pass type is not transferable."


class RecipientNotEligible(PassError):
    code = "RECIPIENT_NOT_ELIGIBLE"
    category = ErrorCategory.VALIDATION
    default_message = "Recipient is not associated with this venue."


class RestrictionViolated(PassError):
    code = "PASS_RESTRICTED"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Pass cannot be used right now."


class MalformedOrExpiredCredential(PassError):
    code = "INVALID_CREDENTIAL"
    category = ErrorCategory.VALIDATION
    default_message = "Invalid or expired code."


class StaleCredential(PassError):
    code = "STALE_CREDENTIAL"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Code has been superseded by a newer one."


class StoreUnavailable(PassError):
    code = "STORE_UNAVAILABLE"
    category = ErrorCategory.UNAVAILABLE
    default_message = "The pass store is temporarily unavailable. Please try again."
