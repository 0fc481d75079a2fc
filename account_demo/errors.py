"""
Account Error Taxonomy

Error kinds for balance validation and the exception raised when a caller
chooses to propagate a validation failure instead of recovering from it.
"""

from enum import Enum


class AccountError(Enum):
    """Kinds of balance validation failures"""
    AVAILABLE_BELOW_MINIMUM = "available_below_minimum"
    PRESENT_BELOW_MINIMUM = "present_below_minimum"
    AVAILABLE_EXCEEDS_PRESENT = "available_exceeds_present"
    UNKNOWN = "unknown"


class AccountValidationError(ValueError):
    """Raised when balances violate the account invariants"""

    def __init__(self, message: str, error_type: AccountError = AccountError.UNKNOWN):
        super().__init__(message)
        self.error_type = error_type
