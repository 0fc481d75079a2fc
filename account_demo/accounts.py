"""
Account Module

A bank account value object holding an available and a present balance.
Both balances have a fixed floor and available may never exceed present.
Validation runs before any field is written, so a rejected update leaves
the account exactly as it was.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Tuple
import logging
import uuid

from .errors import AccountError, AccountValidationError

if TYPE_CHECKING:
    from .registry import AccountRegistry


MIN_DEFAULT_AVAILABLE_BALANCE = 5.00
MIN_DEFAULT_PRESENT_BALANCE = 5.00

logger = logging.getLogger(__name__)


def format_amount(value: float) -> str:
    """Format a balance for display"""
    return f"${value:,.2f}"


ERROR_MESSAGES: Dict[AccountError, str] = {
    AccountError.AVAILABLE_BELOW_MINIMUM:
        f"Available balance below minimum {format_amount(MIN_DEFAULT_AVAILABLE_BALANCE)}",
    AccountError.PRESENT_BELOW_MINIMUM:
        f"Present balance below minimum {format_amount(MIN_DEFAULT_PRESENT_BALANCE)}",
    AccountError.AVAILABLE_EXCEEDS_PRESENT:
        "Available balance cannot exceed present balance",
    AccountError.UNKNOWN: "Unknown account error",
}


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of a balance validation.

    A result with no error is a success. Callers decide whether a failure
    is recovered locally or propagated with raise_for_error().
    """
    error: Optional[AccountError] = None
    message: str = ""

    @classmethod
    def success(cls) -> 'ValidationResult':
        return cls()

    @classmethod
    def failure(cls, error: AccountError, message: Optional[str] = None) -> 'ValidationResult':
        return cls(error=error, message=message or ERROR_MESSAGES[error])

    @property
    def ok(self) -> bool:
        """Check if validation passed"""
        return self.error is None

    def raise_for_error(self) -> None:
        """Raise AccountValidationError if validation failed"""
        if self.error is not None:
            raise AccountValidationError(self.message, self.error)


def validate_balances(available: float, present: float) -> ValidationResult:
    """
    Check a pair of balances against the account invariants.

    Checks run in a fixed order and the first violation wins:
    available floor, present floor, then available <= present.
    Comparisons are negated so that NaN counts as a violation.

    Args:
        available: Proposed available balance
        present: Proposed present balance

    Returns:
        ValidationResult describing the first violated rule, or success
    """
    if not available >= MIN_DEFAULT_AVAILABLE_BALANCE:
        return ValidationResult.failure(AccountError.AVAILABLE_BELOW_MINIMUM)

    if not present >= MIN_DEFAULT_PRESENT_BALANCE:
        return ValidationResult.failure(AccountError.PRESENT_BELOW_MINIMUM)

    if not available <= present:
        return ValidationResult.failure(AccountError.AVAILABLE_EXCEEDS_PRESENT)

    return ValidationResult.success()


class BankAccount:
    """
    Bank account with validated available and present balances.

    Constructed with no balances it starts at the minimums. Constructed with
    balances that fail validation it also starts at the minimums and keeps
    the failure in creation_error, unless strict=True, in which case
    AccountValidationError is raised and nothing is registered.
    """

    def __init__(
        self,
        available: Optional[float] = None,
        present: Optional[float] = None,
        registry: Optional['AccountRegistry'] = None,
        strict: bool = False
    ):
        if (available is None) != (present is None):
            raise TypeError("available and present must be given together")

        self.id = str(uuid.uuid4())
        self.creation_error: Optional[ValidationResult] = None
        self._available = MIN_DEFAULT_AVAILABLE_BALANCE
        self._present = MIN_DEFAULT_PRESENT_BALANCE
        self._registry: Optional['AccountRegistry'] = None

        if available is not None:
            result = self._apply(float(available), float(present))
            if not result.ok:
                if strict:
                    result.raise_for_error()
                self.creation_error = result
                logger.warning(
                    f"{result.message} -> account {self.id} set to defaults "
                    f"({format_amount(MIN_DEFAULT_AVAILABLE_BALANCE)}, "
                    f"{format_amount(MIN_DEFAULT_PRESENT_BALANCE)})"
                )

        if registry is not None:
            registry.register(self)

    @classmethod
    def from_account(
        cls,
        other: 'BankAccount',
        registry: Optional['AccountRegistry'] = None
    ) -> 'BankAccount':
        """
        Duplicate an account's balances without re-validating them.

        The copy joins the given registry, or the source's registry if none
        is given.
        """
        account = cls()
        account._available = other._available
        account._present = other._present

        target = registry if registry is not None else other._registry
        if target is not None:
            target.register(account, source=other)
        return account

    def copy(self) -> 'BankAccount':
        """Duplicate this account into the same registry"""
        return BankAccount.from_account(self)

    def __copy__(self) -> 'BankAccount':
        return self.copy()

    def __deepcopy__(self, memo) -> 'BankAccount':
        return self.copy()

    @property
    def available(self) -> float:
        return self._available

    @property
    def present(self) -> float:
        return self._present

    @property
    def balances(self) -> Tuple[float, float]:
        """Current (available, present) pair"""
        return (self._available, self._present)

    @property
    def was_defaulted(self) -> bool:
        """Check if construction fell back to the minimum balances"""
        return self.creation_error is not None

    def set_balances(self, available: float, present: float) -> ValidationResult:
        """
        Validate and set both balances as a pair.

        On failure both balances are left unchanged.

        Args:
            available: New available balance
            present: New present balance

        Returns:
            ValidationResult of the attempted update
        """
        previous = self.balances
        result = self._apply(float(available), float(present))

        if self._registry is not None:
            self._registry.record_update(self, result, previous)
        return result

    def _apply(self, available: float, present: float) -> ValidationResult:
        result = validate_balances(available, present)
        if result.ok:
            self._available, self._present = available, present
        return result

    def as_dict(self) -> Dict[str, float]:
        """Snapshot of the balances for events and logs"""
        return {"available": self._available, "present": self._present}

    def display(self) -> str:
        """Human-readable rendering of both balances"""
        return (
            f"Account{{ available: {format_amount(self._available)}, "
            f"present: {format_amount(self._present)} }}"
        )

    def __str__(self) -> str:
        return self.display()

    def __repr__(self) -> str:
        return f"BankAccount(available={self._available!r}, present={self._present!r})"
