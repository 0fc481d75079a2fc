"""
Account Registry Module

Tracks how many accounts are alive. The registry is owned by whoever creates
the accounts (the menu driver in practice) rather than being a hidden static
on the account class. An account leaves the registry when it is released
explicitly or when it is garbage collected, whichever comes first.
"""

from typing import TYPE_CHECKING, Dict, Optional, Tuple
import logging
import weakref

from .events import DomainEvent, EventDispatcher, EventPayload, create_account_event

if TYPE_CHECKING:
    from .accounts import BankAccount, ValidationResult


class AccountRegistry:
    """
    Live-instance registry for bank accounts.

    Every registered account holds a weakref finalizer; live_count is the
    number of finalizers that have neither fired nor been detached.
    """

    def __init__(self, event_dispatcher: Optional[EventDispatcher] = None):
        self._finalizers: Dict[str, weakref.finalize] = {}
        self.event_dispatcher = event_dispatcher or EventDispatcher()
        self.logger = logging.getLogger("account_demo.registry")

    @property
    def live_count(self) -> int:
        """Number of registered accounts still alive"""
        return len(self._finalizers)

    def is_registered(self, account: 'BankAccount') -> bool:
        """Check if an account is currently counted by this registry"""
        return account.id in self._finalizers

    def register(self, account: 'BankAccount', source: Optional['BankAccount'] = None) -> None:
        """
        Start counting an account.

        Args:
            account: Account to track
            source: Account it was copied from, if any

        Raises:
            ValueError: If the account belongs to another registry
        """
        if account._registry is not None and account._registry is not self:
            raise ValueError(f"Account {account.id} is registered with another registry")
        if account.id in self._finalizers:
            return

        finalizer = weakref.finalize(account, self._on_collected, account.id)
        finalizer.atexit = False
        self._finalizers[account.id] = finalizer
        account._registry = self

        self.logger.debug(f"Registered account {account.id}, live count {self.live_count}")

        if source is not None:
            event = create_account_event(
                DomainEvent.ACCOUNT_COPIED, account,
                source_id=source.id, live_count=self.live_count
            )
        elif account.creation_error is not None:
            event = create_account_event(
                DomainEvent.ACCOUNT_DEFAULTED, account,
                error=account.creation_error.error.value,
                reason=account.creation_error.message,
                live_count=self.live_count
            )
        else:
            event = create_account_event(
                DomainEvent.ACCOUNT_CREATED, account, live_count=self.live_count
            )
        self.event_dispatcher.publish(event)

    def release(self, account: 'BankAccount') -> bool:
        """
        Stop counting an account before it is garbage collected.

        Returns:
            True if the account was counted, False otherwise
        """
        finalizer = self._finalizers.pop(account.id, None)
        if finalizer is None:
            return False

        finalizer.detach()
        account._registry = None
        self.event_dispatcher.publish(
            create_account_event(
                DomainEvent.ACCOUNT_RELEASED, account,
                reason="released", live_count=self.live_count
            )
        )
        return True

    def release_all(self, accounts) -> int:
        """Release every account in an iterable, returning how many were counted"""
        return sum(1 for account in list(accounts) if self.release(account))

    def record_update(
        self,
        account: 'BankAccount',
        result: 'ValidationResult',
        previous: Tuple[float, float]
    ) -> None:
        """Publish the outcome of an update attempt on a registered account"""
        if result.ok:
            event = create_account_event(
                DomainEvent.ACCOUNT_UPDATED, account,
                previous_available=previous[0], previous_present=previous[1]
            )
        else:
            event = create_account_event(
                DomainEvent.ACCOUNT_UPDATE_REJECTED, account,
                error=result.error.value, reason=result.message
            )
        self.event_dispatcher.publish(event)

    def _on_collected(self, account_id: str) -> None:
        if self._finalizers.pop(account_id, None) is None:
            return
        self.event_dispatcher.publish(
            EventPayload(
                event_type=DomainEvent.ACCOUNT_RELEASED,
                entity_type="account",
                entity_id=account_id,
                data={"reason": "collected", "live_count": self.live_count}
            )
        )
