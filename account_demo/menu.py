"""
Interactive Test Menu

Text menu over stdin/stdout for creating, updating, listing and counting
bank accounts. Input is consumed as whitespace-separated tokens, so values
may be typed on one line or spread across several. Running out of input,
or typing something that is not a number where one is expected, ends the
session cleanly.
"""

from collections import deque
from enum import Enum, IntEnum
from typing import Callable, Deque, Dict, List, Optional, TextIO, Tuple
import logging
import sys

from .accounts import (
    BankAccount, MIN_DEFAULT_AVAILABLE_BALANCE, MIN_DEFAULT_PRESENT_BALANCE,
    format_amount
)
from .config import get_config
from .errors import AccountValidationError
from .events import EventDispatcher, log_event_handler
from .logging_config import get_logger, setup_logging
from .registry import AccountRegistry


class MenuState(Enum):
    """Driver loop states"""
    MENU_PROMPT = "menu_prompt"
    AWAITING_INPUT = "awaiting_input"
    DISPATCHING = "dispatching"
    DONE = "done"


class MenuOption(IntEnum):
    """Menu selections"""
    COUNT = 1
    CREATE = 2
    UPDATE = 3
    LIST = 4
    QUIT = 5


MENU_TEXT = (
    "\n=== Bank Account Test Menu ===\n"
    "1) Print number of BankAccount objects in memory\n"
    "2) Create an account (you choose values)\n"
    "3) Try to update an existing account (test exceptions)\n"
    "4) List all accounts\n"
    "5) Quit\n"
    "Select: "
)


def amount_from_string(value: str) -> float:
    """
    Parse a balance typed at the prompt.

    A leading currency symbol and thousands separators are accepted,
    e.g. "$1,250.50".

    Raises:
        ValueError: If the token is not a number
    """
    clean_value = value.strip().lstrip("$").replace(",", "")
    if not clean_value:
        raise ValueError(f"Cannot convert '{value}' to an amount")
    return float(clean_value)


class TokenReader:
    """Reads whitespace-separated tokens from a text stream"""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._pending: Deque[str] = deque()

    def next_token(self) -> Optional[str]:
        """Return the next token, or None at end of input"""
        while not self._pending:
            line = self.stream.readline()
            if not line:
                return None
            self._pending.extend(line.split())
        return self._pending.popleft()

    def read_int(self) -> Optional[int]:
        """Read an integer, or None on end of input or a malformed token"""
        token = self.next_token()
        if token is None:
            return None
        try:
            return int(token)
        except ValueError:
            return None

    def read_amount(self) -> Optional[float]:
        """Read a balance, or None on end of input or a malformed token"""
        token = self.next_token()
        if token is None:
            return None
        try:
            return amount_from_string(token)
        except ValueError:
            return None


class AccountMenu:
    """
    Menu driver owning the account list and the live-instance registry.

    The loop moves MENU_PROMPT -> AWAITING_INPUT -> DISPATCHING and back,
    until a quit selection or failed read moves it to DONE.
    """

    def __init__(
        self,
        registry: Optional[AccountRegistry] = None,
        input_stream: Optional[TextIO] = None,
        output_stream: Optional[TextIO] = None,
        strict_create: bool = False
    ):
        self.registry = registry or AccountRegistry()
        self.reader = TokenReader(input_stream or sys.stdin)
        self.output = output_stream or sys.stdout
        self.strict_create = strict_create
        self.accounts: List[BankAccount] = []
        self.state = MenuState.MENU_PROMPT
        self.logger = logging.getLogger("account_demo.menu")

        self._handlers: Dict[MenuOption, Callable[[], None]] = {
            MenuOption.COUNT: self.show_count,
            MenuOption.CREATE: self.create_account,
            MenuOption.UPDATE: self.update_account,
            MenuOption.LIST: self.list_accounts,
            MenuOption.QUIT: self.quit,
        }

    def _write(self, text: str = "", end: str = "\n") -> None:
        print(text, end=end, file=self.output)
        self.output.flush()

    def _end_of_input(self) -> None:
        self.logger.info("Input ended, leaving menu")
        self.state = MenuState.DONE

    def _read_balances(self) -> Optional[Tuple[float, float]]:
        available = self.reader.read_amount()
        if available is None:
            return None
        present = self.reader.read_amount()
        if present is None:
            return None
        return available, present

    def run(self) -> int:
        """Run the menu until quit or end of input. Returns the exit code."""
        try:
            while self.state is not MenuState.DONE:
                self.step()
        finally:
            self.close()
        return 0

    def step(self) -> None:
        """Render the menu, read one selection and dispatch it"""
        self.state = MenuState.MENU_PROMPT
        self._write(MENU_TEXT, end="")

        self.state = MenuState.AWAITING_INPUT
        choice = self.reader.read_int()
        if choice is None:
            self._end_of_input()
            return

        self.state = MenuState.DISPATCHING
        self.dispatch(choice)
        if self.state is MenuState.DISPATCHING:
            self.state = MenuState.MENU_PROMPT

    def dispatch(self, choice: int) -> None:
        """Run the operation for a menu selection"""
        try:
            option = MenuOption(choice)
        except ValueError:
            self._write("Unknown option.")
            return
        self._handlers[option]()

    def show_count(self) -> None:
        self._write(f"Objects currently in memory: {self.registry.live_count}")

    def create_account(self) -> None:
        """Read two balances and append a new account built from them"""
        self._write("Enter available and present balances: ", end="")
        balances = self._read_balances()
        if balances is None:
            self._end_of_input()
            return

        self._write(f"Count before create: {self.registry.live_count}")
        try:
            account = BankAccount(
                *balances, registry=self.registry, strict=self.strict_create
            )
        except AccountValidationError as e:
            self._write(f"[Create blocked] {e} -> no account created.")
            self._write(f"Count after create: {self.registry.live_count}")
            return

        if account.creation_error is not None:
            self._write(
                f"[Create] {account.creation_error.message} -> account set to defaults "
                f"({format_amount(MIN_DEFAULT_AVAILABLE_BALANCE)}, "
                f"{format_amount(MIN_DEFAULT_PRESENT_BALANCE)})"
            )

        self.accounts.append(account)
        self._write(f"Created: {account}")
        self._write(f"Count after create: {self.registry.live_count}")

    def update_account(self) -> None:
        """Try to set new balances on an existing account"""
        if not self.accounts:
            self._write("No accounts yet. Create one first (option 2).")
            return

        self._write(f"Choose account index [0..{len(self.accounts) - 1}]: ", end="")
        index = self.reader.read_int()
        if index is None:
            self._end_of_input()
            return
        if not 0 <= index < len(self.accounts):
            self._write("Invalid index.")
            return

        self._write("Enter NEW available and present balances: ", end="")
        balances = self._read_balances()
        if balances is None:
            self._end_of_input()
            return

        account = self.accounts[index]
        self._write(f"Before update: {account}")

        result = account.set_balances(*balances)
        if result.ok:
            self._write(f"Update OK. After update: {account}")
        else:
            self._write(f"[Update blocked] {result.message} -> object left unchanged.")
            self._write(f"After failed update: {account}")

    def list_accounts(self) -> None:
        if not self.accounts:
            self._write("(no accounts)")
            return
        for index, account in enumerate(self.accounts):
            self._write(f"{index}: {account}")

    def quit(self) -> None:
        self._write("Goodbye!")
        self.state = MenuState.DONE

    def close(self) -> None:
        """Release every stored account from the registry"""
        released = self.registry.release_all(self.accounts)
        self.accounts.clear()
        self.logger.debug(f"Released {released} accounts, live count {self.registry.live_count}")


def main(input_stream: Optional[TextIO] = None, output_stream: Optional[TextIO] = None) -> int:
    """Console entry point"""
    cfg = get_config()
    setup_logging(cfg.log_level, log_format=cfg.log_format)

    dispatcher = EventDispatcher()
    if cfg.enable_event_logging:
        dispatcher.subscribe_all(log_event_handler(get_logger("account_demo.audit")))

    menu = AccountMenu(
        registry=AccountRegistry(dispatcher),
        input_stream=input_stream,
        output_stream=output_stream,
        strict_create=cfg.strict_create
    )
    try:
        return menu.run()
    except KeyboardInterrupt:
        print("\nGoodbye!", file=menu.output)
        return 0
