"""
Core ledger engine for the tokenledger system.

This module provides the Ledger class that validates commands and applies the
balance, allowance and total-supply state transitions over a key-value store.
The ledger never commits or rolls back on its own: it writes straight into the
store it is handed, and the caller decides whether those writes survive.
"""

import logging
from typing import Iterator, Optional, Tuple, Union

from pydantic import ValidationError

from tokenledger.core.config import LedgerConfig, config as default_config
from tokenledger.core.models import (
    MAX_UINT128, Constants, Response, InitializeMsg,
    ExecuteMsg, Transfer, Approve, TransferFrom, Burn,
    QueryMsg, Balance, Allowance, TokenInfo,
    BalanceResponse, AllowanceResponse, TokenInfoResponse,
)
from tokenledger.core.storage import Storage, PrefixedStorage, ReadonlyPrefixedStorage

logger = logging.getLogger(__name__)

PREFIX_CONFIG = b"config"
PREFIX_BALANCES = b"balances"
PREFIX_ALLOWANCES = b"allowances"

KEY_CONSTANTS = b"constants"
KEY_TOTAL_SUPPLY = b"total_supply"

MAX_DECIMALS = 18
UINT128_WIDTH = 16


class ContractError(Exception):
    """Base exception for rejected ledger calls."""

    pass


class NameWrongFormat(ContractError):
    """Exception raised when the token name fails format validation."""

    def __init__(self, name: str = ""):
        super().__init__(f"Name is not in the expected format: {name!r}")
        self.name = name


class TickerWrongSymbolFormat(ContractError):
    """Exception raised when the ticker symbol fails format validation."""

    def __init__(self, symbol: str = ""):
        super().__init__(f"Ticker symbol is not in expected format: {symbol!r}")
        self.symbol = symbol


class DecimalsExceeded(ContractError):
    """Exception raised when decimals exceed the supported precision."""

    def __init__(self, decimals: int = 0):
        super().__init__(f"Decimals must not exceed {MAX_DECIMALS}, got {decimals}")
        self.decimals = decimals


class InsufficientFunds(ContractError):
    """Exception raised when a debit exceeds the current balance."""

    def __init__(self, balance: int, required: int):
        super().__init__(f"Insufficient funds (balance {balance}, required={required})")
        self.balance = balance
        self.required = required


class InsufficientAllowance(ContractError):
    """Exception raised when a delegated debit exceeds the granted allowance."""

    def __init__(self, allowance: int, required: int):
        super().__init__(f"Insufficient allowance (allowance {allowance}, required={required})")
        self.allowance = allowance
        self.required = required


class InvalidIdentifier(ContractError):
    """Exception raised when an account identifier fails address validation."""

    def __init__(self, address: str, reason: str = "invalid format"):
        super().__init__(f"Invalid address {address!r}: {reason}")
        self.address = address
        self.reason = reason


class ArithmeticOverflow(ContractError):
    """Exception raised when a checked 128-bit addition would overflow."""

    pass


class InvariantViolation(Exception):
    """Fatal exception raised when persisted ledger state is missing or corrupted."""

    pass


# ───────────────────────────────
# 🔢 Fixed-width integer codec
# ───────────────────────────────


def encode_u128(value: int) -> bytes:
    return value.to_bytes(UINT128_WIDTH, "big")


def decode_u128(raw: bytes) -> int:
    if len(raw) != UINT128_WIDTH:
        raise InvariantViolation(
            f"Corrupted data found. {UINT128_WIDTH} byte expected, got {len(raw)}"
        )
    return int.from_bytes(raw, "big")


def read_u128(store: ReadonlyPrefixedStorage, key: bytes) -> int:
    """Read a fixed-width integer, treating an absent record as zero."""
    raw = store.get(key)
    if raw is None:
        return 0
    return decode_u128(raw)


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > MAX_UINT128:
        raise ArithmeticOverflow(f"Cannot add {a} + {b}: exceeds 128-bit range")
    return result


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise InvariantViolation(f"Cannot subtract {b} from {a}: result would be negative")
    return a - b


class Ledger:
    """
    Core ledger engine for the tokenledger system.

    Each public method takes the store to operate on, so the same ledger
    instance serves any number of stores. Address validation is delegated to
    the ``api`` collaborator; the ``sender`` passed to commands is trusted.
    """

    def __init__(self, api, ledger_config: Optional[LedgerConfig] = None):
        """Initialize the ledger.

        Args:
            api: Address validator exposing ``addr_validate(address) -> str``
            ledger_config: Configuration for metadata bounds (default: global config)
        """
        self.api = api
        self.config = ledger_config or default_config

    # ───────────────────────────────
    # 🌱 Initialization
    # ───────────────────────────────

    def instantiate(self, storage: Storage, sender: str, msg: InitializeMsg) -> Response:
        """Seed balances and persist token metadata.

        Args:
            storage: Store to write into
            sender: Caller identity (unused beyond logging)
            msg: Initialize message

        Returns:
            Response: Empty attribute set

        Raises:
            ContractError: If a seed address or the metadata is invalid
        """
        total_supply = 0
        seeded = {}
        balances = PrefixedStorage(storage, PREFIX_BALANCES)
        for row in msg.initial_balances:
            address = self.api.addr_validate(row.address)
            balances.set(address.encode("utf-8"), encode_u128(row.amount))
            # A repeated address overwrites its earlier seed
            total_supply = checked_add(total_supply - seeded.get(address, 0), row.amount)
            seeded[address] = row.amount

        if not self.is_valid_name(msg.name):
            raise NameWrongFormat(msg.name)
        if not self.is_valid_symbol(msg.symbol):
            raise TickerWrongSymbolFormat(msg.symbol)
        if msg.decimals > MAX_DECIMALS:
            raise DecimalsExceeded(msg.decimals)

        config_store = PrefixedStorage(storage, PREFIX_CONFIG)
        constants = Constants(name=msg.name, symbol=msg.symbol, decimals=msg.decimals)
        config_store.set(KEY_CONSTANTS, constants.to_bytes())
        config_store.set(KEY_TOTAL_SUPPLY, encode_u128(total_supply))

        logger.info(
            f"Initialized {msg.symbol} by {sender}: {len(seeded)} accounts, supply {total_supply}"
        )
        return Response()

    def is_valid_name(self, name: str) -> bool:
        length = len(name.encode("utf-8"))
        return self.config.name_min_length <= length <= self.config.name_max_length

    def is_valid_symbol(self, symbol: str) -> bool:
        if not self.config.symbol_min_length <= len(symbol) <= self.config.symbol_max_length:
            return False
        return all("A" <= ch <= "Z" for ch in symbol)

    # ───────────────────────────────
    # ⚙️  Commands
    # ───────────────────────────────

    def execute(self, storage: Storage, sender: str, msg: ExecuteMsg) -> Response:
        """Dispatch a command to its handler.

        Raises:
            ContractError: If the command is rejected
            InvariantViolation: If persisted state is corrupted
        """
        if isinstance(msg, Transfer):
            return self.try_transfer(storage, sender, msg.recipient, msg.amount)
        if isinstance(msg, Approve):
            return self.try_approve(storage, sender, msg.spender, msg.amount)
        if isinstance(msg, TransferFrom):
            return self.try_transfer_from(storage, sender, msg.owner, msg.recipient, msg.amount)
        if isinstance(msg, Burn):
            return self.try_burn(storage, sender, msg.amount)
        raise TypeError(f"Unsupported command: {type(msg).__name__}")

    def try_transfer(self, storage: Storage, sender: str, recipient: str, amount: int) -> Response:
        recipient_address = self.api.addr_validate(recipient)

        self._perform_transfer(storage, sender, recipient_address, amount)

        return (
            Response()
            .add_attribute("action", "transfer")
            .add_attribute("sender", sender)
            .add_attribute("recipient", recipient_address)
            .add_attribute("amount", amount)
        )

    def try_approve(self, storage: Storage, sender: str, spender: str, amount: int) -> Response:
        spender_address = self.api.addr_validate(spender)

        self._write_allowance(storage, sender, spender_address, amount)

        return (
            Response()
            .add_attribute("action", "approve")
            .add_attribute("owner", sender)
            .add_attribute("spender", spender_address)
            .add_attribute("amount", amount)
        )

    def try_transfer_from(
        self, storage: Storage, sender: str, owner: str, recipient: str, amount: int
    ) -> Response:
        """Move ``amount`` from ``owner`` to ``recipient`` on behalf of ``sender``.

        The allowance is decremented before the balance step runs. If the
        balance step then fails, the decremented allowance is already staged in
        ``storage``; the caller must discard the whole call's writes.
        """
        owner_address = self.api.addr_validate(owner)
        recipient_address = self.api.addr_validate(recipient)

        allowance = self._read_allowance(storage, owner_address, sender)
        if allowance < amount:
            raise InsufficientAllowance(allowance=allowance, required=amount)
        self._write_allowance(storage, owner_address, sender, allowance - amount)

        self._perform_transfer(storage, owner_address, recipient_address, amount)

        return (
            Response()
            .add_attribute("action", "transfer_from")
            .add_attribute("spender", sender)
            .add_attribute("sender", owner_address)
            .add_attribute("recipient", recipient_address)
            .add_attribute("amount", amount)
        )

    def try_burn(self, storage: Storage, sender: str, amount: int) -> Response:
        balances = PrefixedStorage(storage, PREFIX_BALANCES)
        account = sender.encode("utf-8")

        balance = read_u128(balances, account)
        if balance < amount:
            raise InsufficientFunds(balance=balance, required=amount)
        balances.set(account, encode_u128(balance - amount))

        config_store = PrefixedStorage(storage, PREFIX_CONFIG)
        raw_supply = config_store.get(KEY_TOTAL_SUPPLY)
        if raw_supply is None:
            raise InvariantViolation("Total supply record is missing")
        total_supply = checked_sub(decode_u128(raw_supply), amount)
        config_store.set(KEY_TOTAL_SUPPLY, encode_u128(total_supply))

        return (
            Response()
            .add_attribute("action", "burn")
            .add_attribute("account", sender)
            .add_attribute("amount", amount)
        )

    def _perform_transfer(self, storage: Storage, sender: str, recipient: str, amount: int) -> None:
        """Debit ``sender`` then credit ``recipient``.

        The recipient balance is read from ``storage`` after the debit has
        been written, never from a value captured before it. When sender and
        recipient are the same account the credit therefore starts from the
        debited balance and the account ends where it began. The debit is
        checked first, so no intermediate value is ever negative.
        """
        balances = PrefixedStorage(storage, PREFIX_BALANCES)
        sender_key = sender.encode("utf-8")
        recipient_key = recipient.encode("utf-8")

        sender_balance = read_u128(balances, sender_key)
        if sender_balance < amount:
            raise InsufficientFunds(balance=sender_balance, required=amount)
        balances.set(sender_key, encode_u128(sender_balance - amount))

        # Must follow the debit write; a self-transfer credits the debited balance
        recipient_balance = read_u128(balances, recipient_key)
        balances.set(recipient_key, encode_u128(checked_add(recipient_balance, amount)))

    def _read_allowance(self, storage: Storage, owner: str, spender: str) -> int:
        allowances = ReadonlyPrefixedStorage(storage, PREFIX_ALLOWANCES, owner.encode("utf-8"))
        return read_u128(allowances, spender.encode("utf-8"))

    def _write_allowance(self, storage: Storage, owner: str, spender: str, amount: int) -> None:
        allowances = PrefixedStorage(storage, PREFIX_ALLOWANCES, owner.encode("utf-8"))
        if amount == 0:
            allowances.remove(spender.encode("utf-8"))
        else:
            allowances.set(spender.encode("utf-8"), encode_u128(amount))

    # ───────────────────────────────
    # 🔍 Queries
    # ───────────────────────────────

    def query(
        self, storage: Storage, msg: QueryMsg
    ) -> Union[BalanceResponse, AllowanceResponse, TokenInfoResponse]:
        if isinstance(msg, Balance):
            return BalanceResponse(balance=self.query_balance(storage, msg.address))
        if isinstance(msg, Allowance):
            return AllowanceResponse(allowance=self.query_allowance(storage, msg.owner, msg.spender))
        if isinstance(msg, TokenInfo):
            return self.query_token_info(storage)
        raise TypeError(f"Unsupported query: {type(msg).__name__}")

    def query_balance(self, storage: Storage, address: str) -> int:
        address = self.api.addr_validate(address)
        balances = ReadonlyPrefixedStorage(storage, PREFIX_BALANCES)
        return read_u128(balances, address.encode("utf-8"))

    def query_allowance(self, storage: Storage, owner: str, spender: str) -> int:
        owner = self.api.addr_validate(owner)
        spender = self.api.addr_validate(spender)
        return self._read_allowance(storage, owner, spender)

    def query_token_info(self, storage: Storage) -> TokenInfoResponse:
        config_store = ReadonlyPrefixedStorage(storage, PREFIX_CONFIG)
        raw_constants = config_store.get(KEY_CONSTANTS)
        raw_supply = config_store.get(KEY_TOTAL_SUPPLY)
        if raw_constants is None or raw_supply is None:
            raise InvariantViolation("Ledger has not been initialized")

        try:
            constants = Constants.from_bytes(raw_constants)
        except ValidationError as e:
            raise InvariantViolation(f"Corrupted constants record: {e}") from e
        return TokenInfoResponse(
            name=constants.name,
            symbol=constants.symbol,
            decimals=constants.decimals,
            total_supply=decode_u128(raw_supply),
        )

    def iter_balances(self, storage: Storage) -> Iterator[Tuple[str, int]]:
        """Iterate every stored (address, balance) pair in key order."""
        balances = ReadonlyPrefixedStorage(storage, PREFIX_BALANCES)
        for key, raw in balances.range():
            yield key.decode("utf-8"), decode_u128(raw)
