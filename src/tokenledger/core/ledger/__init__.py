"""
Core ledger engine for the tokenledger system.
"""
from tokenledger.core.ledger.ledger import Ledger, ContractError, NameWrongFormat, \
    TickerWrongSymbolFormat, DecimalsExceeded, InsufficientFunds, InsufficientAllowance, \
    InvalidIdentifier, ArithmeticOverflow, InvariantViolation
from tokenledger.core.ledger.api import KeyAddressApi, SimpleAddressApi, api_for_format

__all__ = [
    "Ledger",
    "ContractError",
    "NameWrongFormat",
    "TickerWrongSymbolFormat",
    "DecimalsExceeded",
    "InsufficientFunds",
    "InsufficientAllowance",
    "InvalidIdentifier",
    "ArithmeticOverflow",
    "InvariantViolation",
    "KeyAddressApi",
    "SimpleAddressApi",
    "api_for_format",
]
