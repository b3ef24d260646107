"""
Data models for token metadata, host messages and call responses.
"""
from tokenledger.core.models.constants import Constants
from tokenledger.core.models.response import Attribute, Response
from tokenledger.core.models.msg import (
    MAX_UINT128, MessageParseError, InitialBalance, InitializeMsg,
    ExecuteMsg, Transfer, Approve, TransferFrom, Burn,
    QueryMsg, Balance, Allowance, TokenInfo,
    BalanceResponse, AllowanceResponse, TokenInfoResponse,
)

__all__ = [
    "Constants",
    "Attribute",
    "Response",
    "MAX_UINT128",
    "MessageParseError",
    "InitialBalance",
    "InitializeMsg",
    "ExecuteMsg",
    "Transfer",
    "Approve",
    "TransferFrom",
    "Burn",
    "QueryMsg",
    "Balance",
    "Allowance",
    "TokenInfo",
    "BalanceResponse",
    "AllowanceResponse",
    "TokenInfoResponse",
]
