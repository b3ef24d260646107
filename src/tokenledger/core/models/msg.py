"""
Message and response models for the tokenledger host interface.

Execute and query messages are externally tagged, e.g.
``{"transfer": {"recipient": "...", "amount": "10"}}``. Amounts are unsigned
128-bit integers and accept either JSON integers or decimal strings; they are
always serialized back as decimal strings.
"""
import json
from pathlib import Path
from typing import Annotated, Any, ClassVar, Dict, List, Type, Union

from pydantic import BaseModel, BeforeValidator, Field, PlainSerializer, ValidationError

MAX_UINT128 = 2**128 - 1


class MessageParseError(ValueError):
    """Exception raised when a raw message cannot be decoded into a known variant."""

    pass


def _coerce_uint128(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("Amount must be an integer, not a boolean")
    if isinstance(value, str):
        if not (value.isascii() and value.isdigit()):
            raise ValueError(f"Amount must be a decimal string of digits: {value!r}")
        return int(value)
    return value


Uint128 = Annotated[
    int,
    BeforeValidator(_coerce_uint128),
    Field(ge=0, le=MAX_UINT128),
    PlainSerializer(lambda v: str(v), return_type=str, when_used="json"),
]


# ───────────────────────────────
# 🌱 Initialize
# ───────────────────────────────


class InitialBalance(BaseModel):
    """A seed balance written during initialization."""
    address: str = Field(..., description="Account that receives the seed balance")
    amount: Uint128 = Field(..., description="Initial balance in base units")


class InitializeMsg(BaseModel):
    """Token metadata plus the seed balances that define the initial supply."""
    name: str = Field(..., description="Display name of the token")
    symbol: str = Field(..., description="Ticker symbol")
    decimals: int = Field(..., ge=0, le=255, description="Decimal precision")
    initial_balances: List[InitialBalance] = Field(default_factory=list,
                                                  description="Ordered seed balances")

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "InitializeMsg":
        """Load an initialize message from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MessageParseError(f"Invalid initialize message in {path}: {e}") from e


# ───────────────────────────────
# ⚙️  Execute
# ───────────────────────────────


class ExecuteMsg(BaseModel):
    """Base class for state-changing commands."""
    tag: ClassVar[str] = ""

    def to_dict(self) -> dict:
        return {self.tag: self.model_dump(mode="json")}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecuteMsg":
        return _parse_tagged(data, EXECUTE_VARIANTS, "execute")


class Transfer(ExecuteMsg):
    tag: ClassVar[str] = "transfer"
    recipient: str
    amount: Uint128


class Approve(ExecuteMsg):
    tag: ClassVar[str] = "approve"
    spender: str
    amount: Uint128


class TransferFrom(ExecuteMsg):
    tag: ClassVar[str] = "transfer_from"
    owner: str
    recipient: str
    amount: Uint128


class Burn(ExecuteMsg):
    tag: ClassVar[str] = "burn"
    amount: Uint128


# ───────────────────────────────
# 🔍 Query
# ───────────────────────────────


class QueryMsg(BaseModel):
    """Base class for read-only queries."""
    tag: ClassVar[str] = ""

    def to_dict(self) -> dict:
        return {self.tag: self.model_dump(mode="json")}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryMsg":
        return _parse_tagged(data, QUERY_VARIANTS, "query")


class Balance(QueryMsg):
    tag: ClassVar[str] = "balance"
    address: str


class Allowance(QueryMsg):
    tag: ClassVar[str] = "allowance"
    owner: str
    spender: str


class TokenInfo(QueryMsg):
    tag: ClassVar[str] = "token_info"


class BalanceResponse(BaseModel):
    balance: Uint128


class AllowanceResponse(BaseModel):
    allowance: Uint128


class TokenInfoResponse(BaseModel):
    name: str
    symbol: str
    decimals: int
    total_supply: Uint128


EXECUTE_VARIANTS: Dict[str, Type[ExecuteMsg]] = {
    variant.tag: variant for variant in (Transfer, Approve, TransferFrom, Burn)
}

QUERY_VARIANTS: Dict[str, Type[QueryMsg]] = {
    variant.tag: variant for variant in (Balance, Allowance, TokenInfo)
}


def _parse_tagged(data: Any, variants: Dict[str, Type[BaseModel]], kind: str):
    if not isinstance(data, dict) or len(data) != 1:
        raise MessageParseError(f"A {kind} message must be an object with exactly one variant key")

    tag, body = next(iter(data.items()))
    variant = variants.get(tag)
    if variant is None:
        raise MessageParseError(f"Unknown {kind} variant: {tag}")

    try:
        return variant.model_validate(body if body is not None else {})
    except ValidationError as e:
        raise MessageParseError(f"Invalid {tag} message: {e}") from e
