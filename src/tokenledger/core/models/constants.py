from pydantic import BaseModel, Field


class Constants(BaseModel):
    """Immutable token metadata written once at initialization."""
    name: str = Field(..., description="Display name of the token")
    symbol: str = Field(..., description="Ticker symbol")
    decimals: int = Field(..., ge=0, le=255, description="Decimal precision")

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Constants":
        return cls.model_validate_json(raw)
