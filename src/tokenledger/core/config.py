from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class LedgerConfig(BaseModel):
    """Base configuration for tokenledger components.

    This model loads configuration from environment variables and defaults.
    """
    # Database Configuration
    db_path: Path = Field(
        default=Path.home() / ".tokenledger" / "ledger.db",
        description="Path to the SQLite database file"
    )

    # Genesis Configuration
    genesis_file: Optional[Path] = Field(
        default=None,
        description="Path to the initialize message used to seed the ledger"
    )

    # Wallet Configuration
    wallet_path: Path = Field(
        default=Path.home() / ".tokenledger" / "wallet.json",
        description="Path to the wallet file"
    )

    # Address Configuration
    address_format: Literal["key", "simple"] = Field(
        default="key",
        description="Accepted account identifier format"
    )

    # Metadata Validation
    name_min_length: int = Field(default=3, description="Minimum token name length in bytes")
    name_max_length: int = Field(default=30, description="Maximum token name length in bytes")
    symbol_min_length: int = Field(default=3, description="Minimum ticker length")
    symbol_max_length: int = Field(default=6, description="Maximum ticker length")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level for the CLI")

    @field_validator('name_min_length', 'symbol_min_length')
    def validate_min_length(cls, value):
        """Validate lower bounds are at least one character."""
        if value < 1:
            raise ValueError("Minimum length must be at least 1")
        return value

    @field_validator('log_level')
    def validate_log_level(cls, value):
        """Normalize the log level name."""
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value

    @model_validator(mode="after")
    def validate_bounds(self):
        """Validate that every lower bound sits below its upper bound."""
        if self.name_min_length > self.name_max_length:
            raise ValueError("name_min_length cannot exceed name_max_length")
        if self.symbol_min_length > self.symbol_max_length:
            raise ValueError("symbol_min_length cannot exceed symbol_max_length")
        return self

    model_config = {
        "env_prefix": "TOKENLEDGER_",
        "arbitrary_types_allowed": True,
        "validate_assignment": True,
    }


# Global config instance with default values
config = LedgerConfig()

def load_config_from_env() -> LedgerConfig:
    """Load configuration from environment variables.

    Returns:
        LedgerConfig: Configuration instance with values from environment
    """
    import os

    env_settings = {}

    env_mappings = {
        "TOKENLEDGER_DB_PATH": "db_path",
        "TOKENLEDGER_WALLET_PATH": "wallet_path",
        "TOKENLEDGER_GENESIS_FILE": "genesis_file",
        "TOKENLEDGER_ADDRESS_FORMAT": "address_format",
        "TOKENLEDGER_NAME_MIN_LENGTH": "name_min_length",
        "TOKENLEDGER_NAME_MAX_LENGTH": "name_max_length",
        "TOKENLEDGER_SYMBOL_MIN_LENGTH": "symbol_min_length",
        "TOKENLEDGER_SYMBOL_MAX_LENGTH": "symbol_max_length",
        "TOKENLEDGER_LOG_LEVEL": "log_level",
    }

    for env_var, field_name in env_mappings.items():
        if env_var in os.environ:
            value = os.environ[env_var]

            # Handle type conversions
            if field_name in ["db_path", "wallet_path", "genesis_file"]:
                value = Path(value)
            elif field_name.endswith("_length"):
                value = int(value)

            env_settings[field_name] = value

    return LedgerConfig(**env_settings)
