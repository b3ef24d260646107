import os
import json
import base64
from pathlib import Path
from typing import Optional, Union
from nacl.signing import SigningKey
from nacl.encoding import Base64Encoder
from tokenledger.core.config import config


def wallet_path_for(
    name: Optional[str] = None,
    path: Optional[Union[str, Path]] = None,
    default: Optional[Path] = None,
) -> Path:
    """Resolve a wallet file from an explicit path, a wallet name or the default wallet path."""
    default = Path(default or config.wallet_path)
    if path:
        return Path(os.path.expanduser(str(path)))
    if name:
        return default.parent / f"{name}.json"
    return default


class Wallet:
    """An Ed25519 key pair whose verify key is the ledger account identifier."""

    def __init__(self, signing_key: SigningKey):
        self.signing_key = signing_key
        self.verify_key = signing_key.verify_key

    @classmethod
    def generate(cls) -> "Wallet":
        key = SigningKey.generate()
        return cls(key)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "Wallet":
        if path is None:
            path = config.wallet_path
        with open(path, "r") as f:
            data = json.load(f)
        key_bytes = base64.b64decode(data["private_key"])
        return cls(SigningKey(key_bytes))

    def save(self, path: Optional[Union[str, Path]] = None):
        if path is None:
            path = config.wallet_path
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w") as f:
            json.dump({
                "address": self.get_address(),
                "private_key": base64.b64encode(self.signing_key.encode()).decode("utf-8")
            }, f)

    def get_address(self) -> str:
        return self.verify_key.encode(encoder=Base64Encoder).decode("utf-8")
