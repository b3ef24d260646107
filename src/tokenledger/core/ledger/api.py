"""
Address validation collaborators for the ledger.

The ledger never decides on its own what a well-formed account identifier
looks like. It calls ``addr_validate`` on the api it was built with and
passes any ``InvalidIdentifier`` through unchanged.
"""
import base64
import binascii
import re

from nacl.exceptions import ValueError as NaclValueError
from nacl.signing import VerifyKey

from tokenledger.core.ledger.ledger import InvalidIdentifier

ED25519_KEY_SIZE = 32


class KeyAddressApi:
    """Addresses are base64-encoded Ed25519 verify keys, as produced by ``Wallet``."""

    def addr_validate(self, address: str) -> str:
        if not isinstance(address, str) or not address:
            raise InvalidIdentifier(str(address), "address is empty")
        try:
            raw = base64.b64decode(address, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidIdentifier(address, "not valid base64")
        if len(raw) != ED25519_KEY_SIZE:
            raise InvalidIdentifier(address, f"expected {ED25519_KEY_SIZE} key bytes, got {len(raw)}")
        try:
            VerifyKey(raw)
        except NaclValueError as e:
            raise InvalidIdentifier(address, str(e))
        # Canonical encoding only
        if base64.b64encode(raw).decode("ascii") != address:
            raise InvalidIdentifier(address, "non-canonical base64 encoding")
        return address


class SimpleAddressApi:
    """Human-readable lower-case identifiers for local ledgers and tests."""

    PATTERN = re.compile(r"[a-z0-9_-]{3,90}")

    def addr_validate(self, address: str) -> str:
        if not isinstance(address, str) or not self.PATTERN.fullmatch(address):
            raise InvalidIdentifier(str(address), "expected 3-90 characters of [a-z0-9_-]")
        return address


def api_for_format(address_format: str):
    """Build the address api named by ``LedgerConfig.address_format``."""
    if address_format == "key":
        return KeyAddressApi()
    if address_format == "simple":
        return SimpleAddressApi()
    raise ValueError(f"Unknown address format: {address_format}")
