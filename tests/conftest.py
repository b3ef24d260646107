"""
Pytest configuration for tokenledger tests.

This file helps pytest find the package from a source checkout and provides
shared ledger fixtures.
"""

import os
import sys

import pytest

# Add the src directory to the Python path to help with imports
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from tokenledger.core.host import LedgerHost  # noqa: E402
from tokenledger.core.ledger import Ledger, SimpleAddressApi  # noqa: E402
from tokenledger.core.models import InitializeMsg, InitialBalance  # noqa: E402
from tokenledger.core.notifications import NotificationManager  # noqa: E402
from tokenledger.core.storage import MemoryStorage  # noqa: E402


def make_init_msg(balances=(("alice", 100), ("bob", 50)), name="Test Token", symbol="TST", decimals=6):
    """Build an initialize message from (address, amount) pairs."""
    return InitializeMsg(
        name=name,
        symbol=symbol,
        decimals=decimals,
        initial_balances=[InitialBalance(address=a, amount=n) for a, n in balances],
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def ledger():
    return Ledger(SimpleAddressApi())


@pytest.fixture
def host(storage):
    return LedgerHost(storage, SimpleAddressApi())


@pytest.fixture
def initialized_host(host):
    """Host seeded with alice=100 and bob=50."""
    host.instantiate("creator", make_init_msg())
    return host


@pytest.fixture
def notification_manager():
    NotificationManager.reset_instance()
    manager = NotificationManager.get_instance()
    yield manager
    NotificationManager.reset_instance()
