"""
tokenledger: a fungible-token ledger with balances, allowances and burnable supply.
"""

__version__ = "0.1.0"
