"""
Ledger core: configuration, storage, models, the ledger engine and its host.
"""
