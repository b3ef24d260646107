"""
SQLite persistence for the tokenledger key-value state.
"""
