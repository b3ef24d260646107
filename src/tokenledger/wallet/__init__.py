from tokenledger.wallet.wallet import Wallet, wallet_path_for

__all__ = ["Wallet", "wallet_path_for"]
