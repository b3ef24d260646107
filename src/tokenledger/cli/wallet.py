"""
Wallet CLI commands for tokenledger.

A wallet file holds the Ed25519 key whose verify key is the caller identity
the CLI hands to the ledger host.
"""

import typer
from typing import Optional

from tokenledger.core.config import load_config_from_env
from tokenledger.wallet.wallet import Wallet, wallet_path_for

wallet_app = typer.Typer()


def get_wallet(name: Optional[str] = None, path: Optional[str] = None) -> Optional[Wallet]:
    """Helper function to load a wallet from name or path.

    Args:
        name: Optional wallet name
        path: Optional path to wallet file

    Returns:
        Loaded wallet or None if not found
    """
    wallet_path = wallet_path_for(name, path, default=load_config_from_env().wallet_path)

    if not wallet_path.exists():
        typer.echo(f"❌ Wallet not found at {wallet_path}", err=True)
        return None

    try:
        return Wallet.load(wallet_path)
    except (OSError, ValueError, KeyError) as e:
        typer.echo(f"❌ Error loading wallet: {str(e)}", err=True)
        return None


@wallet_app.command()
def create(
    name: Optional[str] = typer.Option(None, help="Wallet name (stored next to the default wallet)"),
    path: Optional[str] = typer.Option(None, help="Custom wallet file path"),
):
    """Generate a new wallet and save it locally."""
    wallet_path = wallet_path_for(name, path, default=load_config_from_env().wallet_path)
    if wallet_path.exists():
        typer.echo(f"⚠️  Wallet already exists at {wallet_path}")
        raise typer.Exit(code=1)

    wallet = Wallet.generate()
    wallet.save(wallet_path)
    typer.echo(f"✅ Wallet created and saved to {wallet_path}")
    typer.echo(f"Address: {wallet.get_address()}")


@wallet_app.command()
def address(
    name: Optional[str] = typer.Option(None, help="Wallet name"),
    path: Optional[str] = typer.Option(None, help="Custom wallet file path"),
):
    """Show the ledger address of a wallet."""
    wallet = get_wallet(name, path)
    if wallet is None:
        raise typer.Exit(code=1)
    typer.echo(wallet.get_address())
