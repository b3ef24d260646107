import json
import logging
from pathlib import Path
from typing import Optional

import typer

from tokenledger.cli import wallet as wallet_commands
from tokenledger.core.config import LedgerConfig, load_config_from_env
from tokenledger.core.host import LedgerHost
from tokenledger.core.ledger import ContractError, InvariantViolation, api_for_format
from tokenledger.core.models import InitializeMsg, MessageParseError
from tokenledger.core.notifications import NotificationManager
from tokenledger.core.storage import SqliteStorage

app = typer.Typer()


def build_host(cfg: LedgerConfig) -> LedgerHost:
    """Create a host over the SQLite database named in ``cfg``."""
    storage = SqliteStorage(cfg.db_path)
    return LedgerHost(
        storage,
        api_for_format(cfg.address_format),
        notification_manager=NotificationManager.get_instance(),
        ledger_config=cfg,
    )


def resolve_sender(sender: Optional[str], wallet_name: Optional[str], wallet_path: Optional[str]) -> str:
    """The caller identity: an explicit ``--sender`` or the address of a local wallet."""
    if sender:
        return sender
    wallet = wallet_commands.get_wallet(wallet_name, wallet_path)
    if wallet is None:
        raise typer.Exit(code=1)
    return wallet.get_address()


def _host(ctx: typer.Context) -> LedgerHost:
    return build_host(ctx.obj["config"])


def _run_command(ctx: typer.Context, sender: str, msg: dict) -> None:
    host = _host(ctx)
    try:
        response = host.execute(sender, msg)
    except (ContractError, MessageParseError) as e:
        typer.echo(f"❌ {str(e)}", err=True)
        raise typer.Exit(code=1)
    except InvariantViolation as e:
        typer.echo(f"💥 Ledger state is corrupted: {str(e)}", err=True)
        raise typer.Exit(code=2)

    typer.echo(f"✅ {response.get('action')} applied")
    for attr in response.attributes:
        if attr.key != "action":
            typer.echo(f"   {attr.key}: {attr.value}")


def _run_query(ctx: typer.Context, msg: dict) -> None:
    host = _host(ctx)
    try:
        result = host.query(msg)
    except (ContractError, MessageParseError) as e:
        typer.echo(f"❌ {str(e)}", err=True)
        raise typer.Exit(code=1)
    except InvariantViolation as e:
        typer.echo(f"💥 {str(e)}", err=True)
        raise typer.Exit(code=2)
    typer.echo(result.model_dump_json())


@app.callback()
def main(
    ctx: typer.Context,
    db_path: Optional[Path] = typer.Option(None, help="SQLite database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """tokenledger: fungible-token ledger with balances, allowances and burn."""
    cfg = load_config_from_env()
    if db_path is not None:
        cfg.db_path = db_path
    if verbose:
        cfg.log_level = "DEBUG"

    logging.basicConfig(
        level=getattr(logging, cfg.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = {"config": cfg}


@app.command()
def init(
    ctx: typer.Context,
    genesis: Optional[Path] = typer.Option(None, help="Initialize message JSON file"),
    sender: Optional[str] = typer.Option(None, help="Caller identity (default: wallet address)"),
    wallet: Optional[str] = typer.Option(None, "--wallet", help="Wallet name"),
    wallet_path: Optional[str] = typer.Option(None, help="Custom wallet file path"),
):
    """Seed balances and token metadata from an initialize message."""
    cfg: LedgerConfig = ctx.obj["config"]
    genesis = genesis or cfg.genesis_file
    if genesis is None:
        typer.echo("❌ No genesis file given (use --genesis or TOKENLEDGER_GENESIS_FILE)", err=True)
        raise typer.Exit(code=1)

    try:
        msg = InitializeMsg.from_file(genesis)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, MessageParseError) as e:
        typer.echo(f"❌ Cannot read {genesis}: {str(e)}", err=True)
        raise typer.Exit(code=1)

    caller = resolve_sender(sender, wallet, wallet_path)
    host = _host(ctx)
    try:
        host.instantiate(caller, msg)
    except ContractError as e:
        typer.echo(f"❌ {str(e)}", err=True)
        raise typer.Exit(code=1)

    info = host.query({"token_info": {}})
    typer.echo(f"✅ Initialized {info.name} ({info.symbol}) with total supply {info.total_supply}")


@app.command()
def transfer(
    ctx: typer.Context,
    to: str = typer.Option(..., help="Recipient address"),
    amount: str = typer.Option(..., help="Amount in base units"),
    sender: Optional[str] = typer.Option(None, help="Caller identity (default: wallet address)"),
    wallet: Optional[str] = typer.Option(None, "--wallet", help="Wallet name"),
    wallet_path: Optional[str] = typer.Option(None, help="Custom wallet file path"),
):
    """Send tokens from your balance to another address."""
    caller = resolve_sender(sender, wallet, wallet_path)
    _run_command(ctx, caller, {"transfer": {"recipient": to, "amount": amount}})


@app.command()
def approve(
    ctx: typer.Context,
    spender: str = typer.Option(..., help="Address allowed to spend"),
    amount: str = typer.Option(..., help="Allowance ceiling (replaces any previous value)"),
    sender: Optional[str] = typer.Option(None, help="Caller identity (default: wallet address)"),
    wallet: Optional[str] = typer.Option(None, "--wallet", help="Wallet name"),
    wallet_path: Optional[str] = typer.Option(None, help="Custom wallet file path"),
):
    """Set the allowance a spender may draw from your balance."""
    caller = resolve_sender(sender, wallet, wallet_path)
    _run_command(ctx, caller, {"approve": {"spender": spender, "amount": amount}})


@app.command("transfer-from")
def transfer_from(
    ctx: typer.Context,
    owner: str = typer.Option(..., help="Address whose balance is debited"),
    to: str = typer.Option(..., help="Recipient address"),
    amount: str = typer.Option(..., help="Amount in base units"),
    sender: Optional[str] = typer.Option(None, help="Caller identity (default: wallet address)"),
    wallet: Optional[str] = typer.Option(None, "--wallet", help="Wallet name"),
    wallet_path: Optional[str] = typer.Option(None, help="Custom wallet file path"),
):
    """Spend from another account's balance using its allowance to you."""
    caller = resolve_sender(sender, wallet, wallet_path)
    _run_command(ctx, caller, {"transfer_from": {"owner": owner, "recipient": to, "amount": amount}})


@app.command()
def burn(
    ctx: typer.Context,
    amount: str = typer.Option(..., help="Amount in base units"),
    sender: Optional[str] = typer.Option(None, help="Caller identity (default: wallet address)"),
    wallet: Optional[str] = typer.Option(None, "--wallet", help="Wallet name"),
    wallet_path: Optional[str] = typer.Option(None, help="Custom wallet file path"),
):
    """Destroy tokens from your balance, reducing total supply."""
    caller = resolve_sender(sender, wallet, wallet_path)
    _run_command(ctx, caller, {"burn": {"amount": amount}})


@app.command()
def balance(
    ctx: typer.Context,
    address: Optional[str] = typer.Argument(None, help="Address to look up (default: wallet address)"),
    wallet: Optional[str] = typer.Option(None, "--wallet", help="Wallet name"),
    wallet_path: Optional[str] = typer.Option(None, help="Custom wallet file path"),
):
    """Show the balance of an address."""
    address = resolve_sender(address, wallet, wallet_path)
    _run_query(ctx, {"balance": {"address": address}})


@app.command()
def allowance(
    ctx: typer.Context,
    owner: str = typer.Option(..., help="Address that granted the allowance"),
    spender: str = typer.Option(..., help="Address allowed to spend"),
):
    """Show the remaining allowance of a spender over an owner's balance."""
    _run_query(ctx, {"allowance": {"owner": owner, "spender": spender}})


@app.command()
def info(ctx: typer.Context):
    """Show token metadata and total supply."""
    _run_query(ctx, {"token_info": {}})


@app.command()
def holders(ctx: typer.Context):
    """List every account with a balance record."""
    host = _host(ctx)
    for holder, amount in host.holders().items():
        typer.echo(f"{holder}\t{amount}")


# Add wallet commands to main CLI
app.add_typer(
    wallet_commands.wallet_app,
    name="wallet",
    help="Create and inspect local wallets",
)

if __name__ == "__main__":
    app()
