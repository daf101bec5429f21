# msigvote/cli/main.py
"""
CLI for proposing, confirming and explaining multisig wallet transactions.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from msigvote.abi import AbiService, create_abi_service
from msigvote.abi.schemas import REGISTRY, verify_registry
from msigvote.core.errors import MsigVoteError, NotACommentTransfer
from msigvote.crypto.keys import SignerKeys
from msigvote.transport import Dispatcher, SandboxLedger, create_dispatcher
from msigvote.wallet.proposals import MultisigWallet

app = typer.Typer(
    name="msigvote",
    help="Propose, vote on and decode commented multisig wallet transactions",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

DEFAULT_ABI = "local://"


def default_network() -> str:
    """Sandbox state shared by every CLI run: ~/.msigvote/sandbox.json"""
    path = Path.home() / ".msigvote" / "sandbox.json"
    return f"sandbox://{path}"


def resolve_uri(flag: Optional[str], env_var: str, default: str) -> str:
    """Resolve a service URI in this order:
    1. command-line flag
    2. environment variable
    3. built-in default
    """
    if flag:
        return flag
    return os.environ.get(env_var) or default


def _services(ctx: typer.Context) -> Tuple[AbiService, Dispatcher]:
    obj = ctx.obj or {}
    abi_uri = resolve_uri(obj.get("abi"), "MSIGVOTE_ABI", DEFAULT_ABI)
    network_uri = resolve_uri(obj.get("network"), "MSIGVOTE_NETWORK", default_network())
    try:
        abi = create_abi_service(abi_uri)
        dispatcher = create_dispatcher(network_uri, abi=abi)
    except (ValueError, OSError) as e:
        console.print(f"[red]Failed to set up services: {str(e)}[/]")
        raise typer.Exit(1)
    return abi, dispatcher


def _wallet(ctx: typer.Context, address: str) -> MultisigWallet:
    abi, dispatcher = _services(ctx)
    return MultisigWallet(address, dispatcher, abi=abi)


def _load_keys(path: Optional[Path]) -> Optional[SignerKeys]:
    if path is None:
        return None
    try:
        return SignerKeys.load(path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Failed to load keys from {path}: {str(e)}[/]")
        raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    network: Optional[str] = typer.Option(
        None,
        "--network",
        help="Ledger URI: memory:// or sandbox://<state.json> (overrides MSIGVOTE_NETWORK; default ~/.msigvote/sandbox.json)",
    ),
    abi: Optional[str] = typer.Option(
        None,
        "--abi",
        help="ABI service URI (overrides MSIGVOTE_ABI)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
):
    """Manage commented proposals on multisig wallets."""
    ctx.obj = {"network": network, "abi": abi}
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@app.command()
def propose(
    ctx: typer.Context,
    wallet: str = typer.Argument(..., help="Multisig wallet address"),
    dest: str = typer.Argument(..., help="Destination address"),
    comment: str = typer.Argument(..., help="Comment to embed in the payload"),
    keys: Optional[Path] = typer.Option(None, "--keys", "-k", help="Signer key file"),
):
    """Submit a new transaction carrying a comment."""
    signer = _load_keys(keys)
    msig = _wallet(ctx, wallet)
    try:
        msig.create_proposal(dest, comment, keys=signer)
    except MsigVoteError as e:
        console.print(f"[red]Proposal failed ({e.code}): {str(e)}[/]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Proposal submitted to {wallet}[/]")
    console.print("  Use `msigvote proposals` to find its transaction id.")


@app.command()
def vote(
    ctx: typer.Context,
    wallet: str = typer.Argument(..., help="Multisig wallet address"),
    trid: str = typer.Argument(..., help="Transaction id (decimal)"),
    keys: Optional[Path] = typer.Option(None, "--keys", "-k", help="Signer key file"),
):
    """Confirm a pending transaction."""
    signer = _load_keys(keys)
    msig = _wallet(ctx, wallet)
    try:
        msig.vote(trid, keys=signer)
    except MsigVoteError as e:
        console.print(f"[red]Vote failed ({e.code}): {str(e)}[/]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Confirmation for transaction {trid} sent[/]")


@app.command()
def decode(
    ctx: typer.Context,
    wallet: str = typer.Argument(..., help="Multisig wallet address"),
    trid: str = typer.Argument(..., help="Transaction id (decimal)"),
):
    """Show the comment attached to a transaction."""
    msig = _wallet(ctx, wallet)
    try:
        lookup = msig.decode_proposal(trid)
    except NotACommentTransfer as e:
        console.print(f"[red]{str(e)}[/]")
        raise typer.Exit(1)
    except MsigVoteError as e:
        console.print(f"[red]Lookup failed ({e.code}): {str(e)}[/]")
        raise typer.Exit(1)

    if not lookup:
        console.print(f"[yellow]{lookup}[/]")
        return
    console.print(str(lookup))


@app.command()
def proposals(
    ctx: typer.Context,
    wallet: str = typer.Argument(..., help="Multisig wallet address"),
):
    """List pending transactions with their comments."""
    msig = _wallet(ctx, wallet)
    try:
        items = msig.list_proposals()
    except MsigVoteError as e:
        console.print(f"[red]Listing failed ({e.code}): {str(e)}[/]")
        raise typer.Exit(1)

    if not items:
        console.print(f"[yellow]No pending transactions on {wallet}[/]")
        return

    table = Table(title=f"Transactions on {wallet}")
    table.add_column("ID")
    table.add_column("Signs")
    table.add_column("Destination")
    table.add_column("Value")
    table.add_column("Comment")

    for p in items:
        r = p.record
        table.add_row(
            r.id,
            f"{r.signs_received}/{r.signs_required}",
            r.dest,
            str(r.value),
            p.comment if p.comment is not None else "—",
        )

    console.print(table)


@app.command()
def schemas():
    """Show the bundled contract interfaces and re-run their validation."""
    table = Table(title="Contract Interfaces")
    table.add_column("Interface")
    table.add_column("ABI")
    table.add_column("Functions")
    table.add_column("Fingerprint")
    table.add_column("Status")

    results = {r.interface: r for r in verify_registry()}
    for name, interface in REGISTRY.items():
        result = results[name]
        table.add_row(
            name,
            f"v{interface.abi_version}",
            str(len(interface.functions)),
            interface.fingerprint[:16],
            "[green]valid[/]" if result else "[red]invalid[/]",
        )
    console.print(table)

    failed = [r for r in results.values() if not r]
    for r in failed:
        console.print(f"[red]{r}[/]")
    if failed:
        raise typer.Exit(1)


@app.command()
def keygen(
    output: Path = typer.Argument(..., help="Where to write the new key file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Generate an Ed25519 signer key file."""
    if output.exists() and not force:
        console.print(f"[red]{output} already exists (use --force to overwrite)[/]")
        raise typer.Exit(1)
    keys = SignerKeys.generate()
    keys.save(output)
    console.print(f"[green]Key pair written to {output}[/]")
    console.print(f"  public: {keys.public}")


@app.command()
def deploy(
    ctx: typer.Context,
    wallet: str = typer.Argument(..., help="Address to deploy the wallet at"),
    custodian: List[str] = typer.Option(..., "--custodian", "-c", help="Custodian public key (hex); repeatable"),
    required: int = typer.Option(1, "--required", "-r", help="Confirmations required"),
):
    """Deploy a wallet into the sandbox ledger."""
    _, dispatcher = _services(ctx)
    if not isinstance(dispatcher, SandboxLedger):
        console.print("[red]deploy only works against a sandbox ledger[/]")
        raise typer.Exit(1)
    try:
        dispatcher.deploy(wallet, custodian, required)
    except ValueError as e:
        console.print(f"[red]Deploy failed: {str(e)}[/]")
        raise typer.Exit(1)
    console.print(f"[green]Wallet {wallet} deployed ({required}/{len(custodian)} confirmations)[/]")


if __name__ == "__main__":
    app()
