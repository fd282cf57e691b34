"""
token-ledger: command-line front end over a SQLite state file.

Implements:
  - token-ledger deploy SUPPLY            Deploy a token, crediting --caller
  - token-ledger total-supply             Fixed total supply
  - token-ledger balance ACCOUNT          Balance of an account
  - token-ledger allowance OWNER SPENDER  Remaining delegated amount
  - token-ledger transfer TO VALUE        Move caller's tokens
  - token-ledger approve SPENDER VALUE    Overwrite caller's grant to SPENDER
  - token-ledger transfer-from FROM TO VALUE
  - token-ledger events                   Persisted events in receipt form
  - token-ledger audit                    Check balances sum to total supply
  - token-ledger accounts                 Development accounts

Accounts are dev names (alice, bob, charlie, django, eve, frank) or hex ids.
Every command prints JSON. Token errors print their JSON form to stderr and
exit with status 1.

Global options:
  --state PATH        State database (env TOKEN_LEDGER_STATE)
  --log-level TEXT    DEBUG/INFO/WARNING/ERROR
  --log-format TEXT   console or json
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Tuple

import typer

from .config import load_config
from .engine import TransferEngine
from .errors import TokenError
from .harness import default_accounts, resolve_account
from .logging import bind_context, clear_context, get_logger, setup_logging
from .sqlite_store import SQLiteBackend, SQLiteEventLog
from .types import AccountId, to_hex

log = get_logger(__name__)

app = typer.Typer(
    name="token-ledger",
    help="Fixed-supply fungible token ledger",
    no_args_is_help=True,
    add_completion=False,
)


class GlobalContext:
    def __init__(self) -> None:
        self.state_path: Path = Path("token-ledger.db")


_ctx = GlobalContext()


def _caller_option() -> Any:
    return typer.Option(
        "alice",
        "--caller",
        "-c",
        help="Invoking account (dev name or hex)",
        envvar="TOKEN_LEDGER_CALLER",
    )


@app.callback()
def main_callback(
    state: Optional[Path] = typer.Option(
        None,
        "--state",
        help="Path to the SQLite state database",
        envvar="TOKEN_LEDGER_STATE",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="console or json"),
) -> None:
    """
    Token ledger CLI. State lives in one SQLite file per deployment.
    """
    cfg = load_config()
    _ctx.state_path = state or cfg.state_path
    clear_context()
    setup_logging(level=log_level.upper() if log_level else None, log_format=log_format)


# ------------------------------------------------------------------ helpers


def _echo(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


def _account(value: str) -> AccountId:
    return resolve_account(value, width=load_config().account_id_bytes)


@contextmanager
def _backend() -> Iterator[Tuple[SQLiteBackend, SQLiteEventLog]]:
    backend = SQLiteBackend(_ctx.state_path)
    try:
        yield backend, SQLiteEventLog(backend.connection)
    finally:
        backend.close()


@contextmanager
def _engine() -> Iterator[TransferEngine]:
    """Attach to the deployment in the state file; token errors exit 1."""
    try:
        with _backend() as (backend, sink):
            yield TransferEngine.attach(backend, sink=sink)
    except TokenError as exc:
        _fail(exc)


def _fail(exc: TokenError) -> None:
    log.warning("command_failed", code=exc.code, message=exc.message)
    typer.echo(json.dumps({"error": exc.to_dict()}, sort_keys=True), err=True)
    raise typer.Exit(1)


# ----------------------------------------------------------------- commands


@app.command()
def deploy(
    supply: int = typer.Argument(..., help="Initial (and total) supply"),
    caller: str = _caller_option(),
) -> None:
    """Deploy a token and credit the whole supply to the caller."""
    try:
        deployer = _account(caller)
        bind_context(caller=to_hex(deployer), command="deploy")
        with _backend() as (backend, sink):
            engine = TransferEngine.new(deployer, supply, storage=backend, sink=sink)
            _echo({"deployer": to_hex(deployer), "total_supply": engine.total_supply()})
    except TokenError as exc:
        _fail(exc)


@app.command("total-supply")
def total_supply() -> None:
    """Print the fixed total supply."""
    with _engine() as engine:
        _echo({"total_supply": engine.total_supply()})


@app.command()
def balance(account: str = typer.Argument(..., help="Account (dev name or hex)")) -> None:
    """Print an account's balance (0 if it never held tokens)."""
    with _engine() as engine:
        acct = _account(account)
        _echo({"account": to_hex(acct), "balance": engine.balance_of(acct)})


@app.command()
def allowance(
    owner: str = typer.Argument(..., help="Owner account"),
    spender: str = typer.Argument(..., help="Spender account"),
) -> None:
    """Print how much SPENDER may still move out of OWNER's balance."""
    with _engine() as engine:
        o, s = _account(owner), _account(spender)
        _echo({"owner": to_hex(o), "spender": to_hex(s), "allowance": engine.allowance(o, s)})


@app.command()
def transfer(
    to: str = typer.Argument(..., help="Recipient"),
    value: int = typer.Argument(..., help="Amount"),
    caller: str = _caller_option(),
) -> None:
    """Move VALUE of the caller's tokens to TO."""
    with _engine() as engine:
        sender, recipient = _account(caller), _account(to)
        bind_context(caller=to_hex(sender), command="transfer")
        engine.transfer(sender, recipient, value)
        _echo({"ok": True, "from": to_hex(sender), "to": to_hex(recipient), "value": value})


@app.command()
def approve(
    spender: str = typer.Argument(..., help="Spender to authorize"),
    value: int = typer.Argument(..., help="New allowance (replaces the old one)"),
    caller: str = _caller_option(),
) -> None:
    """Set (overwrite) the caller's allowance for SPENDER."""
    with _engine() as engine:
        owner, sp = _account(caller), _account(spender)
        bind_context(caller=to_hex(owner), command="approve")
        engine.approve(owner, sp, value)
        _echo({"ok": True, "owner": to_hex(owner), "spender": to_hex(sp), "value": value})


@app.command("transfer-from")
def transfer_from(
    from_: str = typer.Argument(..., metavar="FROM", help="Owner whose tokens move"),
    to: str = typer.Argument(..., help="Recipient"),
    value: int = typer.Argument(..., help="Amount"),
    caller: str = _caller_option(),
) -> None:
    """Move VALUE from FROM to TO against the caller's allowance."""
    with _engine() as engine:
        spender, owner, recipient = _account(caller), _account(from_), _account(to)
        bind_context(caller=to_hex(spender), command="transfer-from")
        engine.transfer_from(spender, owner, recipient, value)
        _echo({"ok": True, "from": to_hex(owner), "to": to_hex(recipient), "value": value})


@app.command()
def events() -> None:
    """Dump every persisted event in receipt form."""
    with _engine() as engine:
        _echo(engine.sink.receipts())


@app.command()
def audit() -> None:
    """Verify that balances sum to the total supply and list standing grants."""
    with _engine() as engine:
        held = engine.check_conservation()
        grants = [
            {"owner": to_hex(owner), "spender": to_hex(spender), "value": value}
            for owner, spender, value in engine.allowances.grants(engine.account_width)
        ]
        _echo({"ok": True, "held": held, "total_supply": engine.total_supply(), "grants": grants})


@app.command()
def accounts() -> None:
    """List the development accounts."""
    _echo(default_accounts(load_config().account_id_bytes).to_dict())


def main() -> None:  # pragma: no cover - console entry point
    app()


__all__ = ["app", "main"]
