import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from token_ledger.cli import app

runner = CliRunner()

ALICE = "0x" + "01" * 32
BOB = "0x" + "02" * 32
CHARLIE = "0x" + "03" * 32
FRANK = "0x" + "06" * 32


def run_cli(args: list, state: Path, ok: bool = True):
    result = runner.invoke(app, ["--state", str(state)] + args)
    if ok:
        assert result.exit_code == 0, result.output
        return json.loads(result.stdout)
    assert result.exit_code == 1, result.output
    return result.output


@pytest.fixture
def state(tmp_path: Path) -> Path:
    path = tmp_path / "token.db"
    out = run_cli(["deploy", "100", "--caller", "alice"], path)
    assert out == {"deployer": ALICE, "total_supply": 100}
    return path


def test_deploy_and_reads(state: Path) -> None:
    assert run_cli(["total-supply"], state) == {"total_supply": 100}
    assert run_cli(["balance", "alice"], state)["balance"] == 100
    assert run_cli(["balance", BOB], state)["balance"] == 0


def test_deploy_twice_fails(state: Path) -> None:
    out = run_cli(["deploy", "5", "--caller", "bob"], state, ok=False)
    assert "TOKEN/ALREADY_INIT" in out


def test_reads_without_deployment_fail(tmp_path: Path) -> None:
    out = run_cli(["total-supply"], tmp_path / "empty.db", ok=False)
    assert "TOKEN/NOT_INIT" in out


def test_transfer_flow(state: Path) -> None:
    out = run_cli(["transfer", "bob", "10"], state)
    assert out == {"ok": True, "from": ALICE, "to": BOB, "value": 10}
    assert run_cli(["balance", "alice"], state)["balance"] == 90
    assert run_cli(["balance", "bob"], state)["balance"] == 10


def test_transfer_overdraw(state: Path) -> None:
    out = run_cli(["transfer", "bob", "150"], state, ok=False)
    assert "TOKEN/INSUFFICIENT_BALANCE" in out
    assert run_cli(["balance", "alice"], state)["balance"] == 100


def test_delegated_transfer(state: Path) -> None:
    out = run_cli(["transfer-from", "alice", "frank", "10", "--caller", "bob"], state, ok=False)
    assert "TOKEN/INSUFFICIENT_ALLOWANCE" in out

    run_cli(["approve", "bob", "10"], state)
    assert run_cli(["allowance", "alice", "bob"], state)["allowance"] == 10

    out = run_cli(["transfer-from", "alice", "frank", "20", "-c", "bob"], state, ok=False)
    assert "TOKEN/INSUFFICIENT_ALLOWANCE" in out

    out = run_cli(["transfer-from", "alice", "frank", "10", "-c", "bob"], state)
    assert out == {"ok": True, "from": ALICE, "to": FRANK, "value": 10}
    assert run_cli(["balance", "frank"], state)["balance"] == 10
    assert run_cli(["allowance", "alice", "bob"], state)["allowance"] == 0


def test_events_and_audit(state: Path) -> None:
    run_cli(["transfer", "bob", "1"], state)
    run_cli(["approve", "charlie", "3", "--caller", "bob"], state)
    receipts = run_cli(["events"], state)
    assert [r["name"] for r in receipts] == [
        "0x" + b"Transfer".hex(),
        "0x" + b"Transfer".hex(),
        "0x" + b"Approval".hex(),
    ]
    assert receipts[0]["topics"] == [None, ALICE]
    assert run_cli(["audit"], state) == {
        "ok": True,
        "held": 100,
        "total_supply": 100,
        "grants": [{"owner": BOB, "spender": CHARLIE, "value": 3}],
    }


def test_bad_account_is_reported(state: Path) -> None:
    out = run_cli(["balance", "mallory"], state, ok=False)
    assert "TOKEN/BAD_ACCOUNT" in out


def test_accounts_listing(tmp_path: Path) -> None:
    out = run_cli(["accounts"], tmp_path / "unused.db")
    assert out["alice"] == ALICE
    assert len(out) == 6


def test_state_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "env.db"
    monkeypatch.setenv("TOKEN_LEDGER_STATE", str(path))
    result = runner.invoke(app, ["deploy", "7"])
    assert result.exit_code == 0, result.output
    assert path.exists()


@pytest.mark.parametrize("args", [["total-supply"], ["deploy", "10"]])
def test_unopenable_state_is_reported(tmp_path: Path, args: list) -> None:
    out = run_cli(args, tmp_path / "missing" / "token.db", ok=False)
    assert "TOKEN/STORAGE" in out
