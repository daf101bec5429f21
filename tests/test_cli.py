# tests/test_cli.py
from pathlib import Path

import pytest
from typer.testing import CliRunner

from msigvote.abi import LocalAbiCodec
from msigvote.abi.schemas import WALLET as WALLET_ABI
from msigvote.cli import main as cli_main
from msigvote.cli.main import app
from msigvote.crypto.keys import SignerKeys
from msigvote.transport import SandboxLedger

runner = CliRunner()

WALLET = "0:01"  # sandbox addresses are plain keys, keep it short for table output
DEST = "0:" + "b2" * 32


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setattr(cli_main.console, "width", 240)


@pytest.fixture(autouse=True)
def home(tmp_path: Path, monkeypatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("MSIGVOTE_NETWORK", raising=False)
    return home


@pytest.fixture
def key_files(tmp_path: Path):
    paths = []
    for name in ("alice", "bob"):
        path = tmp_path / f"{name}.json"
        SignerKeys.generate().save(path)
        paths.append(path)
    return paths


@pytest.fixture
def network(tmp_path: Path, key_files) -> str:
    """Sandbox state file with one 2-of-2 wallet deployed."""
    state = tmp_path / "sandbox.json"
    ledger = SandboxLedger(state_path=state)
    ledger.deploy(WALLET, [SignerKeys.load(p).public for p in key_files], required_confirms=2)
    return f"sandbox://{state}"


def invoke(network: str, *args: str):
    return runner.invoke(app, ["--network", network, *args])


def test_propose_and_decode(network, key_files):
    result = invoke(network, "propose", WALLET, DEST, "pay rent", "--keys", str(key_files[0]))
    assert result.exit_code == 0, result.stdout
    assert "Proposal submitted" in result.stdout

    result = invoke(network, "decode", WALLET, "1")
    assert result.exit_code == 0
    assert "Proposal Comment: pay rent" in result.stdout


def test_decode_not_found_exits_zero(network):
    result = invoke(network, "decode", WALLET, "42")
    assert result.exit_code == 0
    assert "Proposal with id 42 not found" in result.stdout


def test_decode_without_comment_exits_one(network, key_files, tmp_path: Path):
    # Put a non-comment payload straight into the sandbox state
    foreign = LocalAbiCodec().encode_body(WALLET_ABI, "confirmTransaction", {"transactionId": "1"}, internal=True)
    ledger = SandboxLedger(state_path=tmp_path / "sandbox.json")
    ledger.call(
        WALLET_ABI, WALLET, "submitTransaction",
        f'{{"dest":"{DEST}","value":1000000,"bounce":true,"allBalance":false,"payload":"{foreign}"}}',
        SignerKeys.load(key_files[0]), False,
    )

    result = invoke(network, "decode", WALLET, "1")
    assert result.exit_code == 1
    assert "doesn't contain comment" in result.stdout


def test_vote_updates_signs(network, key_files):
    invoke(network, "propose", WALLET, DEST, "rent", "--keys", str(key_files[0]))
    result = invoke(network, "vote", WALLET, "1", "--keys", str(key_files[1]))
    assert result.exit_code == 0
    assert "Confirmation for transaction 1 sent" in result.stdout

    result = invoke(network, "proposals", WALLET)
    assert result.exit_code == 0
    assert "2/2" in result.stdout
    assert "rent" in result.stdout


def test_vote_without_keys_fails(network):
    result = invoke(network, "vote", WALLET, "1")
    assert result.exit_code == 1
    assert "Vote failed" in result.stdout


def test_proposals_empty(network):
    result = invoke(network, "proposals", WALLET)
    assert result.exit_code == 0
    assert "No pending transactions" in result.stdout


def test_bad_key_file(network, tmp_path: Path):
    bad = tmp_path / "bad.json"
    bad.write_text('{"public": "nothex"}', encoding="utf-8")
    result = invoke(network, "propose", WALLET, DEST, "rent", "--keys", str(bad))
    assert result.exit_code == 1
    assert "Failed to load keys" in result.stdout


def test_unsupported_network():
    result = runner.invoke(app, ["--network", "https://example.org", "proposals", WALLET])
    assert result.exit_code == 1
    assert "Failed to set up services" in result.stdout


def test_network_from_env(network, key_files):
    result = runner.invoke(
        app,
        ["propose", WALLET, DEST, "from env", "--keys", str(key_files[0])],
        env={"MSIGVOTE_NETWORK": network},
    )
    assert result.exit_code == 0
    result = runner.invoke(app, ["decode", WALLET, "1"], env={"MSIGVOTE_NETWORK": network})
    assert "from env" in result.stdout


def test_schemas_command():
    result = runner.invoke(app, ["schemas"])
    assert result.exit_code == 0
    assert "Wallet" in result.stdout
    assert "CommentTransfer" in result.stdout
    assert "valid" in result.stdout


def test_keygen(tmp_path: Path):
    out = tmp_path / "new.json"
    result = runner.invoke(app, ["keygen", str(out)])
    assert result.exit_code == 0
    assert SignerKeys.load(out).public in result.stdout

    again = runner.invoke(app, ["keygen", str(out)])
    assert again.exit_code == 1
    assert "already exists" in again.stdout


def test_deploy_command(tmp_path: Path, key_files):
    network = f"sandbox://{tmp_path / 'fresh.json'}"
    pub = SignerKeys.load(key_files[0]).public
    result = invoke(network, "deploy", "0:02", "--custodian", pub)
    assert result.exit_code == 0
    assert "deployed" in result.stdout

    again = invoke(network, "deploy", "0:02", "--custodian", pub)
    assert again.exit_code == 1


def test_default_network_is_home_sandbox(home: Path, key_files):
    pub = SignerKeys.load(key_files[0]).public
    result = runner.invoke(app, ["deploy", WALLET, "--custodian", pub])
    assert result.exit_code == 0, result.stdout
    assert (home / ".msigvote" / "sandbox.json").exists()

    result = runner.invoke(app, ["propose", WALLET, DEST, "kept between runs", "--keys", str(key_files[0])])
    assert result.exit_code == 0, result.stdout
    result = runner.invoke(app, ["decode", WALLET, "1"])
    assert "Proposal Comment: kept between runs" in result.stdout


def test_comment_that_is_not_utf8_exits_one(network, key_files):
    result = invoke(network, "propose", WALLET, DEST, "bad \udcff", "--keys", str(key_files[0]))
    assert result.exit_code == 1
    assert "Utf8Encode" in result.stdout
