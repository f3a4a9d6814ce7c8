import pytest

from conftest import SENDER, VAULT
from mangrove_vaults import cli
from mangrove_vaults.config import get_settings
from mangrove_vaults.errors import ValidationError
from mangrove_vaults.erc4626 import VAULT_TYPE as ERC4626
from mangrove_vaults.models import SavedVault
from mangrove_vaults.registry import BASE as BASE_CHAIN
from mangrove_vaults.saved import SavedVaultStore


def _answers(monkeypatch, *answers):
    queue = list(answers)
    monkeypatch.setattr("builtins.input", lambda _prompt="": queue.pop(0))
    return queue


@pytest.fixture
def ctx(fake_chain, tmp_path):
    return cli.Context(
        chain=BASE_CHAIN,
        client=fake_chain,
        settings=get_settings(dotenv=False),
        store=SavedVaultStore(tmp_path / "vaults.json"),
        read_only=False,
    )


def test_parse_args_defaults():
    args = cli.parse_args([])
    assert args.chain is None
    assert args.rpc_url is None
    assert args.save_file is None
    assert args.read_only is False


def test_parse_args_options():
    args = cli.parse_args(["--chain", "base", "--rpc-url", "http://localhost:8545", "--read-only"])
    assert (args.chain, args.rpc_url, args.read_only) == ("base", "http://localhost:8545", True)


def test_main_rejects_unknown_chain(monkeypatch, capsys):
    monkeypatch.setattr(cli, "get_settings", lambda: get_settings(dotenv=False))
    assert cli.main(["--chain", "1"]) == 2
    assert "Unsupported chain id: 1" in capsys.readouterr().err


def test_run_exits_from_top_menu(ctx, monkeypatch):
    queue = _answers(monkeypatch, "5")
    assert cli.run(ctx) == 0
    assert queue == []


def test_read_only_blocks_write_actions(ctx, monkeypatch, capsys):
    ctx.read_only = True
    _answers(monkeypatch, "1", "5")
    assert cli.run(ctx) == 0
    assert "This action sends a transaction" in capsys.readouterr().err
    assert ctx.client.log == []


def test_run_action_reports_errors(capsys):
    def boom():
        raise ValidationError("bad input")

    def crash():
        raise RuntimeError("unexpected")

    cli._run_action("Deploy vault", boom)
    cli._run_action("Rebalance", crash)
    err = capsys.readouterr().err
    assert "❌ Deploy vault: bad input" in err
    assert "❌ Rebalance failed: RuntimeError: unexpected" in err


def test_vault_actions_depend_on_vault_type():
    plain = [label for label, _, _ in cli._vault_actions(SavedVault(VAULT, "v", 8453))]
    wrapped = [label for label, _, _ in cli._vault_actions(SavedVault(VAULT, "v", 8453, vault_type=ERC4626))]
    assert "Change ERC4626 vaults" not in plain
    assert "Change ERC4626 vaults" in wrapped
    assert len(wrapped) == len(plain) + 1


def test_select_vault_lists_saved_vaults(ctx, monkeypatch):
    saved = SavedVault(VAULT, "WETH/USDC", 8453, label="main")
    ctx.store.save(saved)
    ctx.store.save(SavedVault(SENDER, "elsewhere", 42161))

    _answers(monkeypatch, "1")
    assert cli._select_vault(ctx) == saved

    _answers(monkeypatch, "3")
    assert cli._select_vault(ctx) is None


def test_add_provision_reprompts_above_balance(ctx, monkeypatch, capsys):
    ctx.client.balances[SENDER.lower()] = 10**18
    _answers(monkeypatch, "2", "0.25")

    assert cli.add_provision(ctx, SavedVault(VAULT, "v", 8453))
    assert ctx.client.sent[0].value == 25 * 10**16
    assert "Amount must be > 0 and at most 1 ETH" in capsys.readouterr().err
