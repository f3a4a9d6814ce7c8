import pytest

from conftest import SENDER, VAULT
from mangrove_vaults.chain import Call, TxRequest
from mangrove_vaults.constants import MANGROVE_VAULT_ABI
from mangrove_vaults.errors import TransactionRevertedError
from mangrove_vaults.models import TransactionMessages
from mangrove_vaults.transactions import execute, require_success, submit, succeeded


@pytest.mark.parametrize(("status", "expected"), [(1, True), (0, False), (None, False), ("0x1", True)])
def test_succeeded(status, expected):
    assert succeeded({"status": status}) is expected


def test_execute_sends_once_and_reports_success(fake_chain, capsys):
    request = TxRequest(call=Call(VAULT, MANGROVE_VAULT_ABI, "updatePosition"))
    receipt = execute(fake_chain, request, TransactionMessages(header="refreshing", label="Position refreshing"))

    assert succeeded(receipt)
    assert fake_chain.calls("send") == ["updatePosition"]
    err = capsys.readouterr().err
    assert "refreshing" in err
    assert "✅ [Position refreshing] Transaction" in err
    assert f"confirmed in block {receipt['blockNumber']}" in err


def test_execute_reports_revert_with_custom_message(fake_chain, capsys):
    fake_chain.receipt_status = 0
    request = TxRequest(call=Call(VAULT, MANGROVE_VAULT_ABI, "updatePosition"))
    receipt = execute(fake_chain, request, TransactionMessages(failure=lambda tx_hash: f"nope: {tx_hash}"))

    assert not succeeded(receipt)
    assert f"❌ nope: {receipt['transactionHash']}" in capsys.readouterr().err


def test_submit_does_not_send_when_simulation_reverts(fake_chain, capsys):
    fake_chain.reverting.add("transferOwnership")
    ok = submit(
        fake_chain,
        Call(VAULT, MANGROVE_VAULT_ABI, "transferOwnership", (SENDER,)),
        TransactionMessages(label="Ownership transfer"),
    )

    assert ok is False
    assert fake_chain.calls("simulate") == ["transferOwnership"]
    assert fake_chain.calls("send") == []
    assert "❌ [Ownership transfer] Simulation failed" in capsys.readouterr().err


def test_submit_forwards_value_and_gas(fake_chain):
    assert submit(fake_chain, Call(VAULT, MANGROVE_VAULT_ABI, "fundMangrove"), TransactionMessages(), value=5, gas=7)
    assert fake_chain.sent[0].value == 5
    assert fake_chain.sent[0].gas == 7


def test_require_success_raises_with_receipt():
    receipt = {"status": 0, "transactionHash": "0xabc"}
    with pytest.raises(TransactionRevertedError) as exc_info:
        require_success(receipt)
    assert exc_info.value.tx_hash == "0xabc"
    assert exc_info.value.receipt is receipt
    assert require_success({"status": 1}) == {"status": 1}
