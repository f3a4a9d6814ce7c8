"""Broadcast a simulated write and report its outcome."""

import sys
from typing import Any

from tqdm import tqdm

from mangrove_vaults.chain import Call, TxRequest
from mangrove_vaults.console import spinner
from mangrove_vaults.errors import SimulationError, TransactionRevertedError
from mangrove_vaults.formatters import as_int, normalize_hex_str
from mangrove_vaults.models import TransactionMessages


def succeeded(receipt: dict[str, Any]) -> bool:
    return as_int(receipt.get("status")) == 1


def success_message(messages: TransactionMessages, tx: str, block: int, tx_hash: str) -> str:
    if callable(messages.success):
        return messages.success(block, tx_hash)
    if messages.success:
        return messages.success
    return f"[{messages.label}] Transaction {tx} confirmed in block {block}: {tx_hash}"


def failure_message(messages: TransactionMessages, tx: str, status: Any, tx_hash: str) -> str:
    if callable(messages.failure):
        return messages.failure(tx_hash)
    if messages.failure:
        return messages.failure
    return f"[{messages.label}] Transaction {tx} failed: {status}: {tx_hash}"


def execute(client, request: TxRequest, messages: TransactionMessages | None = None) -> dict[str, Any]:
    """
    Send one transaction and block until it is mined.

    Built -> Broadcast -> Pending -> Confirmed | Reverted. Exactly one transaction is
    sent per call and nothing is retried here.

    Returns: the receipt (check it with `succeeded`).
    """
    messages = messages or TransactionMessages()
    if messages.header:
        tqdm.write(messages.header, file=sys.stderr)
    with spinner(f"[{messages.label}] Broadcasting transaction...") as bar:
        tx = client.send(request)
        bar.set_description_str(f"[{messages.label}] Waiting for transaction {tx}...")
        receipt = client.wait_for_receipt(tx)
    block = as_int(receipt.get("blockNumber"))
    tx_hash = normalize_hex_str(receipt.get("transactionHash", tx))
    if succeeded(receipt):
        tqdm.write(f"✅ {success_message(messages, tx, block, tx_hash)}", file=sys.stderr)
    else:
        status = "reverted" if receipt.get("status") is not None else "unknown"
        tqdm.write(f"❌ {failure_message(messages, tx, status, tx_hash)}", file=sys.stderr)
    return receipt


def submit(client, call: Call, messages: TransactionMessages, *, value: int = 0, gas: int | None = None) -> bool:
    """Simulate `call`, then execute it. A reverting simulation is reported and sends nothing."""
    try:
        _, request = client.simulate(call, value=value, gas=gas)
    except SimulationError as exc:
        tqdm.write(f"❌ [{messages.label}] Simulation failed: {exc}", file=sys.stderr)
        return False
    return succeeded(execute(client, request, messages))


def require_success(receipt: dict[str, Any]) -> dict[str, Any]:
    """Raise TransactionRevertedError unless the receipt reports success."""
    if not succeeded(receipt):
        tx_hash = normalize_hex_str(receipt.get("transactionHash", ""))
        raise TransactionRevertedError(tx_hash, receipt, f"Transaction {tx_hash} reverted")
    return receipt
