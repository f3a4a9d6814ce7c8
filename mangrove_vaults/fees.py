"""Vault fee encoding and `setFeeData`."""

import sys
from decimal import Decimal, InvalidOperation

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import FEE_PRECISION, MANGROVE_VAULT_ABI
from mangrove_vaults.errors import ValidationError
from mangrove_vaults.formatters import format_percent
from mangrove_vaults.models import FeeData, TransactionMessages
from mangrove_vaults.transactions import submit


def encode_fee(fraction) -> int:
    """
    Scale a fee fraction to its on-chain integer (0.15 -> 1500).

    Fractions that are not an exact multiple of 1/FEE_PRECISION, or fall outside
    [0, 1], are rejected rather than rounded.
    """
    try:
        value = Decimal(str(fraction).strip())
    except InvalidOperation as exc:
        raise ValidationError(f"Fee must be a number: {fraction!r}") from exc
    if not value.is_finite() or value < 0 or value > 1:
        raise ValidationError(f"Fee must be between 0 and 1: {fraction!r}")
    scaled = value * FEE_PRECISION
    if scaled != scaled.to_integral_value():
        raise ValidationError(f"Fee must be a multiple of 1/{FEE_PRECISION}: {fraction!r}")
    return int(scaled)


def decode_fee(raw: int) -> float:
    return int(raw) / FEE_PRECISION


def set_fee(client, vault: str, data: FeeData) -> bool:
    """Write new fees to the vault. Returns True when the transaction succeeded."""
    performance_fee = encode_fee(data.performance_fee)
    management_fee = encode_fee(data.management_fee)
    print(f"ℹ️  Setting fees for vault {vault}", file=sys.stderr)
    print(f"   fee recipient: {data.fee_recipient}", file=sys.stderr)
    print(f"   performance fee: {format_percent(decode_fee(performance_fee))}", file=sys.stderr)
    print(f"   annual management fee: {format_percent(decode_fee(management_fee))}", file=sys.stderr)
    return submit(
        client,
        Call(vault, MANGROVE_VAULT_ABI, "setFeeData", (performance_fee, management_fee, data.fee_recipient)),
        TransactionMessages(
            label="Fee setting",
            success=lambda block, tx_hash: f"fees set for vault {vault} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"fee setting failed for vault {vault}: {tx_hash}",
        ),
    )
