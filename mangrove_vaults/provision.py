"""Native-token provision held on Mangrove for the vault's Kandel."""

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import MANGROVE_VAULT_ABI
from mangrove_vaults.errors import ValidationError
from mangrove_vaults.formatters import format_native
from mangrove_vaults.models import TransactionMessages
from mangrove_vaults.transactions import submit


def fund_mangrove(client, vault: str, amount: int) -> bool:
    if amount <= 0:
        raise ValidationError("Provision amount must be > 0")
    what = format_native(amount)
    return submit(
        client,
        Call(vault, MANGROVE_VAULT_ABI, "fundMangrove"),
        TransactionMessages(
            header=f"funding mangrove with {what}",
            label="Funding mangrove",
            success=lambda block, tx_hash: f"funded mangrove with {what} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"funding mangrove with {what} failed: {tx_hash}",
        ),
        value=amount,
    )


def withdraw_from_mangrove(client, vault: str, amount: int, receiver: str, *, unlocked: int | None = None) -> bool:
    """Withdraw unlocked provision to `receiver`; `unlocked` bounds the amount when known."""
    if amount <= 0:
        raise ValidationError("Withdrawal amount must be > 0")
    if unlocked is not None and amount > unlocked:
        raise ValidationError(f"Amount exceeds the unlocked provision of {format_native(unlocked)}")
    what = format_native(amount)
    return submit(
        client,
        Call(vault, MANGROVE_VAULT_ABI, "withdrawFromMangrove", (amount, receiver)),
        TransactionMessages(
            header=f"withdrawing {what} from mangrove",
            label="Withdrawing from mangrove",
            success=lambda block, tx_hash: f"withdrew {what} from mangrove in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"withdrawing {what} from mangrove failed: {tx_hash}",
        ),
    )
