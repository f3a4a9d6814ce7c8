"""ERC-4626 wrapper variant: sub-vaults holding the idle base/quote tokens."""

import sys

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import ERC4626_VAULT_ABI
from mangrove_vaults.formatters import same_address
from mangrove_vaults.models import Market, TransactionMessages
from mangrove_vaults.transactions import submit

VAULT_TYPE = "erc4626"


def get_current_vaults(client, vault: str) -> tuple[str, str]:
    """Returns: (base sub-vault, quote sub-vault)"""
    base_vault, quote_vault = client.read(Call(vault, ERC4626_VAULT_ABI, "currentVaults"))
    return base_vault, quote_vault


def _set_vault_for_token(client, vault: str, token: str, new_vault: str, side: str) -> bool:
    return submit(
        client,
        Call(vault, ERC4626_VAULT_ABI, "setVaultForToken", (token, new_vault, 0, 0)),
        TransactionMessages(
            header=f"setting {side} vault to {new_vault}",
            label=f"Setting {side} vault",
            success=lambda block, tx_hash: f"set {side} vault to {new_vault} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"set {side} vault to {new_vault} failed: {tx_hash}",
        ),
    )


def set_vaults(
    client,
    vault: str,
    market: Market,
    current: tuple[str, str],
    new_base_vault: str,
    new_quote_vault: str,
) -> bool:
    """Send one `setVaultForToken` per side that changed; nothing when both are unchanged."""
    base_changed = not same_address(current[0], new_base_vault)
    quote_changed = not same_address(current[1], new_quote_vault)
    if not base_changed and not quote_changed:
        print("ℹ️  No changes made", file=sys.stderr)
        return True
    if base_changed and not _set_vault_for_token(client, vault, market.base.address, new_base_vault, "base"):
        return False
    if quote_changed and not _set_vault_for_token(client, vault, market.quote.address, new_quote_vault, "quote"):
        return False
    return True
