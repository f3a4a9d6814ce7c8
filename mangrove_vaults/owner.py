"""Ownership and manager changes."""

import sys

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import MANGROVE_VAULT_ABI
from mangrove_vaults.formatters import same_address
from mangrove_vaults.models import TransactionMessages
from mangrove_vaults.transactions import submit


def set_owner(client, vault: str, new_owner: str, *, current_owner: str | None = None) -> bool:
    if same_address(new_owner, current_owner):
        print(f"ℹ️  {new_owner} already owns vault {vault}, nothing to do.", file=sys.stderr)
        return True
    return submit(
        client,
        Call(vault, MANGROVE_VAULT_ABI, "transferOwnership", (new_owner,)),
        TransactionMessages(
            header=f"transferring ownership of vault {vault} to {new_owner}",
            label="Ownership transfer",
            success=lambda block, tx_hash: f"ownership transferred for vault {vault} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"ownership not transferred for vault {vault}: {tx_hash}",
        ),
    )


def set_manager(client, vault: str, new_manager: str, *, current_manager: str | None = None) -> bool:
    if same_address(new_manager, current_manager):
        print(f"ℹ️  {new_manager} already manages vault {vault}, nothing to do.", file=sys.stderr)
        return True
    return submit(
        client,
        Call(vault, MANGROVE_VAULT_ABI, "setManager", (new_manager,)),
        TransactionMessages(
            header=f"setting manager for vault {vault} to {new_manager}",
            label="Manager setting",
            success=lambda block, tx_hash: f"manager set for vault {vault} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"manager not set for vault {vault}: {tx_hash}",
        ),
    )
