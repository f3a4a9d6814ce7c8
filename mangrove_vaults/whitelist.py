"""Swap-contract whitelist on the vault."""

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import MANGROVE_VAULT_ABI
from mangrove_vaults.models import TransactionMessages
from mangrove_vaults.transactions import submit


def is_whitelisted(client, vault: str, contract: str) -> bool:
    return bool(client.read(Call(vault, MANGROVE_VAULT_ABI, "allowedSwapContracts", (contract,))))


def add_to_whitelist(client, vault: str, contract: str) -> bool:
    return submit(
        client,
        Call(vault, MANGROVE_VAULT_ABI, "allowSwapContract", (contract,)),
        TransactionMessages(
            header=f"Whitelisting {contract} for {vault}",
            label="Whitelisting",
            success=lambda block, tx_hash: f"contract {contract} whitelisted in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"contract {contract} failed to be whitelisted: {tx_hash}",
        ),
    )


def remove_from_whitelist(client, vault: str, contract: str) -> bool:
    return submit(
        client,
        Call(vault, MANGROVE_VAULT_ABI, "disallowSwapContract", (contract,)),
        TransactionMessages(
            header=f"Removing {contract} from the whitelist of {vault}",
            label="Unwhitelisting",
            success=lambda block, tx_hash: f"contract {contract} removed from whitelist in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"contract {contract} failed to be removed from whitelist: {tx_hash}",
        ),
    )
