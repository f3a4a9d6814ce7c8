"""Vault deployment through the vault factory."""

import sys
from dataclasses import dataclass

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import DEFAULT_VAULT_DECIMALS, MAX_VAULT_DECIMALS, MIN_VAULT_DECIMALS, VAULT_FACTORY_ABI
from mangrove_vaults.errors import SimulationError, ValidationError
from mangrove_vaults.formatters import is_zero_address
from mangrove_vaults.models import TransactionMessages
from mangrove_vaults.transactions import execute, succeeded


@dataclass(frozen=True)
class DeployVaultArgs:
    seeder: str
    base: str
    quote: str
    tick_spacing: int
    oracle: str
    name: str
    symbol: str
    decimals: int = DEFAULT_VAULT_DECIMALS
    # Defaults to the sender.
    owner: str | None = None


def validate_vault_args(args: DeployVaultArgs) -> None:
    """Raise ValidationError for arguments the factory would reject or that make no sense."""
    if not args.name.strip():
        raise ValidationError("Vault name must not be empty")
    if not args.symbol.strip():
        raise ValidationError("Vault symbol must not be empty")
    if not MIN_VAULT_DECIMALS <= args.decimals <= MAX_VAULT_DECIMALS:
        raise ValidationError(f"Vault decimals must be between {MIN_VAULT_DECIMALS} and {MAX_VAULT_DECIMALS}")
    if args.tick_spacing <= 0:
        raise ValidationError("Tick spacing must be > 0")
    for label, address in (("seeder", args.seeder), ("base", args.base), ("quote", args.quote), ("oracle", args.oracle)):
        if is_zero_address(address):
            raise ValidationError(f"The {label} address must be set")
    if args.base.lower() == args.quote.lower():
        raise ValidationError("Base and quote must differ")


def deploy_vault(client, vault_factory: str, args: DeployVaultArgs) -> str | None:
    """
    Create a vault.

    Returns: the new vault address, or None if simulation or the transaction failed.
    """
    validate_vault_args(args)
    owner = args.owner or client.sender
    call = Call(
        vault_factory,
        VAULT_FACTORY_ABI,
        "createVault",
        (
            args.seeder,
            args.base,
            args.quote,
            args.tick_spacing,
            args.decimals,
            args.name,
            args.symbol,
            args.oracle,
            owner,
        ),
    )
    try:
        vault, request = client.simulate(call)
    except SimulationError as exc:
        print(f"❌ [Vault creation] Simulation failed: {exc}", file=sys.stderr)
        return None
    receipt = execute(
        client,
        request,
        TransactionMessages(
            header=f"creating vault at address {vault} owned by {owner}",
            label="Vault creation",
            success=lambda block, tx_hash: f"vault created at address {vault} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"vault creation failed at address {vault}: {tx_hash}",
        ),
    )
    return vault if succeeded(receipt) else None
