"""Adding and removing vault liquidity."""

import re
import sys
from typing import Callable

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import BURN_GAS_LIMIT, ERC20_ABI, MANGROVE_VAULT_ABI, MINT_HELPER_ABI
from mangrove_vaults.errors import SimulationError, ValidationError
from mangrove_vaults.formatters import format_token, format_units
from mangrove_vaults.models import AllowanceEntry, Market, TransactionMessages
from mangrove_vaults.prompts import confirm as prompt_confirm
from mangrove_vaults.transactions import execute, submit, succeeded

_PERCENT_RE = re.compile(r"^(\d+)\s*%$")


def _format_entry(entry: AllowanceEntry) -> str:
    symbol = entry.symbol or "token"
    if entry.decimals:
        return f"{format_units(entry.amount, entry.decimals)} {symbol}"
    return f"{entry.amount} {symbol}"


def approve(client, entry: AllowanceEntry, confirm: Callable[[str], bool] = prompt_confirm) -> bool:
    """Ask the operator, then approve exactly `entry.amount`. Declining counts as failure."""
    amount = _format_entry(entry)
    if not confirm(f"Approve {amount} to {entry.spender}?"):
        return False
    return submit(
        client,
        Call(entry.token, ERC20_ABI, "approve", (entry.spender, entry.amount)),
        TransactionMessages(
            header=f"approving {amount} to {entry.spender}",
            label="Approving",
            success=lambda block, tx_hash: f"approved {amount} to {entry.spender} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"approval of {amount} to {entry.spender} failed: {tx_hash}",
        ),
    )


def ensure_allowances(
    client,
    account: str,
    entries: list[AllowanceEntry],
    confirm: Callable[[str], bool] = prompt_confirm,
) -> bool:
    """
    Make sure every spender may pull at least the required amount from `account`.

    Current allowances are read in one multicall; approvals are then sent one at a
    time in entry order and the first decline or failure stops the check.
    """
    if not entries:
        return True
    current = client.multicall([Call(e.token, ERC20_ABI, "allowance", (account, e.spender)) for e in entries])
    for entry, allowance in zip(entries, current):
        if int(allowance) >= entry.amount:
            continue
        if not approve(client, entry, confirm):
            return False
    return True


def get_mint_amounts(client, vault: str, max_base: int, max_quote: int) -> tuple[int, int, int]:
    """
    Preview a deposit.

    Returns: (base used, quote used, shares minted)
    """
    base, quote, shares = client.read(Call(vault, MANGROVE_VAULT_ABI, "getMintAmounts", (max_base, max_quote)))
    return int(base), int(quote), int(shares)


def mint(
    client,
    mint_helper: str,
    vault: str,
    max_base: int,
    max_quote: int,
    market: Market,
    *,
    min_shares: int = 0,
    vault_decimals: int | None = None,
    confirm: Callable[[str], bool] = prompt_confirm,
) -> bool:
    """Approve the mint helper where needed, then mint through it."""
    ok = ensure_allowances(
        client,
        client.sender,
        [
            AllowanceEntry(market.base.address, mint_helper, max_base, market.base.decimals, market.base.symbol),
            AllowanceEntry(market.quote.address, mint_helper, max_quote, market.quote.decimals, market.quote.symbol),
        ],
        confirm,
    )
    if not ok:
        return False
    try:
        (shares, base_amount, quote_amount), request = client.simulate(
            Call(mint_helper, MINT_HELPER_ABI, "mint", (vault, max_base, max_quote, min_shares))
        )
    except SimulationError as exc:
        print(f"❌ [Minting] Simulation failed: {exc}", file=sys.stderr)
        return False

    base_fmt = format_token(base_amount, market.base.decimals, market.base.symbol)
    quote_fmt = format_token(quote_amount, market.quote.decimals, market.quote.symbol)
    shares_fmt = f"{format_units(shares, vault_decimals) if vault_decimals else shares} Vault shares"
    receipt = execute(
        client,
        request,
        TransactionMessages(
            header=f"minting {shares_fmt} of {base_fmt} and {quote_fmt}",
            label="Minting",
            success=lambda block, tx_hash: f"minted {shares_fmt} of {base_fmt} and {quote_fmt} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"minting {shares_fmt} of {base_fmt} and {quote_fmt} failed: {tx_hash}",
        ),
    )
    return succeeded(receipt)


def parse_shares(text: str, balance: int) -> int:
    """
    Parse a burn amount: a whole share count or a whole percentage of `balance`.

    "50%" -> balance * 50 // 100
    """
    s = text.strip()
    m = _PERCENT_RE.match(s)
    if m:
        pct = int(m.group(1))
        if not 1 <= pct <= 100:
            raise ValidationError("Percentage must be between 1 and 100")
        return balance * pct // 100
    if not s.isdigit():
        raise ValidationError(f"Expected a whole number of shares or a percentage: {text!r}")
    shares = int(s)
    if shares <= 0:
        raise ValidationError("Share amount must be > 0")
    if shares > balance:
        raise ValidationError(f"Cannot burn more than the {balance} shares held")
    return shares


def burn(
    client,
    vault: str,
    shares: int,
    *,
    min_base_out: int = 0,
    min_quote_out: int = 0,
    market: Market | None = None,
) -> bool:
    try:
        (base_amount, quote_amount), request = client.simulate(
            Call(vault, MANGROVE_VAULT_ABI, "burn", (shares, min_base_out, min_quote_out)),
            gas=BURN_GAS_LIMIT,
        )
    except SimulationError as exc:
        print(f"❌ [Burning] Simulation failed: {exc}", file=sys.stderr)
        return False

    if market is not None:
        base_fmt = format_token(base_amount, market.base.decimals, market.base.symbol)
        quote_fmt = format_token(quote_amount, market.quote.decimals, market.quote.symbol)
    else:
        base_fmt, quote_fmt = str(base_amount), str(quote_amount)
    what = f"{shares} shares for {base_fmt} and {quote_fmt}"
    receipt = execute(
        client,
        request,
        TransactionMessages(
            header=f"burning {what}",
            label="Burning",
            success=lambda block, tx_hash: f"burned {what} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"burning {what} failed: {tx_hash}",
        ),
    )
    return succeeded(receipt)
