"""Console output formatting."""

import sys
from contextlib import contextmanager
from typing import Any, Iterator

from tqdm import tqdm

from mangrove_vaults.formatters import format_native, format_percent, format_price, format_token
from mangrove_vaults.models import (
    Balance,
    CurrentVaultState,
    FeeData,
    FundsState,
    KandelOffer,
    KandelParams,
    Market,
    Position,
)
from mangrove_vaults.prices import price_from_tick, raw_to_human_price


def info(msg: str) -> None:
    tqdm.write(f"ℹ️  {msg}", file=sys.stderr)


def success(msg: str) -> None:
    tqdm.write(f"✅ {msg}", file=sys.stderr)


def warn(msg: str) -> None:
    tqdm.write(f"⚠️  {msg}", file=sys.stderr)


def error(msg: str) -> None:
    tqdm.write(f"❌ {msg}", file=sys.stderr)


def header(title: str) -> None:
    print("=" * 70, file=sys.stderr)
    print(title, file=sys.stderr)
    print("=" * 70, file=sys.stderr)


@contextmanager
def spinner(desc: str) -> Iterator[tqdm]:
    """Indeterminate progress indicator on stderr while a blocking call runs."""
    bar = tqdm(total=None, desc=desc, file=sys.stderr, bar_format="⏳ {desc} [{elapsed}]", leave=False)
    try:
        yield bar
    finally:
        bar.close()


def table(rows: list[dict[str, Any]]) -> None:
    """Print a list of same-keyed dicts as an aligned text table."""
    if not rows:
        print("   (empty)")
        return
    columns = list(rows[0].keys())
    cells = [[str(row.get(c, "")) for c in columns] for row in rows]
    widths = [max(len(c), *(len(r[i]) for r in cells)) for i, c in enumerate(columns)]
    print("   " + "  ".join(c.ljust(w) for c, w in zip(columns, widths)))
    print("   " + "  ".join("─" * w for w in widths))
    for r in cells:
        print("   " + "  ".join(v.ljust(w) for v, w in zip(r, widths)))


def log_fees(fees: FeeData) -> None:
    print("   💸 Fees:")
    print(f"      • Performance fee: {format_percent(fees.performance_fee)}")
    print(f"      • Management fee:  {format_percent(fees.management_fee)}")
    print(f"      • Fee recipient:   {fees.fee_recipient}")


def log_params(params: KandelParams) -> None:
    print("   ⚙️  Kandel params:")
    print(f"      • Gas price:    {params.gasprice}")
    print(f"      • Gas req:      {params.gasreq}")
    print(f"      • Step size:    {params.step_size}")
    print(f"      • Price points: {params.price_points}")


def log_funds_state(funds_state: FundsState) -> None:
    print(f"   📦 Funds state: {funds_state.description}")


def log_position(position: Position, market: Market) -> None:
    """Print the ladder bounds implied by a position."""
    print("   📐 Position:")
    print(f"      • Tick index 0: {position.tick_index0}")
    print(f"      • Tick offset:  {position.tick_offset}")
    n = position.params.price_points
    if n > 0:
        lo = raw_to_human_price(price_from_tick(position.tick_index0), market)
        hi = raw_to_human_price(price_from_tick(position.tick_index0 + position.tick_offset * (n - 1)), market)
        print(f"      • Price range:  {format_price(lo)} → {format_price(hi)} {market.quote.symbol}/{market.base.symbol}")
    log_params(position.params)
    log_funds_state(position.funds_state)


def log_balances(title: str, balance: Balance, market: Market) -> None:
    print(f"   💰 {title}:")
    print(f"      • {format_token(balance.base, market.base.decimals, market.base.symbol)}")
    print(f"      • {format_token(balance.quote, market.quote.decimals, market.quote.symbol)}")


def _offer_rows(offers: list[KandelOffer], market: Market) -> list[dict[str, Any]]:
    token = market.base if offers and offers[0].ba == "ask" else market.quote
    return [
        {
            "index": o.index,
            "tick": o.tick,
            "price": format_price(o.price),
            "gives": format_token(o.gives, token.decimals, token.symbol),
        }
        for o in offers
    ]


def print_vault_state(state: CurrentVaultState) -> None:
    """Print a full vault snapshot."""
    m = state.market
    print("=" * 70)
    print(f"🏦 VAULT {state.vault}")
    print(f"   Market: {m.base.symbol}/{m.quote.symbol}  •  tickSpacing={m.tick_spacing}")
    print("=" * 70)
    print(f"   👤 Owner:  {state.owner}")
    print(f"   🔮 Oracle: {state.oracle}")
    print(f"   🤖 Kandel: {state.kandel}")
    print(
        f"   📈 Current price: {format_price(state.current_price)} {m.quote.symbol}/{m.base.symbol}"
        f"  (tick {state.current_tick})"
    )
    if state.current_vaults is not None:
        print(f"   🏛️  ERC4626 vaults: base={state.current_vaults[0]}  quote={state.current_vaults[1]}")
    log_fees(state.fee_data)
    log_position(state.position, m)
    log_balances("Kandel balances", state.kandel_balance, m)
    log_balances("Vault balances", state.vault_balance, m)
    print(f"   ⛽ Unlocked provision: {format_native(state.kandel_state.unlocked_provision)}")
    print(f"\n   📗 Bids ({len(state.kandel_state.bids)})")
    table(_offer_rows(state.kandel_state.bids, m))
    print(f"\n   📕 Asks ({len(state.kandel_state.asks)})")
    table(_offer_rows(state.kandel_state.asks, m))
