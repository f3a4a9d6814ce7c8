"""Kandel position edits: `setPosition` and `updatePosition`."""

from dataclasses import replace

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import MANGROVE_VAULT_ABI
from mangrove_vaults.models import FundsState, KandelParams, Market, Position, TransactionMessages
from mangrove_vaults.prices import kandel_position_raw_params
from mangrove_vaults.transactions import submit


def position_for_price_range(
    current: Position,
    market: Market,
    min_price: float,
    max_price: float,
    price_points: int,
    *,
    step_size: int | None = None,
    funds_state: FundsState | None = None,
) -> Position:
    """
    Build a new position covering [min_price, max_price] with `price_points` rungs.

    Gas price and gas requirement are carried over from `current`.
    """
    tick_index0, tick_offset = kandel_position_raw_params(min_price, max_price, price_points, market)
    params = replace(
        current.params,
        price_points=price_points,
        step_size=current.params.step_size if step_size is None else step_size,
    )
    return Position(
        tick_index0=tick_index0,
        tick_offset=tick_offset,
        params=params,
        funds_state=current.funds_state if funds_state is None else funds_state,
    )


def _describe(params: KandelParams) -> list[str]:
    def or_default(v: int) -> str:
        return "unchanged or default" if v == 0 else str(v)

    return [
        f"gas price: {or_default(params.gasprice)}",
        f"gasreq: {or_default(params.gasreq)}",
        f"step size: {params.step_size}",
        f"price points: {params.price_points}",
    ]


def set_position(client, vault: str, data: Position) -> bool:
    lines = [
        f"setting position for vault {vault} with data:",
        f"   first tick index: {data.tick_index0}",
        f"   tick offset: {data.tick_offset}",
        *(f"   {line}" for line in _describe(data.params)),
        f"   funds state: {data.funds_state.description}",
    ]
    return submit(
        client,
        Call(vault, MANGROVE_VAULT_ABI, "setPosition", (data.as_tuple(),)),
        TransactionMessages(
            header="\n".join(lines),
            label="Position setting",
            success=lambda block, tx_hash: f"position set for vault {vault} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"position not set for vault {vault}: {tx_hash}",
        ),
    )


def refresh_position(client, vault: str) -> bool:
    """Re-post the ladder with the vault's current parameters."""
    return submit(
        client,
        Call(vault, MANGROVE_VAULT_ABI, "updatePosition"),
        TransactionMessages(
            header=f"refreshing position for vault {vault} with current parameters",
            label="Position refreshing",
            success=lambda block, tx_hash: f"position refreshed for vault {vault} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"position not refreshed for vault {vault}: {tx_hash}",
        ),
    )
