"""Tick/price conversions and Kandel ladder placement."""

import math

from mangrove_vaults.constants import TICK_BASE
from mangrove_vaults.errors import ValidationError
from mangrove_vaults.models import Market, Position

_LOG_TICK_BASE = math.log(TICK_BASE)


def price_from_tick(tick: int) -> float:
    """Raw (base-unit) price of quote per base at `tick`."""
    return TICK_BASE**tick


def tick_from_price(raw_price: float) -> float:
    """Inverse of `price_from_tick`, unrounded."""
    if raw_price <= 0:
        raise ValueError("price must be > 0")
    return math.log(raw_price) / _LOG_TICK_BASE


def _decimals_shift(market: Market) -> int:
    return market.base.decimals - market.quote.decimals


def raw_to_human_price(raw_price: float, market: Market) -> float:
    return raw_price * 10.0 ** _decimals_shift(market)


def human_to_raw_price(human_price: float, market: Market) -> float:
    return human_price / 10.0 ** _decimals_shift(market)


def human_price_from_tick(tick: int, market: Market) -> float:
    return raw_to_human_price(price_from_tick(tick), market)


def kandel_position_raw_params(
    min_price: float,
    max_price: float,
    price_points: int,
    market: Market,
) -> tuple[int, int]:
    """
    Place a geometric ladder of `price_points` rungs over [min_price, max_price].

    Prices are human (quote per base). Rung i sits at tick `tick_index0 + tick_offset * i`;
    the first rung is at or below `min_price` and the last at or above `max_price`.

    Returns: (tick_index0, tick_offset), both multiples of the market tick spacing.
    """
    if not 0 < min_price < max_price:
        raise ValidationError("Expected 0 < min price < max price")
    if price_points < 2:
        raise ValidationError("A ladder needs at least 2 price points")
    spacing = max(1, market.tick_spacing)

    tick0 = math.floor(tick_from_price(human_to_raw_price(min_price, market)))
    tick0 = (tick0 // spacing) * spacing
    # Float error can leave the snapped tick just above the target.
    while human_price_from_tick(tick0, market) > min_price:
        tick0 -= spacing

    max_tick = math.ceil(tick_from_price(human_to_raw_price(max_price, market)))
    while human_price_from_tick(max_tick, market) < max_price:
        max_tick += 1

    offset = math.ceil((max_tick - tick0) / (price_points - 1))
    offset = max(spacing, -(-offset // spacing) * spacing)
    while human_price_from_tick(tick0 + offset * (price_points - 1), market) < max_price:
        offset += spacing
    return tick0, offset


def rung_ticks(position: Position) -> list[int]:
    """Ticks of every rung; empty when the position has no price points."""
    n = position.params.price_points
    if n <= 0:
        return []
    return [position.tick_index0 + position.tick_offset * i for i in range(n)]
