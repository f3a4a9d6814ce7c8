"""Kandel ladder reads."""

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import KANDEL_ABI, MANGROVE_ABI, OFFER_TYPE_ASK, OFFER_TYPE_BID
from mangrove_vaults.models import KandelOffer, KandelState, Market
from mangrove_vaults.prices import human_price_from_tick

# Packed Mangrove offer, most significant bits first:
# prev (32) | next (32) | tick (21, signed) | gives (127) | unused (44)
_TICK_BITS = 21
_GIVES_BITS = 127
_TICK_SHIFT = 171
_GIVES_SHIFT = 44


def unpack_offer(packed: int) -> tuple[int, int, int, int]:
    """
    Split a packed offer word.

    Returns: (prev, next, tick, gives)
    """
    prev = (packed >> 224) & 0xFFFFFFFF
    nxt = (packed >> 192) & 0xFFFFFFFF
    tick = (packed >> _TICK_SHIFT) & ((1 << _TICK_BITS) - 1)
    if tick >= 1 << (_TICK_BITS - 1):
        tick -= 1 << _TICK_BITS
    gives = (packed >> _GIVES_SHIFT) & ((1 << _GIVES_BITS) - 1)
    return prev, nxt, tick, gives


def _offer(ba: str, index: int, packed: int, market: Market) -> KandelOffer | None:
    _, _, tick, gives = unpack_offer(int(packed))
    if gives == 0:
        return None
    # Bids live on the quote->base offer list, so their tick is inverted.
    price = human_price_from_tick(tick if ba == "ask" else -tick, market)
    return KandelOffer(ba=ba, index=index, tick=tick, gives=gives, price=price)


def read_ladder(client, kandel: str, price_points: int) -> tuple[list[int], list[int], int]:
    """
    Fetch the packed offers of every rung on both sides plus the unlocked provision.

    Returns: (packed asks, packed bids, unlocked provision in wei)
    """
    n = max(0, price_points)
    calls = [Call(kandel, KANDEL_ABI, "MGV")]
    calls += [Call(kandel, KANDEL_ABI, "getOffer", (OFFER_TYPE_ASK, i)) for i in range(n)]
    calls += [Call(kandel, KANDEL_ABI, "getOffer", (OFFER_TYPE_BID, i)) for i in range(n)]
    results = client.multicall(calls)
    mangrove = results[0]
    provision = int(client.read(Call(mangrove, MANGROVE_ABI, "balanceOf", (kandel,))))
    return [int(r) for r in results[1 : 1 + n]], [int(r) for r in results[1 + n :]], provision


def to_kandel_state(asks_raw: list[int], bids_raw: list[int], provision: int, market: Market) -> KandelState:
    """Decode packed offers, keeping only those that still give something."""
    asks: list[KandelOffer] = []
    bids: list[KandelOffer] = []
    for side, raws, out in (("ask", asks_raw, asks), ("bid", bids_raw, bids)):
        for i, raw in enumerate(raws):
            offer = _offer(side, i, raw, market)
            if offer is not None:
                out.append(offer)
    return KandelState(asks=asks, bids=bids, unlocked_provision=provision)


def get_kandel_state(client, kandel: str, market: Market, price_points: int) -> KandelState:
    return to_kandel_state(*read_ladder(client, kandel, price_points), market)
