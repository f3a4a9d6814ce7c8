"""Token balance and oracle price reads."""

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import ERC20_ABI, ORACLE_ABI
from mangrove_vaults.models import Balance, Market, Token
from mangrove_vaults.prices import human_price_from_tick


def get_balances_for_market(client, account: str, market: Market) -> Balance:
    """Base and quote balances of `account`, in one round trip."""
    base, quote = client.multicall(
        [
            Call(market.base.address, ERC20_ABI, "balanceOf", (account,)),
            Call(market.quote.address, ERC20_ABI, "balanceOf", (account,)),
        ]
    )
    return Balance(base=int(base), quote=int(quote))


def get_balance_for_token(client, account: str, token: str) -> int:
    return int(client.read(Call(token, ERC20_ABI, "balanceOf", (account,))))


def get_token(client, address: str) -> Token:
    decimals, symbol = client.multicall(
        [
            Call(address, ERC20_ABI, "decimals"),
            Call(address, ERC20_ABI, "symbol"),
        ]
    )
    return Token(address=address, decimals=int(decimals), symbol=str(symbol))


def get_price(client, oracle: str, base: str, quote: str, tick_spacing: int = 1) -> tuple[Market, int, float]:
    """
    Read token metadata and the oracle tick in one multicall.

    Returns: (market, tick, human price of base in quote).
    """
    base_decimals, base_symbol, quote_decimals, quote_symbol, tick = client.multicall(
        [
            Call(base, ERC20_ABI, "decimals"),
            Call(base, ERC20_ABI, "symbol"),
            Call(quote, ERC20_ABI, "decimals"),
            Call(quote, ERC20_ABI, "symbol"),
            Call(oracle, ORACLE_ABI, "tick"),
        ]
    )
    market = Market(
        base=Token(address=base, decimals=int(base_decimals), symbol=str(base_symbol)),
        quote=Token(address=quote, decimals=int(quote_decimals), symbol=str(quote_symbol)),
        tick_spacing=int(tick_spacing),
    )
    tick = int(tick)
    return market, tick, human_price_from_tick(tick, market)
