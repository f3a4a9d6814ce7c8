"""Swap aggregator adapters: quote a trade, then build the call the vault will forward."""

from typing import Any

import requests

from mangrove_vaults.constants import (
    DEFAULT_TIMEOUT,
    KAME_SWAP_GAS_LIMIT,
    OPENOCEAN_SWAP_GAS_LIMIT,
    SYMPHONY_SWAP_GAS_LIMIT,
    ZERO_ADDRESS,
)
from mangrove_vaults.errors import AggregatorError
from mangrove_vaults.formatters import as_int, format_units, hex_to_bytes, same_address
from mangrove_vaults.models import Quote, SwapCall, Token
from mangrove_vaults.registry import KAME, ODOS, OPENOCEAN, SYMPHONY, RebalanceProvider

NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

DEFAULT_KAME_API_URL = "https://api.kame.ag"
DEFAULT_SYMPHONY_API_URL = "https://api.symph.ag/v1"

ODOS_SLIPPAGE_PERCENT = 0.3
OPENOCEAN_SLIPPAGE_PERCENT = "1"
OPENOCEAN_GAS_PRICE = "5"
SYMPHONY_SLIPPAGE_BPS = "50"

OPENOCEAN_CHAINS = (1, 56, 137, 42161, 8453, 1329)


class Aggregator:
    """
    Common shape of every provider.

    `quote` prices selling `amount` of `sell` for `buy`; `build` turns that quote into
    the low-level call the vault executes from its own address.
    """

    name = "aggregator"
    # Gas limit forced on the vault `swap` call; None lets the node estimate.
    swap_gas: int | None = None

    def __init__(self, provider: RebalanceProvider, chain_id: int, *, session=None, timeout: int = DEFAULT_TIMEOUT):
        self.provider = provider
        self.chain_id = chain_id
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def contract(self) -> str:
        return self.provider.contract

    def quote(self, sell: Token, buy: Token, amount: int, vault: str) -> Quote:
        raise NotImplementedError

    def build(self, quote: Quote, vault: str) -> SwapCall:
        raise NotImplementedError

    def _json(self, method: str, url: str, **kwargs) -> Any:
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise AggregatorError(self.name, f"request to {url} failed: {exc}") from exc
        if not 200 <= int(resp.status_code) < 300:
            raise AggregatorError(self.name, f"HTTP {resp.status_code}: {str(resp.text)[:300]}")
        try:
            return resp.json()
        except ValueError as exc:
            raise AggregatorError(self.name, f"invalid JSON from {url}") from exc

    def _swap_call(self, tx: Any) -> SwapCall:
        if not isinstance(tx, dict) or not tx.get("to") or not tx.get("data"):
            raise AggregatorError(self.name, "Invalid build response")
        return SwapCall(to=tx["to"], data=hex_to_bytes(tx["data"]), value=as_int(tx.get("value") or 0))


class OdosAggregator(Aggregator):
    name = ODOS

    def quote(self, sell: Token, buy: Token, amount: int, vault: str) -> Quote:
        body = {
            "chainId": self.chain_id,
            "compact": True,
            "inputTokens": [{"amount": str(amount), "tokenAddress": sell.address}],
            "outputTokens": [{"proportion": 1, "tokenAddress": buy.address}],
            "referralCode": 0,
            "slippageLimitPercent": ODOS_SLIPPAGE_PERCENT,
            "sourceBlacklist": [],
            "sourceWhitelist": [],
            "userAddr": vault,
        }
        data = self._json("POST", self.provider.quote_url, json=body)
        try:
            in_tokens = data["inTokens"]
            out_tokens = data["outTokens"]
            valid = (
                len(in_tokens) == 1
                and len(out_tokens) == 1
                and same_address(in_tokens[0], sell.address)
                and same_address(out_tokens[0], buy.address)
            )
            if not valid:
                raise AggregatorError(self.name, "Invalid quote response")
            return Quote(
                amount_out=int(data["outAmounts"][0]),
                amount_sold=int(data["inAmounts"][0]),
                route=data["pathId"],
                price_impact=float(data.get("priceImpact") or 0),
                gas_estimate=int(float(data.get("gasEstimate") or 0)),
            )
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise AggregatorError(self.name, "Invalid quote response") from exc

    def build(self, quote: Quote, vault: str) -> SwapCall:
        body = {"pathId": quote.route, "simulate": False, "userAddr": vault}
        data = self._json("POST", self.provider.build_url, json=body)
        return self._swap_call(data.get("transaction") if isinstance(data, dict) else None)


class OpenOceanAggregator(Aggregator):
    """
    OpenOcean v3 API.

    Amounts are sent in human units (the API scales them with the token decimals);
    the returned `outAmount` is raw.
    """

    name = OPENOCEAN
    swap_gas = OPENOCEAN_SWAP_GAS_LIMIT

    def __init__(self, provider: RebalanceProvider, chain_id: int, **kwargs):
        if chain_id not in OPENOCEAN_CHAINS:
            raise AggregatorError(OPENOCEAN, f"chain {chain_id} is not supported")
        super().__init__(provider, chain_id, **kwargs)

    @staticmethod
    def _params(sell: Token, buy: Token, amount: int) -> dict[str, str]:
        return {
            "inTokenAddress": sell.address,
            "outTokenAddress": buy.address,
            "amount": format_units(amount, sell.decimals),
            "gasPrice": OPENOCEAN_GAS_PRICE,
            "slippage": OPENOCEAN_SLIPPAGE_PERCENT,
        }

    def _data(self, payload: Any, what: str) -> dict:
        if not isinstance(payload, dict) or as_int(payload.get("code", 0)) != 200:
            err = payload.get("error") if isinstance(payload, dict) else None
            raise AggregatorError(self.name, f"{what} failed: {err or 'unexpected response'}")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise AggregatorError(self.name, f"{what} failed: missing data")
        return data

    def quote(self, sell: Token, buy: Token, amount: int, vault: str) -> Quote:
        params = self._params(sell, buy, amount)
        data = self._data(self._json("GET", self.provider.quote_url, params=params), "Quote")
        try:
            return Quote(
                amount_out=int(data["outAmount"]),
                amount_sold=amount,
                route={"sell": sell, "buy": buy, "amount": amount, "data": data},
                price_impact=float(str(data.get("price_impact") or data.get("priceImpact") or "0.1").rstrip("%")),
                gas_estimate=int(data.get("estimatedGas") or 300_000),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise AggregatorError(self.name, "Invalid quote response") from exc

    def build(self, quote: Quote, vault: str) -> SwapCall:
        route = quote.route
        params = self._params(route["sell"], route["buy"], route["amount"])
        params.update({"account": vault, "referrer": ZERO_ADDRESS})
        data = self._data(self._json("GET", self.provider.build_url, params=params), "Swap build")
        return self._swap_call(data)


class KameAggregator(Aggregator):
    """Kame aggregator API, called the way its SDK does (`/quote`, then `/swap` with an origin)."""

    name = KAME
    swap_gas = KAME_SWAP_GAS_LIMIT

    @property
    def base_url(self) -> str:
        return (self.provider.quote_url or DEFAULT_KAME_API_URL).rstrip("/")

    def quote(self, sell: Token, buy: Token, amount: int, vault: str) -> Quote:
        params = {"chainId": self.chain_id, "fromToken": sell.address, "toToken": buy.address, "amount": str(amount)}
        data = self._json("GET", f"{self.base_url}/quote", params=params)
        try:
            return Quote(
                amount_out=int(data["dstAmount"]),
                amount_sold=int(data["srcAmount"]),
                route={"fromToken": data["srcToken"], "toToken": data["dstToken"], "paths": data.get("paths")},
                price_impact=0.0,
                gas_estimate=KAME_SWAP_GAS_LIMIT,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise AggregatorError(self.name, "Invalid quote response") from exc

    def build(self, quote: Quote, vault: str) -> SwapCall:
        params = {
            "chainId": self.chain_id,
            "fromToken": quote.route["fromToken"],
            "toToken": quote.route["toToken"],
            "amount": str(quote.amount_sold),
            "origin": vault,
        }
        data = self._json("GET", f"{self.base_url}/swap", params=params)
        return self._swap_call(data.get("tx") if isinstance(data, dict) else None)


class SymphonyAggregator(Aggregator):
    """Symphony routing API: fetch a raw-amount route, then generate calldata for it."""

    name = SYMPHONY
    swap_gas = SYMPHONY_SWAP_GAS_LIMIT

    @property
    def base_url(self) -> str:
        return (self.provider.quote_url or DEFAULT_SYMPHONY_API_URL).rstrip("/")

    def quote(self, sell: Token, buy: Token, amount: int, vault: str) -> Quote:
        body = {
            "chainId": self.chain_id,
            "tokenIn": sell.address.lower(),
            "tokenOut": buy.address.lower(),
            "amountIn": str(amount),
            "isRaw": True,
        }
        data = self._json("POST", f"{self.base_url}/route", json=body)
        if not data:
            raise AggregatorError(self.name, "No route found")
        try:
            return Quote(
                amount_out=int(data["amountOut"]),
                amount_sold=amount,
                route={"route": data, "sell": sell, "buy": buy},
                price_impact=0.1,
                gas_estimate=int(data.get("gasEstimate") or 300_000),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise AggregatorError(self.name, "Invalid quote response") from exc

    def build(self, quote: Quote, vault: str) -> SwapCall:
        sell: Token = quote.route["sell"]
        buy: Token = quote.route["buy"]
        body = {
            "chainId": self.chain_id,
            "from": vault,
            "route": quote.route["route"],
            "includesNative": same_address(sell.address, NATIVE_TOKEN),
            "slippage": {
                "slippageAmount": SYMPHONY_SLIPPAGE_BPS,
                "isRaw": False,
                "isBps": True,
                "outTokenDecimals": buy.decimals,
            },
        }
        data = self._json("POST", f"{self.base_url}/calldata", json=body)
        return self._swap_call(data)


_AGGREGATORS: dict[str, type[Aggregator]] = {
    ODOS: OdosAggregator,
    OPENOCEAN: OpenOceanAggregator,
    KAME: KameAggregator,
    SYMPHONY: SymphonyAggregator,
}


def get_aggregator(provider: RebalanceProvider, chain_id: int, *, session=None, timeout: int = DEFAULT_TIMEOUT) -> Aggregator:
    try:
        cls = _AGGREGATORS[provider.kind]
    except KeyError as exc:
        raise AggregatorError(provider.kind, "unknown provider") from exc
    return cls(provider, chain_id, session=session, timeout=timeout)
