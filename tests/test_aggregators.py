import pytest

from conftest import SWAPPER, VAULT, StubResponse, StubSession
from mangrove_vaults.aggregators import (
    NATIVE_TOKEN,
    KameAggregator,
    OdosAggregator,
    OpenOceanAggregator,
    SymphonyAggregator,
    get_aggregator,
)
from mangrove_vaults.constants import KAME_SWAP_GAS_LIMIT, OPENOCEAN_SWAP_GAS_LIMIT, ZERO_ADDRESS
from mangrove_vaults.errors import AggregatorError
from mangrove_vaults.models import Quote, Token
from mangrove_vaults.registry import BASE as BASE_CHAIN, KAME, ODOS, OPENOCEAN, SYMPHONY, RebalanceProvider


def _odos(session):
    return OdosAggregator(BASE_CHAIN.rebalance[ODOS], 8453, session=session)


def _odos_quote(market, **overrides):
    payload = {
        "inTokens": [market.base.address.lower()],
        "outTokens": [market.quote.address],
        "inAmounts": ["1000000000000000000"],
        "outAmounts": ["2500000000"],
        "pathId": "path-1",
        "priceImpact": -0.05,
        "gasEstimate": 180000.0,
    }
    payload.update(overrides)
    return StubResponse(payload)


def test_odos_quote_parses_amounts(market):
    session = StubSession(_odos_quote(market))
    quote = _odos(session).quote(market.base, market.quote, 10**18, VAULT)

    assert quote == Quote(
        amount_out=2_500_000_000, amount_sold=10**18, route="path-1", price_impact=-0.05, gas_estimate=180_000
    )
    request = session.requests[0]
    assert request["method"] == "POST"
    assert request["url"] == "https://api.odos.xyz/sor/quote/v2"
    assert request["json"]["inputTokens"] == [{"amount": str(10**18), "tokenAddress": market.base.address}]
    assert request["json"]["userAddr"] == VAULT
    assert request["json"]["chainId"] == 8453


@pytest.mark.parametrize(
    "overrides",
    [
        {"inTokens": ["0x" + "9" * 40]},
        {"outTokens": []},
        {"inTokens": ["a", "b"]},
        {"outAmounts": []},
        {"pathId": None, "inAmounts": ["x"]},
    ],
)
def test_odos_invalid_quote(market, overrides):
    with pytest.raises(AggregatorError, match="Invalid quote response"):
        _odos(StubSession(_odos_quote(market, **overrides))).quote(market.base, market.quote, 10**18, VAULT)


def test_odos_http_error(market):
    with pytest.raises(AggregatorError, match="HTTP 500"):
        _odos(StubSession(StubResponse({"detail": "boom"}, status_code=500))).quote(
            market.base, market.quote, 1, VAULT
        )


def test_odos_build_uses_path_id(market):
    session = StubSession(StubResponse({"transaction": {"to": SWAPPER, "data": "0xdeadbeef", "value": "0"}}))
    quote = Quote(amount_out=1, amount_sold=2, route="path-1", price_impact=0, gas_estimate=0)

    call = _odos(session).build(quote, VAULT)

    assert (call.to, call.data, call.value) == (SWAPPER, bytes.fromhex("deadbeef"), 0)
    assert session.requests[0]["url"] == "https://api.odos.xyz/sor/assemble"
    assert session.requests[0]["json"] == {"pathId": "path-1", "simulate": False, "userAddr": VAULT}


def test_odos_build_without_transaction(market):
    quote = Quote(amount_out=1, amount_sold=2, route="p", price_impact=0, gas_estimate=0)
    with pytest.raises(AggregatorError, match="Invalid build response"):
        _odos(StubSession(StubResponse({"error": "expired"}))).build(quote, VAULT)


def test_openocean_quote_sends_human_amount(market):
    session = StubSession(StubResponse({"code": 200, "data": {"outAmount": "1234567", "estimatedGas": "210000"}}))
    agg = OpenOceanAggregator(BASE_CHAIN.rebalance[OPENOCEAN], 8453, session=session)

    quote = agg.quote(market.base, market.quote, 15 * 10**17, VAULT)

    assert quote.amount_out == 1_234_567
    assert quote.amount_sold == 15 * 10**17
    assert quote.gas_estimate == 210_000
    assert session.requests[0]["params"]["amount"] == "1.5"
    assert session.requests[0]["method"] == "GET"
    assert agg.swap_gas == OPENOCEAN_SWAP_GAS_LIMIT


def test_openocean_error_code(market):
    session = StubSession(StubResponse({"code": 400, "error": "no route"}))
    agg = OpenOceanAggregator(BASE_CHAIN.rebalance[OPENOCEAN], 8453, session=session)
    with pytest.raises(AggregatorError, match="no route"):
        agg.quote(market.base, market.quote, 10**18, VAULT)


def test_openocean_build_passes_account(market):
    session = StubSession(
        StubResponse({"code": 200, "data": {"outAmount": "5"}}),
        StubResponse({"code": 200, "data": {"to": SWAPPER, "data": "0x01", "value": "0"}}),
    )
    agg = OpenOceanAggregator(BASE_CHAIN.rebalance[OPENOCEAN], 8453, session=session)
    call = agg.build(agg.quote(market.base, market.quote, 10**18, VAULT), VAULT)

    assert call.to == SWAPPER
    assert session.requests[1]["params"]["account"] == VAULT
    assert session.requests[1]["params"]["referrer"] == ZERO_ADDRESS


def test_openocean_unsupported_chain():
    with pytest.raises(AggregatorError):
        OpenOceanAggregator(RebalanceProvider(kind=OPENOCEAN, contract=SWAPPER), 10, session=StubSession())


def test_kame_quote_and_build(market):
    session = StubSession(
        StubResponse(
            {"srcToken": market.base.address, "dstToken": market.quote.address, "srcAmount": "100", "dstAmount": "250"}
        ),
        StubResponse({"tx": {"to": SWAPPER, "data": "0xabcd", "value": "0x0"}}),
    )
    agg = KameAggregator(RebalanceProvider(kind=KAME, contract=SWAPPER, quote_url="https://kame.test/"), 1329, session=session)

    quote = agg.quote(market.base, market.quote, 100, VAULT)
    call = agg.build(quote, VAULT)

    assert (quote.amount_out, quote.amount_sold) == (250, 100)
    assert call.data == b"\xab\xcd"
    assert session.requests[0]["url"] == "https://kame.test/quote"
    assert session.requests[1]["params"]["origin"] == VAULT
    assert agg.swap_gas == KAME_SWAP_GAS_LIMIT


def test_symphony_flags_native_input(market):
    native = Token(address=NATIVE_TOKEN, decimals=18, symbol="ETH")
    session = StubSession(
        StubResponse({"amountOut": "77"}),
        StubResponse({"to": SWAPPER, "data": "0x00"}),
    )
    agg = SymphonyAggregator(RebalanceProvider(kind=SYMPHONY, contract=SWAPPER), 1329, session=session)

    agg.build(agg.quote(native, market.quote, 10, VAULT), VAULT)

    assert session.requests[0]["json"]["tokenIn"] == NATIVE_TOKEN.lower()
    assert session.requests[1]["json"]["includesNative"] is True
    assert session.requests[1]["json"]["slippage"]["outTokenDecimals"] == 6


def test_get_aggregator_dispatch():
    assert isinstance(get_aggregator(BASE_CHAIN.rebalance[ODOS], 8453, session=StubSession()), OdosAggregator)
    with pytest.raises(AggregatorError):
        get_aggregator(RebalanceProvider(kind="uniswap", contract=SWAPPER), 8453)
