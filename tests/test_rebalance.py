import pytest

from conftest import SWAPPER, VAULT
from mangrove_vaults.errors import NotWhitelistedError, ValidationError
from mangrove_vaults.models import Quote, RebalanceArgs, SwapCall
from mangrove_vaults.rebalance import Rebalancer, Stage, ensure_whitelisted, rebalance, slippage_floor


class FakeAggregator:
    name = "fake"
    swap_gas = 8_000_000

    def __init__(self, contract=SWAPPER, amount_out=1_000_000, build_to=None):
        self.contract = contract
        self.amount_out = amount_out
        self.build_to = build_to or contract
        self.quoted = []

    def quote(self, sell, buy, amount, vault):
        self.quoted.append((sell.symbol, buy.symbol, amount, vault))
        return Quote(amount_out=self.amount_out, amount_sold=amount, route="r", price_impact=0.1, gas_estimate=1)

    def build(self, quote, vault):
        return SwapCall(to=self.build_to, data=b"\x12\x34")


def _yes(_message):
    return True


def _no(_message):
    return False


@pytest.mark.parametrize(
    ("quoted", "bps", "expected"),
    [
        (1_000_000, 100, 990_000),
        (999, 100, 990),
        (1, 100, 1),
        (0, 100, 0),
        (1_000_000, 0, 1_000_000),
        (1_000_000, 50, 995_000),
    ],
)
def test_slippage_floor(quoted, bps, expected):
    assert slippage_floor(quoted, bps) == expected


def test_slippage_floor_rejects_out_of_range():
    with pytest.raises(ValidationError):
        slippage_floor(100, 10_001)


def test_ensure_whitelisted_already_allowed(fake_chain):
    fake_chain.set(VAULT, "allowedSwapContracts", True, (SWAPPER,))
    assert ensure_whitelisted(fake_chain, VAULT, SWAPPER, _no)
    assert fake_chain.calls("send") == []


def test_ensure_whitelisted_adds_on_confirmation(fake_chain):
    fake_chain.set(VAULT, "allowedSwapContracts", False)
    assert ensure_whitelisted(fake_chain, VAULT, SWAPPER, _yes)
    assert fake_chain.calls("send") == ["allowSwapContract"]


def test_ensure_whitelisted_declined(fake_chain):
    fake_chain.set(VAULT, "allowedSwapContracts", False)
    assert ensure_whitelisted(fake_chain, VAULT, SWAPPER, _no) is False
    assert fake_chain.calls("send") == []


def test_rebalance_refuses_without_whitelist(fake_chain):
    args = RebalanceArgs(target=SWAPPER, data=b"", amount_out=1, sell=True)
    with pytest.raises(NotWhitelistedError):
        rebalance(fake_chain, VAULT, args, whitelisted=False)
    assert fake_chain.log == []


def test_rebalancer_whitelists_before_quoting_and_swapping(fake_chain, market):
    allowed = {"value": False}
    fake_chain.set(VAULT, "allowedSwapContracts", lambda call: allowed["value"])
    fake_chain.on_send["allowSwapContract"] = lambda call: allowed.__setitem__("value", True)
    aggregator = FakeAggregator()
    rebalancer = Rebalancer(fake_chain, VAULT, market, aggregator, confirm=_yes)

    assert rebalancer.run(sell=True, amount=10**18)

    assert rebalancer.stage is Stage.CONFIRMED
    assert fake_chain.calls("send") == ["allowSwapContract", "swap"]
    assert aggregator.quoted == [("WETH", "USDC", 10**18, VAULT)]
    swap = fake_chain.sent[-1]
    assert swap.call.args == (SWAPPER, b"\x12\x34", 10**18, 990_000, True)
    assert swap.gas == 8_000_000


def test_rebalancer_buy_sells_quote(fake_chain, market):
    fake_chain.set(VAULT, "allowedSwapContracts", True)
    aggregator = FakeAggregator(amount_out=5 * 10**17)
    rebalancer = Rebalancer(fake_chain, VAULT, market, aggregator, confirm=_yes)

    assert rebalancer.run(sell=False, amount=2_000_000_000)

    assert aggregator.quoted[0][:2] == ("USDC", "WETH")
    assert fake_chain.sent[-1].call.args[2:] == (2_000_000_000, 5 * 10**17 - 5 * 10**15, False)


def test_rebalancer_never_quotes_when_not_whitelisted(fake_chain, market):
    fake_chain.set(VAULT, "allowedSwapContracts", False)
    aggregator = FakeAggregator()
    rebalancer = Rebalancer(fake_chain, VAULT, market, aggregator, confirm=_no)

    assert rebalancer.run(sell=True, amount=1) is False
    assert aggregator.quoted == []
    assert "swap" not in fake_chain.calls()
    with pytest.raises(NotWhitelistedError):
        rebalancer.request_quote(rebalancer.plan_trade(True, 1))


def test_rebalancer_rejects_build_for_other_target(fake_chain, market):
    fake_chain.set(VAULT, "allowedSwapContracts", True)
    other = "0x" + "f" * 40
    rebalancer = Rebalancer(fake_chain, VAULT, market, FakeAggregator(build_to=other), confirm=_yes)

    with pytest.raises(NotWhitelistedError):
        rebalancer.run(sell=True, amount=1)
    assert rebalancer.stage is Stage.FAILED
    assert "swap" not in fake_chain.calls()


def test_rebalancer_failed_swap(fake_chain, market):
    fake_chain.set(VAULT, "allowedSwapContracts", True)
    fake_chain.receipt_status = 0
    rebalancer = Rebalancer(fake_chain, VAULT, market, FakeAggregator(), confirm=_yes)

    assert rebalancer.run(sell=True, amount=1) is False
    assert rebalancer.stage is Stage.FAILED


def test_rebalancer_execute_requires_build(fake_chain, market):
    rebalancer = Rebalancer(fake_chain, VAULT, market, FakeAggregator(), confirm=_yes)
    with pytest.raises(RuntimeError):
        rebalancer.execute()
    with pytest.raises(ValidationError):
        rebalancer.plan_trade(True, 0)
