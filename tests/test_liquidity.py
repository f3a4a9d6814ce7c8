import pytest

from conftest import SENDER, VAULT
from mangrove_vaults.constants import BURN_GAS_LIMIT
from mangrove_vaults.errors import ValidationError
from mangrove_vaults.liquidity import burn, ensure_allowances, get_mint_amounts, mint, parse_shares
from mangrove_vaults.models import AllowanceEntry

MINT_HELPER = "0x9999999999999999999999999999999999999999"


def _yes(_message: str) -> bool:
    return True


def _no(_message: str) -> bool:
    return False


def test_ensure_allowances_is_idempotent(fake_chain, market):
    allowances = {market.base.address: 0, market.quote.address: 0}
    fake_chain.set(market.base.address, "allowance", lambda call: allowances[market.base.address])
    fake_chain.set(market.quote.address, "allowance", lambda call: allowances[market.quote.address])
    fake_chain.on_send["approve"] = lambda call: allowances.__setitem__(call.address, call.args[1])
    entries = [
        AllowanceEntry(market.base.address, MINT_HELPER, 10**18),
        AllowanceEntry(market.quote.address, MINT_HELPER, 2_000_000),
    ]

    assert ensure_allowances(fake_chain, SENDER, entries, _yes)
    assert fake_chain.calls("send") == ["approve", "approve"]
    assert [r.call.args for r in fake_chain.sent] == [(MINT_HELPER, 10**18), (MINT_HELPER, 2_000_000)]

    assert ensure_allowances(fake_chain, SENDER, entries, _yes)
    assert fake_chain.calls("send") == ["approve", "approve"]


def test_ensure_allowances_skips_sufficient_and_stops_on_decline(fake_chain, market):
    fake_chain.set(market.base.address, "allowance", 10**18)
    fake_chain.set(market.quote.address, "allowance", 0)
    entries = [
        AllowanceEntry(market.base.address, MINT_HELPER, 10**18),
        AllowanceEntry(market.quote.address, MINT_HELPER, 1),
    ]
    assert ensure_allowances(fake_chain, SENDER, entries, _no) is False
    assert fake_chain.calls("send") == []


def test_ensure_allowances_without_entries(fake_chain):
    assert ensure_allowances(fake_chain, SENDER, [], _no)
    assert fake_chain.log == []


def test_get_mint_amounts(fake_chain):
    fake_chain.set(VAULT, "getMintAmounts", (1, 2, 3), (10, 20))
    assert get_mint_amounts(fake_chain, VAULT, 10, 20) == (1, 2, 3)


def test_mint_goes_through_helper_after_allowances(fake_chain, market):
    fake_chain.set(market.base.address, "allowance", 10**30)
    fake_chain.set(market.quote.address, "allowance", 10**30)
    fake_chain.set(MINT_HELPER, "mint", (100, 10**18, 2_000_000))

    assert mint(fake_chain, MINT_HELPER, VAULT, 10**18, 2_000_000, market, min_shares=99, confirm=_yes)
    assert fake_chain.calls("send") == ["mint"]
    assert fake_chain.sent[0].call.args == (VAULT, 10**18, 2_000_000, 99)


@pytest.mark.parametrize(
    ("text", "balance", "expected"),
    [
        ("50%", 1000, 500),
        ("100%", 999, 999),
        ("1%", 150, 1),
        ("33 %", 100, 33),
        ("250", 1000, 250),
        ("1000", 1000, 1000),
    ],
)
def test_parse_shares(text, balance, expected):
    assert parse_shares(text, balance) == expected


@pytest.mark.parametrize("text", ["0", "0%", "101%", "1001", "-5", "1.5", "abc", "12.5%"])
def test_parse_shares_rejects(text):
    with pytest.raises(ValidationError):
        parse_shares(text, 1000)


def test_burn_uses_fixed_gas(fake_chain, market):
    fake_chain.set(VAULT, "burn", (10**17, 300_000))
    assert burn(fake_chain, VAULT, 50, market=market)
    assert fake_chain.sent[0].gas == BURN_GAS_LIMIT
    assert fake_chain.sent[0].call.args == (50, 0, 0)


def test_burn_simulation_failure_sends_nothing(fake_chain):
    fake_chain.reverting.add("burn")
    assert burn(fake_chain, VAULT, 50) is False
    assert fake_chain.calls("send") == []
